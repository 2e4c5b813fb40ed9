"""Canonical health data model and shared domain constants.

Every engine component reads and writes these shapes. Input records are
frozen so a single profile can be shared across threads; output records
carry ``to_dict``/``from_dict`` for the JSON tool layer.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Literal, Sequence, TypeVar


class ValidationError(ValueError):
    """Malformed or out-of-range input for a calculation."""


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

Gender = Literal["male", "female", "other"]
SmokingStatus = Literal["never", "former", "current"]
AlcoholConsumption = Literal["none", "light", "moderate", "heavy"]
ExerciseFrequency = Literal["sedentary", "light", "moderate", "active", "very_active"]
IntakeLevel = Literal["low", "medium", "high"]
StressLevel = Literal["low", "moderate", "high"]
ExerciseIntensity = Literal["low", "moderate", "high"]
MedicationStatus = Literal["active", "completed", "discontinued", "on_hold"]
RiskLevel = Literal["low", "moderate", "high", "very_high"]
InteractionSeverity = Literal["none", "mild", "moderate", "severe"]
Sentiment = Literal["positive", "neutral", "negative"]
CoachingCategory = Literal["sleep", "exercise", "medication", "nutrition", "vitals", "general"]
Priority = Literal["low", "medium", "high"]
BmiCategory = Literal["underweight", "normal", "overweight", "obese_I", "obese_II", "obese_III"]

GENDERS = ("male", "female", "other")
SMOKING_STATUSES = ("never", "former", "current")
ALCOHOL_LEVELS = ("none", "light", "moderate", "heavy")
EXERCISE_FREQUENCIES = ("sedentary", "light", "moderate", "active", "very_active")
INTAKE_LEVELS = ("low", "medium", "high")
STRESS_LEVELS = ("low", "moderate", "high")
EXERCISE_INTENSITIES = ("low", "moderate", "high")
MEDICATION_STATUSES = ("active", "completed", "discontinued", "on_hold")
INTERACTION_SEVERITIES = ("none", "mild", "moderate", "severe")

# Behavior categories in the order insights are produced
BEHAVIOR_CATEGORIES = ("sleep", "exercise", "medication", "nutrition")

# Rank used for "highest first" ordering
PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}
SEVERITY_RANK = {"severe": 0, "moderate": 1, "mild": 2, "none": 3}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 date or datetime; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid ISO 8601 timestamp: {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


_R = TypeVar("_R")


def latest_reading(series: Sequence[_R]) -> _R | None:
    """Most recent entry of a timestamped series (ties keep the first listed)."""
    if not series:
        return None
    return max(series, key=lambda r: parse_timestamp(r.timestamp))  # type: ignore[attr-defined]


def mentions(entries: Iterable[str], term: str) -> bool:
    """Case-insensitive whole-word match of ``term`` in any entry."""
    pattern = re.compile(rf"\b{re.escape(term.lower())}\b")
    return any(pattern.search(entry.lower()) for entry in entries)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BloodPressureReading:
    systolic: float
    diastolic: float
    timestamp: str


@dataclass(frozen=True)
class GlucoseReading:
    value: float
    timestamp: str
    unit: str = "mg/dL"

    @property
    def mg_dl(self) -> float:
        """Value normalized to mg/dL (mmol/L readings are multiplied by 18)."""
        if self.unit.lower().replace(" ", "") in ("mmol/l", "mmol"):
            return self.value * 18
        return self.value


@dataclass(frozen=True)
class CholesterolReading:
    total: float
    hdl: float
    ldl: float
    timestamp: str


@dataclass(frozen=True)
class HeartRateReading:
    value: float
    timestamp: str


@dataclass(frozen=True)
class HealthProfile:
    """Demographics, anthropometrics and vital-sign history for one user."""

    age: int
    gender: str
    height_cm: float
    weight_kg: float
    blood_pressure: tuple[BloodPressureReading, ...] = ()
    blood_glucose: tuple[GlucoseReading, ...] = ()
    cholesterol: tuple[CholesterolReading, ...] = ()
    heart_rate: tuple[HeartRateReading, ...] = ()
    conditions: frozenset[str] = frozenset()
    family_history: frozenset[str] = frozenset()

    def validate(self) -> None:
        """Raise ``ValidationError`` if a required field is missing or non-positive."""
        if self.age is None or self.age <= 0:
            raise ValidationError(f"age must be a positive integer, got {self.age!r}")
        if self.height_cm is None or self.height_cm <= 0:
            raise ValidationError(f"height_cm must be positive, got {self.height_cm!r}")
        if self.weight_kg is None or self.weight_kg <= 0:
            raise ValidationError(f"weight_kg must be positive, got {self.weight_kg!r}")
        if self.gender not in GENDERS:
            raise ValidationError(
                f"gender must be one of {', '.join(GENDERS)}, got {self.gender!r}"
            )

    def latest_blood_pressure(self) -> BloodPressureReading | None:
        return latest_reading(self.blood_pressure)

    def latest_glucose(self) -> GlucoseReading | None:
        return latest_reading(self.blood_glucose)

    def latest_cholesterol(self) -> CholesterolReading | None:
        return latest_reading(self.cholesterol)

    def latest_heart_rate(self) -> HeartRateReading | None:
        return latest_reading(self.heart_rate)

    def has_condition(self, term: str) -> bool:
        return mentions(self.conditions, term)

    def has_family_history(self, term: str) -> bool:
        return mentions(self.family_history, term)


@dataclass(frozen=True)
class DietQuality:
    sugar_intake: str = "medium"
    sodium_intake: str = "medium"
    produce_intake: str = "medium"


@dataclass(frozen=True)
class LifestyleProfile:
    """Self-reported habits used by the risk rules."""

    smoking_status: str = "never"
    alcohol_consumption: str = "none"
    exercise_frequency: str = "moderate"
    diet: DietQuality = field(default_factory=DietQuality)
    sleep_hours: float | None = None
    stress_level: str = "moderate"


@dataclass(frozen=True)
class SleepSample:
    date: str
    hours_slept: float
    quality: int                    # 1-10 self rating
    bedtime: str | None = None      # "HH:MM"
    wake_time: str | None = None    # "HH:MM"


@dataclass(frozen=True)
class ExerciseSample:
    date: str
    intensity: str
    duration_minutes: float | None = None


@dataclass(frozen=True)
class MedicationDoseSample:
    date: str
    scheduled: bool
    taken_as_scheduled: bool
    medication_id: str | None = None


@dataclass(frozen=True)
class NutritionSample:
    date: str
    water_intake_oz: float
    meal_count: int


@dataclass(frozen=True)
class BehaviorLog:
    """Longitudinal behavior samples, oldest first."""

    sleep: tuple[SleepSample, ...] = ()
    exercise: tuple[ExerciseSample, ...] = ()
    medication: tuple[MedicationDoseSample, ...] = ()
    nutrition: tuple[NutritionSample, ...] = ()


@dataclass(frozen=True)
class Medication:
    id: str
    name: str
    status: str = "active"

    @property
    def is_active(self) -> bool:
        return self.status == "active"


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------

@dataclass
class HeartRateZone:
    zone: int
    name: str
    lower_pct: float
    upper_pct: float
    min_bpm: int
    max_bpm: int


@dataclass
class HealthMetrics:
    bmi: float
    bmi_category: str
    bmr: int
    tdee: int
    activity_level: str
    max_heart_rate: float
    resting_heart_rate: float | None = None
    heart_rate_zones: list[HeartRateZone] | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RiskAssessment:
    """Scored risk for one tracked condition."""

    condition: str
    score: int                          # 0-100
    risk_level: str
    increasing_factors: list[str] = field(default_factory=list)
    decreasing_factors: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    confidence: float = 0.0             # 0-1

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> RiskAssessment:
        return cls(
            condition=data.get("condition", ""),
            score=int(data.get("score", 0)),
            risk_level=data.get("risk_level", data.get("riskLevel", "low")),
            increasing_factors=list(data.get("increasing_factors", data.get("increasingFactors", []))),
            decreasing_factors=list(data.get("decreasing_factors", data.get("decreasingFactors", []))),
            recommendations=list(data.get("recommendations", [])),
            confidence=float(data.get("confidence", 0.0)),
        )


@dataclass(frozen=True)
class InteractionFinding:
    """Known caution for an unordered medication pair."""

    medication_ids: tuple[str, str]     # sorted
    severity: str
    description: str
    recommendation: str
    medication_names: tuple[str, str] | None = None
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["medication_ids"] = list(self.medication_ids)
        if self.medication_names is not None:
            data["medication_names"] = list(self.medication_names)
        return data


@dataclass
class BehaviorInsight:
    """Normalcy score and commentary for one behavior category."""

    category: str
    score: int                          # 0-100
    sentiment: str
    observations: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    sample_count: int = 0
    adherence_ratio: float | None = None  # medication only

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> BehaviorInsight:
        ratio = data.get("adherence_ratio", data.get("adherenceRatio"))
        return cls(
            category=data.get("category", ""),
            score=int(data.get("score", 0)),
            sentiment=data.get("sentiment", "neutral"),
            observations=list(data.get("observations", [])),
            suggestions=list(data.get("suggestions", [])),
            sample_count=int(data.get("sample_count", data.get("sampleCount", 0))),
            adherence_ratio=float(ratio) if ratio is not None else None,
        )


@dataclass
class AdherenceWeek:
    week_start: str                     # ISO date
    adherence_ratio: float
    scheduled_doses: int


@dataclass
class MedicationAdherence:
    """Dose history for one medication."""

    medication_id: str
    taken_doses: int
    missed_doses: int
    total_scheduled_doses: int
    adherence_ratio: float
    current_streak: int                 # consecutive taken doses ending at the latest
    weekly_trend: list[AdherenceWeek] = field(default_factory=list)
    medication_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class CoachingMessage:
    category: str
    priority: str
    title: str
    message: str
    actionable: bool
    suggested_action: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @property
    def key(self) -> tuple[str, str]:
        """Deduplication key."""
        return (self.category, self.title)


@dataclass
class HealthAssessment:
    """Full engine output for one user."""

    metrics: HealthMetrics
    risks: list[RiskAssessment] = field(default_factory=list)
    interactions: list[InteractionFinding] = field(default_factory=list)
    behavior_insights: list[BehaviorInsight] = field(default_factory=list)
    coaching: list[CoachingMessage] = field(default_factory=list)
    medication_adherence: list[MedicationAdherence] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "metrics": self.metrics.to_dict(),
            "risks": [r.to_dict() for r in self.risks],
            "interactions": [i.to_dict() for i in self.interactions],
            "behavior_insights": [b.to_dict() for b in self.behavior_insights],
            "coaching": [c.to_dict() for c in self.coaching],
            "medication_adherence": [m.to_dict() for m in self.medication_adherence],
        }
