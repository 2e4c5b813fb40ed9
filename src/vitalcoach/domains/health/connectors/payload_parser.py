"""JSON payload adapters: dict shapes -> canonical health models.

Accepts snake_case or camelCase keys and the legacy enum spellings older
clients send (``non-smoker``, ``very active``, stress ``medium``). Every
parse function raises ``ValidationError`` on malformed input.
"""

from __future__ import annotations

import re
from typing import Any, Callable, TypeVar

from vitalcoach.domains.health.domain_logic.health_models import (
    ALCOHOL_LEVELS,
    EXERCISE_FREQUENCIES,
    EXERCISE_INTENSITIES,
    GENDERS,
    INTAKE_LEVELS,
    MEDICATION_STATUSES,
    SMOKING_STATUSES,
    STRESS_LEVELS,
    BehaviorLog,
    BloodPressureReading,
    CholesterolReading,
    DietQuality,
    ExerciseSample,
    GlucoseReading,
    HealthProfile,
    HeartRateReading,
    LifestyleProfile,
    Medication,
    MedicationDoseSample,
    NutritionSample,
    SleepSample,
    ValidationError,
)

# Timestamp given to single scalar readings that arrive without one
UNDATED_TIMESTAMP = "1970-01-01T00:00:00+00:00"

LEGACY_ALIASES: dict[str, dict[str, str]] = {
    "smoking_status": {
        "non-smoker": "never",
        "non_smoker": "never",
        "occasional": "current",
        "regular": "current",
    },
    "exercise_frequency": {"very active": "very_active", "very-active": "very_active"},
    "stress_level": {"medium": "moderate"},
    "activity_level": {"very active": "very_active", "very-active": "very_active"},
}

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")

_T = TypeVar("_T")


def _snake(key: str) -> str:
    return _CAMEL_RE.sub("_", key).lower()


def normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    """Shallow camelCase -> snake_case key conversion."""
    if not isinstance(data, dict):
        raise ValidationError(f"Expected an object, got {type(data).__name__}")
    return {_snake(k): v for k, v in data.items()}


def _require(data: dict, key: str, *aliases: str) -> Any:
    for name in (key, *aliases):
        if data.get(name) is not None:
            return data[name]
    raise ValidationError(f"Missing required field: {key}")


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{name} must be a number, got {value!r}") from exc


def _integer(value: Any, name: str) -> int:
    number = _number(value, name)
    if number != int(number):
        raise ValidationError(f"{name} must be a whole number, got {value!r}")
    return int(number)


def parse_enum(value: Any, field_name: str, allowed: tuple[str, ...], default: str | None = None) -> str:
    """Normalize an enum value, mapping legacy spellings first."""
    if value is None:
        if default is None:
            raise ValidationError(f"Missing required field: {field_name}")
        return default
    text = str(value).strip().lower()
    text = LEGACY_ALIASES.get(field_name, {}).get(text, text)
    if text not in allowed:
        raise ValidationError(
            f"{field_name} must be one of {', '.join(allowed)}, got {value!r}"
        )
    return text


def _series(raw: Any, name: str, parse: Callable[[dict], _T]) -> tuple[_T, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ValidationError(f"{name} must be a list")
    return tuple(parse(normalize_keys(item)) for item in raw)


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

def _bp(d: dict) -> BloodPressureReading:
    return BloodPressureReading(
        systolic=_number(_require(d, "systolic"), "systolic"),
        diastolic=_number(_require(d, "diastolic"), "diastolic"),
        timestamp=str(_require(d, "timestamp", "date")),
    )


def _glucose(d: dict) -> GlucoseReading:
    return GlucoseReading(
        value=_number(_require(d, "value"), "blood_glucose.value"),
        timestamp=str(_require(d, "timestamp", "date")),
        unit=str(d.get("unit") or "mg/dL"),
    )


def _cholesterol(d: dict) -> CholesterolReading:
    return CholesterolReading(
        total=_number(_require(d, "total"), "cholesterol.total"),
        hdl=_number(_require(d, "hdl"), "cholesterol.hdl"),
        ldl=_number(_require(d, "ldl"), "cholesterol.ldl"),
        timestamp=str(_require(d, "timestamp", "date")),
    )


def _heart_rate(d: dict) -> HeartRateReading:
    return HeartRateReading(
        value=_number(_require(d, "value", "bpm"), "heart_rate.value"),
        timestamp=str(_require(d, "timestamp", "date")),
    )


def _scalar_or_series(raw: Any, name: str, parse: Callable[[dict], _T]) -> tuple[_T, ...]:
    # Legacy clients send a bare number for the current reading
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return (parse({"value": raw, "timestamp": UNDATED_TIMESTAMP}),)
    return _series(raw, name, parse)


def _string_set(raw: Any, name: str) -> frozenset[str]:
    if raw is None:
        return frozenset()
    if not isinstance(raw, list) or not all(isinstance(x, str) for x in raw):
        raise ValidationError(f"{name} must be a list of strings")
    return frozenset(x.strip() for x in raw if x.strip())


def parse_health_profile(data: dict[str, Any]) -> HealthProfile:
    """Build a validated ``HealthProfile`` from a JSON-shaped dict."""
    d = normalize_keys(data)
    conditions = _string_set(d.get("conditions"), "conditions") | _string_set(
        d.get("medical_conditions"), "medical_conditions"
    )
    profile = HealthProfile(
        age=_integer(_require(d, "age"), "age"),
        gender=parse_enum(d.get("gender"), "gender", GENDERS),
        height_cm=_number(_require(d, "height_cm", "height"), "height_cm"),
        weight_kg=_number(_require(d, "weight_kg", "weight"), "weight_kg"),
        blood_pressure=_series(d.get("blood_pressure"), "blood_pressure", _bp),
        blood_glucose=_scalar_or_series(d.get("blood_glucose"), "blood_glucose", _glucose),
        cholesterol=_series(d.get("cholesterol"), "cholesterol", _cholesterol),
        heart_rate=_scalar_or_series(d.get("heart_rate"), "heart_rate", _heart_rate),
        conditions=conditions,
        family_history=_string_set(d.get("family_history"), "family_history"),
    )
    profile.validate()
    return profile


# ---------------------------------------------------------------------------
# Lifestyle
# ---------------------------------------------------------------------------

def parse_lifestyle(data: dict[str, Any] | None) -> LifestyleProfile | None:
    if data is None:
        return None
    d = normalize_keys(data)
    diet = normalize_keys(d.get("diet") or {})
    sleep_hours = d.get("sleep_hours")
    return LifestyleProfile(
        smoking_status=parse_enum(d.get("smoking_status"), "smoking_status", SMOKING_STATUSES, "never"),
        alcohol_consumption=parse_enum(
            d.get("alcohol_consumption"), "alcohol_consumption", ALCOHOL_LEVELS, "none"
        ),
        exercise_frequency=parse_enum(
            d.get("exercise_frequency"), "exercise_frequency", EXERCISE_FREQUENCIES, "moderate"
        ),
        diet=DietQuality(
            sugar_intake=parse_enum(diet.get("sugar_intake"), "sugar_intake", INTAKE_LEVELS, "medium"),
            sodium_intake=parse_enum(diet.get("sodium_intake"), "sodium_intake", INTAKE_LEVELS, "medium"),
            produce_intake=parse_enum(
                diet.get("produce_intake", diet.get("fruit_vegetable_intake")),
                "produce_intake", INTAKE_LEVELS, "medium",
            ),
        ),
        sleep_hours=_number(sleep_hours, "sleep_hours") if sleep_hours is not None else None,
        stress_level=parse_enum(d.get("stress_level"), "stress_level", STRESS_LEVELS, "moderate"),
    )


# ---------------------------------------------------------------------------
# Behavior log
# ---------------------------------------------------------------------------

def _optional_number(d: dict, key: str) -> float | None:
    return _number(d[key], key) if d.get(key) is not None else None


def _sleep(d: dict) -> SleepSample:
    return SleepSample(
        date=str(_require(d, "date")),
        hours_slept=_number(_require(d, "hours_slept", "duration"), "hours_slept"),
        quality=_integer(_require(d, "quality"), "quality"),
        bedtime=d.get("bedtime"),
        wake_time=d.get("wake_time"),
    )


def _exercise(d: dict) -> ExerciseSample:
    return ExerciseSample(
        date=str(_require(d, "date")),
        intensity=parse_enum(d.get("intensity"), "intensity", EXERCISE_INTENSITIES),
        duration_minutes=_optional_number(d, "duration_minutes"),
    )


def _dose(d: dict) -> MedicationDoseSample:
    scheduled = d.get("scheduled", True)
    taken = _require(d, "taken_as_scheduled", "taken")
    if not isinstance(scheduled, bool) or not isinstance(taken, bool):
        raise ValidationError("scheduled and taken_as_scheduled must be booleans")
    return MedicationDoseSample(
        date=str(_require(d, "date")),
        scheduled=scheduled,
        taken_as_scheduled=taken,
        medication_id=d.get("medication_id"),
    )


def _nutrition(d: dict) -> NutritionSample:
    return NutritionSample(
        date=str(_require(d, "date")),
        water_intake_oz=_number(_require(d, "water_intake_oz", "water_oz"), "water_intake_oz"),
        meal_count=_integer(_require(d, "meal_count", "meals"), "meal_count"),
    )


def parse_behavior_log(data: dict[str, Any] | None) -> BehaviorLog | None:
    if data is None:
        return None
    d = normalize_keys(data)
    return BehaviorLog(
        sleep=_series(d.get("sleep"), "sleep", _sleep),
        exercise=_series(d.get("exercise"), "exercise", _exercise),
        medication=_series(d.get("medication"), "medication", _dose),
        nutrition=_series(d.get("nutrition"), "nutrition", _nutrition),
    )


# ---------------------------------------------------------------------------
# Medications
# ---------------------------------------------------------------------------

def parse_medication(data: dict[str, Any]) -> Medication:
    d = normalize_keys(data)
    return Medication(
        id=str(_require(d, "id")),
        name=str(d.get("name") or d["id"]),
        status=parse_enum(d.get("status"), "status", MEDICATION_STATUSES, "active"),
    )


def parse_medications(data: list[dict[str, Any]] | None) -> tuple[Medication, ...]:
    if data is None:
        return ()
    if not isinstance(data, list):
        raise ValidationError("medications must be a list")
    return tuple(parse_medication(m) for m in data)
