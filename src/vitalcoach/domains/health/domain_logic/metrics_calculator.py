"""Anthropometric and cardiac metrics.

BMI, BMR (Mifflin-St Jeor), TDEE, maximum heart rate (Tanaka) and
Karvonen heart-rate training zones. All functions are pure.
"""

from __future__ import annotations

import logging
import math

from vitalcoach.domains.health.domain_logic.health_models import (
    GENDERS,
    HealthMetrics,
    HealthProfile,
    HeartRateZone,
    ValidationError,
)

logger = logging.getLogger(__name__)

ACTIVITY_MULTIPLIERS: dict[str, float] = {
    "sedentary": 1.2,
    "light": 1.375,
    "moderate": 1.55,
    "active": 1.725,
    "very_active": 1.9,
}

# Upper bound of each BMI category, checked in order
BMI_BREAKPOINTS: list[tuple[float, str]] = [
    (18.5, "underweight"),
    (25.0, "normal"),
    (30.0, "overweight"),
    (35.0, "obese_I"),
    (40.0, "obese_II"),
]

ZONE_BOUNDS = [0.5, 0.6, 0.7, 0.8, 0.9, 1.0]
ZONE_NAMES = ["Very Light", "Light", "Moderate", "Hard", "Maximum"]

_GENDER_OFFSETS = {"male": 5, "female": -161, "other": -78}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _require_positive(name: str, value) -> None:
    if value is None or value <= 0:
        raise ValidationError(f"{name} must be positive, got {value!r}")


# ---------------------------------------------------------------------------
# Body composition and energy
# ---------------------------------------------------------------------------

def bmi(weight_kg: float, height_cm: float) -> float:
    """Body-mass index rounded to one decimal."""
    _require_positive("weight_kg", weight_kg)
    _require_positive("height_cm", height_cm)
    height_m = height_cm / 100
    return round(weight_kg / (height_m * height_m), 1)


def bmi_category(value: float) -> str:
    for upper, name in BMI_BREAKPOINTS:
        if value < upper:
            return name
    return "obese_III"


def bmr(weight_kg: float, height_cm: float, age: int, gender: str) -> int:
    """Basal metabolic rate in kcal/day (Mifflin-St Jeor).

    ``other`` uses the mean of the male and female offsets.
    """
    _require_positive("weight_kg", weight_kg)
    _require_positive("height_cm", height_cm)
    _require_positive("age", age)
    if gender not in GENDERS:
        raise ValidationError(f"gender must be one of {', '.join(GENDERS)}, got {gender!r}")
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    return _round_half_up(base + _GENDER_OFFSETS[gender])


def tdee(bmr_kcal: float, activity_level: str) -> int:
    """Total daily energy expenditure for an activity level."""
    _require_positive("bmr", bmr_kcal)
    multiplier = ACTIVITY_MULTIPLIERS.get(activity_level)
    if multiplier is None:
        raise ValidationError(
            f"activity_level must be one of {', '.join(ACTIVITY_MULTIPLIERS)}, "
            f"got {activity_level!r}"
        )
    return _round_half_up(bmr_kcal * multiplier)


# ---------------------------------------------------------------------------
# Heart rate
# ---------------------------------------------------------------------------

def max_heart_rate(age: int) -> float:
    """Tanaka estimate: 208 - 0.7 * age."""
    _require_positive("age", age)
    return 208 - 0.7 * age


def heart_rate_zones(age: int, resting_hr: float) -> list[HeartRateZone]:
    """Five Karvonen training zones based on heart-rate reserve."""
    _require_positive("age", age)
    _require_positive("resting_hr", resting_hr)
    max_hr = max_heart_rate(age)
    if resting_hr >= max_hr:
        raise ValidationError(
            f"resting_hr ({resting_hr}) must be below max heart rate ({max_hr:.1f})"
        )
    reserve = max_hr - resting_hr

    zones = []
    for i, name in enumerate(ZONE_NAMES):
        lower, upper = ZONE_BOUNDS[i], ZONE_BOUNDS[i + 1]
        zones.append(HeartRateZone(
            zone=i + 1,
            name=name,
            lower_pct=lower,
            upper_pct=upper,
            min_bpm=_round_half_up(resting_hr + reserve * lower),
            max_bpm=_round_half_up(resting_hr + reserve * upper),
        ))
    return zones


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------

def compute_metrics(profile: HealthProfile, activity_level: str = "sedentary") -> HealthMetrics:
    """All metrics for one profile.

    Zones need a heart-rate reading below the estimated maximum; otherwise
    they are left as None.
    """
    profile.validate()

    body_mass = bmi(profile.weight_kg, profile.height_cm)
    basal = bmr(profile.weight_kg, profile.height_cm, profile.age, profile.gender)
    metrics = HealthMetrics(
        bmi=body_mass,
        bmi_category=bmi_category(body_mass),
        bmr=basal,
        tdee=tdee(basal, activity_level),
        activity_level=activity_level,
        max_heart_rate=round(max_heart_rate(profile.age), 1),
    )

    latest_hr = profile.latest_heart_rate()
    if latest_hr is not None:
        metrics.resting_heart_rate = latest_hr.value
        try:
            metrics.heart_rate_zones = heart_rate_zones(profile.age, latest_hr.value)
        except ValidationError as exc:
            # Zones only; the rest of the metrics still stand
            logger.warning("Skipping heart-rate zones: %s", exc)

    logger.debug("Metrics computed: bmi=%.1f bmr=%d tdee=%d", metrics.bmi, metrics.bmr, metrics.tdee)
    return metrics
