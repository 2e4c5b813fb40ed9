"""Shared test fixtures for VitalCoach tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HEALTH_DATA_SOURCE", "mock")
    monkeypatch.setenv("INTERACTION_TABLE_PATH", "")
    monkeypatch.setenv("DEFAULT_ACTIVITY_LEVEL", "sedentary")
    monkeypatch.delenv("BATCH_MAX_WORKERS", raising=False)

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from vitalcoach.domains.health.domain_logic.health_models import (  # noqa: E402
    BehaviorLog,
    BloodPressureReading,
    CholesterolReading,
    DietQuality,
    GlucoseReading,
    HealthProfile,
    HeartRateReading,
    LifestyleProfile,
    MedicationDoseSample,
)
from vitalcoach.domains.health.domain_logic.interaction_checker import (  # noqa: E402
    InteractionTable,
    get_default_interaction_table,
)


def make_profile(
    age: int = 40,
    gender: str = "male",
    height_cm: float = 175,
    weight_kg: float = 70,
    bp: tuple[float, float] | None = None,
    glucose: float | None = None,
    cholesterol: tuple[float, float, float] | None = None,
    resting_hr: float | None = None,
    conditions: tuple[str, ...] = (),
    family_history: tuple[str, ...] = (),
) -> HealthProfile:
    """Create a profile with one reading per supplied vital."""
    ts = "2026-01-10T08:00:00Z"
    return HealthProfile(
        age=age,
        gender=gender,
        height_cm=height_cm,
        weight_kg=weight_kg,
        blood_pressure=(BloodPressureReading(bp[0], bp[1], ts),) if bp else (),
        blood_glucose=(GlucoseReading(glucose, ts),) if glucose is not None else (),
        cholesterol=(CholesterolReading(*cholesterol, ts),) if cholesterol else (),
        heart_rate=(HeartRateReading(resting_hr, ts),) if resting_hr is not None else (),
        conditions=frozenset(conditions),
        family_history=frozenset(family_history),
    )


def make_lifestyle(
    smoking: str = "never",
    alcohol: str = "none",
    exercise: str = "moderate",
    sugar: str = "medium",
    sodium: str = "medium",
    produce: str = "medium",
    sleep_hours: float | None = 7.5,
    stress: str = "moderate",
) -> LifestyleProfile:
    return LifestyleProfile(
        smoking_status=smoking,
        alcohol_consumption=alcohol,
        exercise_frequency=exercise,
        diet=DietQuality(sugar_intake=sugar, sodium_intake=sodium, produce_intake=produce),
        sleep_hours=sleep_hours,
        stress_level=stress,
    )


def make_dose_log(taken: int, missed: int) -> BehaviorLog:
    """Medication log with ``taken`` doses followed by ``missed`` doses, one per day."""
    samples = [
        MedicationDoseSample(date=f"2026-01-{i + 1:02d}", scheduled=True, taken_as_scheduled=i < taken)
        for i in range(taken + missed)
    ]
    return BehaviorLog(medication=tuple(samples))


@pytest.fixture
def healthy_profile() -> HealthProfile:
    return make_profile(
        age=30, bp=(115, 75), glucose=88, cholesterol=(180, 65, 95), resting_hr=60
    )


@pytest.fixture
def scenario_a_profile() -> HealthProfile:
    """Age 50 male, 175 cm / 95 kg, blood pressure 150/95."""
    return make_profile(age=50, gender="male", height_cm=175, weight_kg=95, bp=(150, 95))


@pytest.fixture
def interaction_table() -> InteractionTable:
    return get_default_interaction_table()
