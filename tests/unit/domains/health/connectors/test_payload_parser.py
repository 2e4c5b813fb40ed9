"""Unit tests for JSON payload adapters."""

from __future__ import annotations

import pytest

from vitalcoach.domains.health.connectors.payload_parser import (
    UNDATED_TIMESTAMP,
    parse_behavior_log,
    parse_enum,
    parse_health_profile,
    parse_lifestyle,
    parse_medications,
)
from vitalcoach.domains.health.domain_logic.health_models import (
    SMOKING_STATUSES,
    ValidationError,
)


def _profile(**overrides):
    data = {"age": 50, "gender": "male", "height_cm": 175, "weight_kg": 95}
    data.update(overrides)
    return data


class TestParseHealthProfile:
    def test_snake_case(self):
        profile = parse_health_profile(_profile(
            blood_pressure=[{"systolic": 150, "diastolic": 95, "timestamp": "2026-01-10T08:00:00Z"}],
            family_history=["Father: heart disease"],
        ))
        assert profile.age == 50
        assert profile.latest_blood_pressure().systolic == 150
        assert profile.has_family_history("heart disease")

    def test_camel_case_and_legacy_keys(self):
        profile = parse_health_profile({
            "age": 40,
            "gender": "Female",
            "height": 165,
            "weight": 60,
            "bloodGlucose": 110,
            "heartRate": 64,
            "medicalConditions": ["Prediabetes"],
            "familyHistory": ["Diabetes"],
        })
        assert profile.gender == "female"
        assert profile.height_cm == 165
        assert profile.latest_glucose().value == 110
        assert profile.latest_glucose().timestamp == UNDATED_TIMESTAMP
        assert profile.latest_heart_rate().value == 64
        assert profile.has_condition("prediabetes")

    def test_glucose_series_with_unit(self):
        profile = parse_health_profile(_profile(
            blood_glucose=[{"value": 7.2, "unit": "mmol/L", "timestamp": "2026-01-10"}],
        ))
        assert profile.latest_glucose().mg_dl == pytest.approx(129.6)

    @pytest.mark.parametrize("overrides", [
        {"age": 0},
        {"age": "fifty"},
        {"weight_kg": -5},
        {"gender": "robot"},
        {"blood_pressure": {"systolic": 120}},
        {"blood_pressure": [{"systolic": 120, "diastolic": 80}]},
        {"conditions": "diabetes"},
    ])
    def test_malformed_rejected(self, overrides):
        with pytest.raises(ValidationError):
            parse_health_profile(_profile(**overrides))

    def test_missing_required_field(self):
        data = _profile()
        del data["height_cm"]
        with pytest.raises(ValidationError, match="height_cm"):
            parse_health_profile(data)


class TestParseLifestyle:
    def test_defaults(self):
        lifestyle = parse_lifestyle({})
        assert lifestyle.smoking_status == "never"
        assert lifestyle.exercise_frequency == "moderate"
        assert lifestyle.diet.produce_intake == "medium"
        assert lifestyle.sleep_hours is None

    def test_none_means_not_collected(self):
        assert parse_lifestyle(None) is None

    def test_legacy_spellings(self):
        lifestyle = parse_lifestyle({
            "smokingStatus": "non-smoker",
            "exerciseFrequency": "very active",
            "stressLevel": "medium",
            "diet": {"fruitVegetableIntake": "high", "sugarIntake": "low"},
            "sleepHours": 6.5,
        })
        assert lifestyle.smoking_status == "never"
        assert lifestyle.exercise_frequency == "very_active"
        assert lifestyle.stress_level == "moderate"
        assert lifestyle.diet.produce_intake == "high"
        assert lifestyle.diet.sugar_intake == "low"
        assert lifestyle.sleep_hours == 6.5

    def test_unknown_enum_rejected(self):
        with pytest.raises(ValidationError):
            parse_lifestyle({"alcohol_consumption": "lots"})


class TestParseBehaviorLog:
    def test_all_categories(self):
        log = parse_behavior_log({
            "sleep": [{"date": "2026-01-01", "hoursSlept": 7.5, "quality": 8, "bedtime": "23:00"}],
            "exercise": [{"date": "2026-01-01", "intensity": "High", "durationMinutes": 30}],
            "medication": [{"date": "2026-01-01", "scheduled": True, "takenAsScheduled": False}],
            "nutrition": [{"date": "2026-01-01", "waterIntakeOz": 64, "mealCount": 3}],
        })
        assert log.sleep[0].bedtime == "23:00"
        assert log.exercise[0].intensity == "high"
        assert log.medication[0].taken_as_scheduled is False
        assert log.nutrition[0].meal_count == 3

    def test_non_boolean_dose_rejected(self):
        with pytest.raises(ValidationError):
            parse_behavior_log({"medication": [{"date": "2026-01-01", "taken_as_scheduled": "yes"}]})


class TestParseMedications:
    def test_status_defaults_to_active(self):
        [med] = parse_medications([{"id": "med1", "name": "Lisinopril"}])
        assert med.is_active

    def test_on_hold_is_inactive(self):
        [med] = parse_medications([{"id": "med6", "name": "Warfarin", "status": "on_hold"}])
        assert not med.is_active

    def test_none_is_empty(self):
        assert parse_medications(None) == ()


class TestParseEnum:
    def test_regular_maps_to_current(self):
        assert parse_enum("Regular", "smoking_status", SMOKING_STATUSES) == "current"

    def test_missing_without_default_rejected(self):
        with pytest.raises(ValidationError):
            parse_enum(None, "smoking_status", SMOKING_STATUSES)
