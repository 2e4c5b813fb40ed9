"""Unit tests for rule-based risk scoring.

Covers the condition tables, bracket semantics, clamping, level thresholds
and confidence penalties.
"""

from __future__ import annotations

import pytest

from conftest import make_lifestyle, make_profile
from vitalcoach.domains.health.domain_logic.health_models import (
    BloodPressureReading,
    GlucoseReading,
    HealthProfile,
    ValidationError,
)
from vitalcoach.domains.health.domain_logic.risk_rules import (
    CONDITION_MODELS,
    Rule,
    RuleChain,
    RiskFactors,
)
from vitalcoach.domains.health.domain_logic.risk_scorer import (
    RiskModel,
    RuleBasedRiskModel,
    assess_risks,
    risk_level,
)


def _by_condition(risks):
    return {r.condition: r for r in risks}


class TestRiskLevel:
    @pytest.mark.parametrize("score,expected", [
        (0, "low"),
        (19, "low"),
        (20, "moderate"),
        (39, "moderate"),
        (40, "high"),
        (59, "high"),
        (60, "very_high"),
        (100, "very_high"),
    ])
    def test_thresholds(self, score, expected):
        assert risk_level(score) == expected


class TestRuleChain:
    def test_first_matching_bracket_wins(self):
        chain = RuleChain("age", (
            Rule("over 65", 20, lambda f: f.age > 65),
            Rule("over 45", 10, lambda f: f.age > 45),
        ))
        assert chain.evaluate(RiskFactors(age=70, bmi=22)).label == "over 65"
        assert chain.evaluate(RiskFactors(age=50, bmi=22)).label == "over 45"
        assert chain.evaluate(RiskFactors(age=30, bmi=22)) is None

    def test_missing_readings_never_fire(self):
        factors = RiskFactors(age=50, bmi=22)
        assert not factors.bp_at_least(120, 80)
        assert not factors.has("blood_pressure")
        assert not factors.has("lifestyle")


class TestScenarioA:
    """Age 50 male, 175 cm / 95 kg, blood pressure 150/95, nothing else."""

    def test_cardiovascular_is_high(self, scenario_a_profile):
        cvd = _by_condition(assess_risks(scenario_a_profile))["Cardiovascular Disease"]
        # base 5 + age>45 10 + BMI>=30 15 + BP>=140/90 25
        assert cvd.score == 55
        assert cvd.risk_level == "high"
        assert "Blood pressure 140/90 or higher" in cvd.increasing_factors

    def test_hypertension_is_very_high(self, scenario_a_profile):
        htn = _by_condition(assess_risks(scenario_a_profile))["Hypertension"]
        # base 5 + age>45 8 + BMI>=30 15 + BP>=140/90 40
        assert htn.score == 68
        assert htn.risk_level == "very_high"
        assert "Blood pressure 140/90 or higher" in htn.increasing_factors

    def test_diabetes_omitted_without_glucose(self, scenario_a_profile):
        conditions = [r.condition for r in assess_risks(scenario_a_profile)]
        assert conditions == ["Cardiovascular Disease", "Hypertension", "Obesity"]

    def test_confidence_reduced_for_missing_inputs(self, scenario_a_profile):
        risks = _by_condition(assess_risks(scenario_a_profile))
        assert risks["Cardiovascular Disease"].confidence == 0.65
        assert risks["Hypertension"].confidence == 0.8
        assert risks["Obesity"].confidence == 0.75

    def test_recommendations_follow_fired_rules(self, scenario_a_profile):
        cvd = _by_condition(assess_risks(scenario_a_profile))["Cardiovascular Disease"]
        assert cvd.recommendations[0].startswith("Get a lipid panel")
        assert any("blood pressure" in r.lower() for r in cvd.recommendations[1:])
        assert len(cvd.recommendations) == len(set(cvd.recommendations))


class TestConditionRules:
    def test_protective_factors_listed_as_decreasing(self, healthy_profile):
        lifestyle = make_lifestyle(exercise="active", produce="high")
        cvd = _by_condition(assess_risks(healthy_profile, lifestyle))["Cardiovascular Disease"]
        assert cvd.score == 0
        assert cvd.risk_level == "low"
        assert set(cvd.decreasing_factors) == {
            "High HDL cholesterol (above 60 mg/dL)",
            "Regular physical activity",
            "High fruit and vegetable intake",
        }
        assert cvd.increasing_factors == []

    def test_score_clamped_at_100(self):
        profile = make_profile(age=40, height_cm=170, weight_kg=130, family_history=("Mother: obesity",))
        lifestyle = make_lifestyle(
            exercise="sedentary", sugar="high", alcohol="heavy", stress="high", sleep_hours=5
        )
        obesity = _by_condition(assess_risks(profile, lifestyle))["Obesity"]
        assert obesity.score == 100
        assert obesity.risk_level == "very_high"

    def test_glucose_in_mmol_is_converted(self):
        ts = "2026-01-10T08:00:00Z"
        profile = HealthProfile(
            age=30, gender="female", height_cm=165, weight_kg=60,
            blood_glucose=(GlucoseReading(7.0, ts, "mmol/L"),),
        )
        diabetes = _by_condition(assess_risks(profile))["Type 2 Diabetes"]
        assert "Fasting glucose 126 mg/dL or higher" in diabetes.increasing_factors

    def test_prediabetes_does_not_count_as_diabetes(self):
        profile = make_profile(glucose=105, conditions=("Prediabetes",))
        risks = _by_condition(assess_risks(profile))
        assert "Prediabetes diagnosis" in risks["Type 2 Diabetes"].increasing_factors
        assert "Existing diabetes diagnosis" not in risks["Cardiovascular Disease"].increasing_factors

    def test_gestational_history_is_not_a_diabetes_diagnosis(self):
        profile = make_profile(glucose=95, conditions=("Gestational diabetes (2015)",))
        risks = _by_condition(assess_risks(profile))
        assert "History of gestational diabetes" in risks["Type 2 Diabetes"].increasing_factors
        assert "Existing diabetes diagnosis" not in risks["Cardiovascular Disease"].increasing_factors
        assert "Existing diabetes diagnosis" not in risks["Hypertension"].increasing_factors

    def test_type_2_diabetes_counts_as_diagnosis(self):
        profile = make_profile(conditions=("Type 2 Diabetes",))
        cvd = _by_condition(assess_risks(profile))["Cardiovascular Disease"]
        assert "Existing diabetes diagnosis" in cvd.increasing_factors

    def test_family_history_matches_free_text(self):
        profile = make_profile(family_history=("Father: Heart disease",))
        cvd = _by_condition(assess_risks(profile))["Cardiovascular Disease"]
        assert "Family history of heart disease" in cvd.increasing_factors

    def test_latest_reading_by_timestamp_is_used(self):
        profile = HealthProfile(
            age=30, gender="male", height_cm=175, weight_kg=70,
            blood_pressure=(
                BloodPressureReading(118, 76, "2026-02-01T08:00:00Z"),
                BloodPressureReading(160, 100, "2025-06-01T08:00:00Z"),
            ),
        )
        htn = _by_condition(assess_risks(profile))["Hypertension"]
        assert not any(f.startswith("Blood pressure") for f in htn.increasing_factors)

    def test_every_score_in_range(self):
        lifestyles = [None, make_lifestyle(), make_lifestyle(smoking="current", exercise="sedentary")]
        profiles = [
            make_profile(age=25, weight_kg=55, glucose=85),
            make_profile(age=70, weight_kg=140, bp=(180, 110), glucose=200, cholesterol=(280, 30, 190)),
        ]
        for profile in profiles:
            for lifestyle in lifestyles:
                for risk in assess_risks(profile, lifestyle):
                    assert 0 <= risk.score <= 100
                    assert risk.risk_level == risk_level(risk.score)
                    assert 0.0 <= risk.confidence <= 1.0


class TestValidation:
    @pytest.mark.parametrize("kwargs", [{"age": 0}, {"weight_kg": 0}, {"height_cm": -1}])
    def test_bad_profile_blocks_scoring(self, kwargs):
        with pytest.raises(ValidationError):
            assess_risks(make_profile(**kwargs))

    def test_unknown_gender_blocks_scoring(self):
        with pytest.raises(ValidationError):
            assess_risks(make_profile(gender="x"))


class TestRiskModel:
    def test_rule_based_model_satisfies_protocol(self):
        assert isinstance(RuleBasedRiskModel(), RiskModel)

    def test_conditions_listed_in_order(self):
        assert RuleBasedRiskModel().conditions == [m.condition for m in CONDITION_MODELS]

    def test_custom_condition_subset(self, scenario_a_profile):
        model = RuleBasedRiskModel(conditions=CONDITION_MODELS[-1:])
        assert [r.condition for r in model.assess(scenario_a_profile)] == ["Obesity"]

    def test_idempotent(self, scenario_a_profile):
        lifestyle = make_lifestyle(smoking="former")
        first = [r.to_dict() for r in assess_risks(scenario_a_profile, lifestyle)]
        second = [r.to_dict() for r in assess_risks(scenario_a_profile, lifestyle)]
        assert first == second
