"""Declarative risk rule tables for the tracked conditions.

A condition is a base score plus ordered rule chains. Within a chain the
first matching rule fires (brackets such as age > 65 / > 55 / > 45), so a
chain contributes at most one delta. The scorer folds the fired deltas over
the base score and clamps the result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from vitalcoach.domains.health.domain_logic.health_models import (
    HealthProfile,
    LifestyleProfile,
    mentions,
)


# ---------------------------------------------------------------------------
# Flattened inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RiskFactors:
    """Latest readings and lifestyle answers flattened for rule predicates.

    Missing optional data is ``None`` so predicates never fire on it.
    """

    age: int
    bmi: float
    systolic: float | None = None
    diastolic: float | None = None
    total_cholesterol: float | None = None
    hdl: float | None = None
    glucose_mg_dl: float | None = None
    smoking: str | None = None
    alcohol: str | None = None
    exercise: str | None = None
    sugar: str | None = None
    sodium: str | None = None
    produce: str | None = None
    stress: str | None = None
    sleep_hours: float | None = None
    profile: HealthProfile | None = field(default=None, compare=False, repr=False)

    @classmethod
    def from_inputs(
        cls, profile: HealthProfile, lifestyle: LifestyleProfile | None, bmi: float
    ) -> RiskFactors:
        bp = profile.latest_blood_pressure()
        chol = profile.latest_cholesterol()
        glucose = profile.latest_glucose()
        values: dict = {
            "age": profile.age,
            "bmi": bmi,
            "systolic": bp.systolic if bp else None,
            "diastolic": bp.diastolic if bp else None,
            "total_cholesterol": chol.total if chol else None,
            "hdl": chol.hdl if chol else None,
            "glucose_mg_dl": glucose.mg_dl if glucose else None,
            "profile": profile,
        }
        if lifestyle is not None:
            values.update(
                smoking=lifestyle.smoking_status,
                alcohol=lifestyle.alcohol_consumption,
                exercise=lifestyle.exercise_frequency,
                sugar=lifestyle.diet.sugar_intake,
                sodium=lifestyle.diet.sodium_intake,
                produce=lifestyle.diet.produce_intake,
                stress=lifestyle.stress_level,
                sleep_hours=lifestyle.sleep_hours,
            )
        return cls(**values)

    def has(self, data: str) -> bool:
        """Whether an optional input group is present."""
        if data == "blood_pressure":
            return self.systolic is not None
        if data == "cholesterol":
            return self.total_cholesterol is not None
        if data == "glucose":
            return self.glucose_mg_dl is not None
        if data == "lifestyle":
            return self.smoking is not None
        raise KeyError(data)

    def bp_at_least(self, systolic: float, diastolic: float) -> bool:
        if self.systolic is None:
            return False
        return self.systolic >= systolic or self.diastolic >= diastolic

    def condition(self, term: str, excluding: tuple[str, ...] = ()) -> bool:
        """Whether a diagnosis mentions ``term`` without any ``excluding`` qualifier."""
        if self.profile is None:
            return False
        for entry in self.profile.conditions:
            if mentions([entry], term) and not any(mentions([entry], q) for q in excluding):
                return True
        return False

    def family(self, term: str) -> bool:
        return self.profile is not None and self.profile.has_family_history(term)


# ---------------------------------------------------------------------------
# Rule primitives
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Rule:
    label: str
    delta: int
    when: Callable[[RiskFactors], bool]
    advice: str | None = None


@dataclass(frozen=True)
class RuleChain:
    """Ordered brackets; the first matching rule wins."""

    name: str
    rules: tuple[Rule, ...]

    def evaluate(self, factors: RiskFactors) -> Rule | None:
        for rule in self.rules:
            if rule.when(factors):
                return rule
        return None


@dataclass(frozen=True)
class ConditionModel:
    condition: str
    base_score: int
    chains: tuple[RuleChain, ...]
    confidence: float
    # (optional input group, confidence deducted when it is missing)
    penalties: tuple[tuple[str, float], ...] = ()
    baseline_recommendations: tuple[str, ...] = ()
    requires: str | None = None


# ---------------------------------------------------------------------------
# Shared chain builders
# ---------------------------------------------------------------------------

_ADVICE_WEIGHT = "Work toward a healthy weight through balanced diet and regular activity"
_ADVICE_BP = "Monitor blood pressure regularly and discuss readings with your doctor"
_ADVICE_SMOKING = "Quitting smoking is the single biggest step you can take; ask about cessation support"
_ADVICE_ALCOHOL = "Limit alcohol to no more than one drink a day"
_ADVICE_EXERCISE = "Aim for at least 150 minutes of moderate activity per week"
_ADVICE_STRESS = "Build in daily stress management such as breathing exercises or walks"

# Past pregnancy-only diabetes is not a current diagnosis
GESTATIONAL = ("gestational",)


def _age_chain(over65: int, over55: int, over45: int, over35: int) -> RuleChain:
    return RuleChain("age", (
        Rule("Age over 65", over65, lambda f: f.age > 65),
        Rule("Age over 55", over55, lambda f: f.age > 55),
        Rule("Age over 45", over45, lambda f: f.age > 45),
        Rule("Age over 35", over35, lambda f: f.age > 35),
    ))


def _bmi_chain(obese: int, overweight: int) -> RuleChain:
    return RuleChain("bmi", (
        Rule("BMI in obese range (30+)", obese, lambda f: f.bmi >= 30, _ADVICE_WEIGHT),
        Rule("BMI in overweight range (25-29.9)", overweight, lambda f: f.bmi >= 25, _ADVICE_WEIGHT),
    ))


def _bp_chain(stage2: int, stage1: int | None = None, elevated: int | None = None) -> RuleChain:
    rules = [
        Rule("Blood pressure 140/90 or higher", stage2,
             lambda f: f.bp_at_least(140, 90), _ADVICE_BP),
    ]
    if stage1 is not None:
        rules.append(Rule("Blood pressure 130/85 or higher", stage1,
                          lambda f: f.bp_at_least(130, 85), _ADVICE_BP))
    if elevated is not None:
        rules.append(Rule("Blood pressure 120/80 or higher", elevated,
                          lambda f: f.bp_at_least(120, 80), _ADVICE_BP))
    return RuleChain("blood_pressure", tuple(rules))


def _smoking_chain(current: int, former: int | None = None) -> RuleChain:
    rules = [Rule("Current smoker", current, lambda f: f.smoking == "current", _ADVICE_SMOKING)]
    if former is not None:
        rules.append(Rule("Former smoker", former, lambda f: f.smoking == "former"))
    return RuleChain("smoking", tuple(rules))


def _alcohol_chain(heavy: int, moderate: int | None = None) -> RuleChain:
    rules = [Rule("Heavy alcohol consumption", heavy, lambda f: f.alcohol == "heavy", _ADVICE_ALCOHOL)]
    if moderate is not None:
        rules.append(Rule("Moderate alcohol consumption", moderate, lambda f: f.alcohol == "moderate"))
    return RuleChain("alcohol", tuple(rules))


def _stress_rule(delta: int) -> RuleChain:
    return RuleChain("stress", (
        Rule("High stress level", delta, lambda f: f.stress == "high", _ADVICE_STRESS),
    ))


def _produce_credit(delta: int = -5) -> RuleChain:
    return RuleChain("produce", (
        Rule("High fruit and vegetable intake", delta, lambda f: f.produce == "high"),
    ))


# ---------------------------------------------------------------------------
# Condition tables
# ---------------------------------------------------------------------------

CARDIOVASCULAR = ConditionModel(
    condition="Cardiovascular Disease",
    base_score=5,
    confidence=0.85,
    penalties=(("blood_pressure", 0.15), ("cholesterol", 0.10), ("lifestyle", 0.10)),
    baseline_recommendations=(
        "Get a lipid panel and blood pressure check at least once a year",
    ),
    chains=(
        _age_chain(20, 15, 10, 5),
        _bmi_chain(15, 10),
        _bp_chain(25, 12, 5),
        RuleChain("total_cholesterol", (
            Rule("Total cholesterol above 240 mg/dL", 15,
                 lambda f: f.total_cholesterol is not None and f.total_cholesterol > 240,
                 "Reduce saturated fat and discuss cholesterol management with your doctor"),
            Rule("Total cholesterol above 200 mg/dL", 10,
                 lambda f: f.total_cholesterol is not None and f.total_cholesterol > 200,
                 "Reduce saturated fat and discuss cholesterol management with your doctor"),
        )),
        RuleChain("hdl", (
            Rule("Low HDL cholesterol (below 40 mg/dL)", 10,
                 lambda f: f.hdl is not None and f.hdl < 40,
                 "Raise HDL with regular aerobic exercise and healthy fats"),
            Rule("High HDL cholesterol (above 60 mg/dL)", -10,
                 lambda f: f.hdl is not None and f.hdl > 60),
        )),
        _smoking_chain(20, 8),
        _alcohol_chain(10, 5),
        RuleChain("exercise", (
            Rule("Sedentary lifestyle", 10, lambda f: f.exercise == "sedentary", _ADVICE_EXERCISE),
            Rule("Regular physical activity", -10, lambda f: f.exercise in ("active", "very_active")),
        )),
        RuleChain("sodium", (
            Rule("High sodium intake", 5, lambda f: f.sodium == "high",
                 "Cut back on processed foods and added salt"),
        )),
        _produce_credit(),
        _stress_rule(5),
        RuleChain("family_history", (
            Rule("Family history of heart disease", 15, lambda f: f.family("heart disease")),
        )),
        RuleChain("conditions", (
            Rule("Existing diabetes diagnosis", 15,
                 lambda f: f.condition("diabetes", excluding=GESTATIONAL),
                 "Keep blood sugar in your target range to protect your heart"),
        )),
    ),
)

HYPERTENSION = ConditionModel(
    condition="Hypertension",
    base_score=5,
    confidence=0.9,
    penalties=(("blood_pressure", 0.3), ("lifestyle", 0.1)),
    baseline_recommendations=(
        "Check your blood pressure at home a few times a week",
    ),
    chains=(
        _age_chain(15, 10, 8, 4),
        _bmi_chain(15, 8),
        _bp_chain(40, 25, 12),
        _smoking_chain(10, 4),
        _alcohol_chain(15, 8),
        RuleChain("exercise", (
            Rule("Sedentary lifestyle", 10, lambda f: f.exercise == "sedentary", _ADVICE_EXERCISE),
            Rule("Regular physical activity", -8, lambda f: f.exercise in ("active", "very_active")),
        )),
        RuleChain("sodium", (
            Rule("High sodium intake", 10, lambda f: f.sodium == "high",
                 "Keep sodium under 2,300 mg a day, ideally closer to 1,500 mg"),
        )),
        _produce_credit(),
        _stress_rule(12),
        RuleChain("family_history", (
            Rule("Family history of hypertension", 10, lambda f: f.family("hypertension")),
        )),
        RuleChain("conditions", (
            Rule("Existing diabetes diagnosis", 8,
                 lambda f: f.condition("diabetes", excluding=GESTATIONAL)),
        )),
    ),
)

TYPE_2_DIABETES = ConditionModel(
    condition="Type 2 Diabetes",
    base_score=5,
    confidence=0.82,
    penalties=(("lifestyle", 0.1), ("cholesterol", 0.05)),
    baseline_recommendations=(
        "Recheck fasting glucose or HbA1c at your next annual visit",
    ),
    requires="glucose",
    chains=(
        _age_chain(15, 12, 10, 5),
        _bmi_chain(15, 10),
        RuleChain("glucose", (
            Rule("Fasting glucose 126 mg/dL or higher", 35,
                 lambda f: f.glucose_mg_dl is not None and f.glucose_mg_dl >= 126,
                 "Talk to your doctor about confirming a diabetes diagnosis"),
            Rule("Fasting glucose 100 mg/dL or higher", 20,
                 lambda f: f.glucose_mg_dl is not None and f.glucose_mg_dl >= 100,
                 "Reduce refined carbohydrates and recheck glucose in three months"),
        )),
        _bp_chain(8),
        RuleChain("hdl", (
            Rule("Low HDL cholesterol (below 40 mg/dL)", 5, lambda f: f.hdl is not None and f.hdl < 40),
        )),
        _smoking_chain(8),
        _alcohol_chain(5),
        RuleChain("exercise", (
            Rule("Sedentary lifestyle", 12, lambda f: f.exercise == "sedentary", _ADVICE_EXERCISE),
            Rule("Regular physical activity", -10, lambda f: f.exercise in ("active", "very_active")),
        )),
        RuleChain("sugar", (
            Rule("High sugar intake", 12, lambda f: f.sugar == "high",
                 "Swap sugary drinks and snacks for water and whole foods"),
        )),
        _produce_credit(),
        _stress_rule(4),
        RuleChain("family_history", (
            Rule("Family history of diabetes", 15, lambda f: f.family("diabetes")),
        )),
        RuleChain("conditions", (
            Rule("Prediabetes diagnosis", 15, lambda f: f.condition("prediabetes")),
            Rule("History of gestational diabetes", 10, lambda f: f.condition("gestational diabetes")),
        )),
    ),
)

OBESITY = ConditionModel(
    condition="Obesity",
    base_score=5,
    confidence=0.9,
    penalties=(("lifestyle", 0.15),),
    baseline_recommendations=(
        "Track your weight monthly to catch changes early",
    ),
    chains=(
        RuleChain("bmi", (
            Rule("BMI 40 or higher (class III obesity)", 80, lambda f: f.bmi >= 40, _ADVICE_WEIGHT),
            Rule("BMI 35-39.9 (class II obesity)", 65, lambda f: f.bmi >= 35, _ADVICE_WEIGHT),
            Rule("BMI 30-34.9 (class I obesity)", 50, lambda f: f.bmi >= 30, _ADVICE_WEIGHT),
            Rule("BMI in overweight range (25-29.9)", 25, lambda f: f.bmi >= 25, _ADVICE_WEIGHT),
        )),
        RuleChain("exercise", (
            Rule("Sedentary lifestyle", 15, lambda f: f.exercise == "sedentary", _ADVICE_EXERCISE),
            Rule("Light activity only", 5, lambda f: f.exercise == "light", _ADVICE_EXERCISE),
            Rule("Regular physical activity", -10, lambda f: f.exercise in ("active", "very_active")),
        )),
        RuleChain("sugar", (
            Rule("High sugar intake", 10, lambda f: f.sugar == "high",
                 "Swap sugary drinks and snacks for water and whole foods"),
        )),
        _produce_credit(),
        _alcohol_chain(5),
        _stress_rule(5),
        RuleChain("sleep", (
            Rule("Short sleep (under 6 hours)", 5,
                 lambda f: f.sleep_hours is not None and f.sleep_hours < 6,
                 "Aim for 7-9 hours of sleep; short sleep drives appetite"),
        )),
        RuleChain("family_history", (
            Rule("Family history of obesity", 10, lambda f: f.family("obesity")),
        )),
    ),
)

# Evaluation and output order
CONDITION_MODELS: tuple[ConditionModel, ...] = (
    CARDIOVASCULAR,
    TYPE_2_DIABETES,
    HYPERTENSION,
    OBESITY,
)
