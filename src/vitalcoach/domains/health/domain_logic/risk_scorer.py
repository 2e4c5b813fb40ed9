"""Rule-based risk scoring.

Folds the condition tables in ``risk_rules`` over one user's inputs and
produces a ``RiskAssessment`` per tracked condition.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from vitalcoach.domains.health.domain_logic.health_models import (
    HealthProfile,
    LifestyleProfile,
    RiskAssessment,
)
from vitalcoach.domains.health.domain_logic.metrics_calculator import bmi
from vitalcoach.domains.health.domain_logic.risk_rules import (
    CONDITION_MODELS,
    ConditionModel,
    RiskFactors,
)

logger = logging.getLogger(__name__)

# Upper bound (exclusive) of each risk level, checked in order
RISK_LEVEL_THRESHOLDS: list[tuple[int, str]] = [
    (20, "low"),
    (40, "moderate"),
    (60, "high"),
]


def _clamp(value: float, lo: float = 0, hi: float = 100) -> float:
    return max(lo, min(hi, value))


def risk_level(score: float) -> str:
    for upper, level in RISK_LEVEL_THRESHOLDS:
        if score < upper:
            return level
    return "very_high"


def score_condition(model: ConditionModel, factors: RiskFactors) -> RiskAssessment | None:
    """Evaluate one condition table. Returns None when required data is missing."""
    if model.requires is not None and not factors.has(model.requires):
        logger.debug("Skipping %s: no %s data", model.condition, model.requires)
        return None

    score = model.base_score
    increasing: list[str] = []
    decreasing: list[str] = []
    recommendations = list(model.baseline_recommendations)

    for chain in model.chains:
        rule = chain.evaluate(factors)
        if rule is None or rule.delta == 0:
            continue
        score += rule.delta
        if rule.delta > 0:
            increasing.append(rule.label)
            if rule.advice and rule.advice not in recommendations:
                recommendations.append(rule.advice)
        else:
            decreasing.append(rule.label)

    confidence = model.confidence
    for data, penalty in model.penalties:
        if not factors.has(data):
            confidence -= penalty

    final = int(_clamp(score))
    return RiskAssessment(
        condition=model.condition,
        score=final,
        risk_level=risk_level(final),
        increasing_factors=increasing,
        decreasing_factors=decreasing,
        recommendations=recommendations,
        confidence=round(max(0.0, confidence), 2),
    )


# ---------------------------------------------------------------------------
# Model interface
# ---------------------------------------------------------------------------

@runtime_checkable
class RiskModel(Protocol):
    """Anything that turns a profile and lifestyle into risk assessments."""

    def assess(
        self, profile: HealthProfile, lifestyle: LifestyleProfile | None = None
    ) -> list[RiskAssessment]:
        ...


class RuleBasedRiskModel:
    """Additive scorer over declarative condition tables."""

    def __init__(self, conditions: tuple[ConditionModel, ...] = CONDITION_MODELS):
        self._conditions = conditions

    @property
    def conditions(self) -> list[str]:
        return [c.condition for c in self._conditions]

    def assess(
        self, profile: HealthProfile, lifestyle: LifestyleProfile | None = None
    ) -> list[RiskAssessment]:
        profile.validate()
        factors = RiskFactors.from_inputs(
            profile, lifestyle, bmi(profile.weight_kg, profile.height_cm)
        )

        results = []
        for model in self._conditions:
            assessment = score_condition(model, factors)
            if assessment is not None:
                results.append(assessment)

        logger.debug(
            "Risk assessment: %s",
            ", ".join(f"{r.condition}={r.score}" for r in results),
        )
        return results


_default_model = RuleBasedRiskModel()


def assess_risks(
    profile: HealthProfile, lifestyle: LifestyleProfile | None = None
) -> list[RiskAssessment]:
    """Risk assessments for every tracked condition with enough data.

    Raises ``ValidationError`` if the profile is missing required fields.
    """
    return _default_model.assess(profile, lifestyle)
