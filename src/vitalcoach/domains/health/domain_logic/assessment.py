"""Assessment orchestration: the full engine pipeline for one or many users."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Sequence

from vitalcoach.domains.health.domain_logic.behavior_analyzer import (
    analyze_behavior,
    medication_adherence_report,
)
from vitalcoach.domains.health.domain_logic.coaching_synthesizer import synthesize_coaching
from vitalcoach.domains.health.domain_logic.health_models import (
    BehaviorLog,
    HealthAssessment,
    HealthProfile,
    LifestyleProfile,
    Medication,
    ValidationError,
)
from vitalcoach.domains.health.domain_logic.interaction_checker import (
    InteractionTable,
    check_medication_interactions,
)
from vitalcoach.domains.health.domain_logic.metrics_calculator import compute_metrics
from vitalcoach.domains.health.domain_logic.risk_scorer import assess_risks

logger = logging.getLogger(__name__)


def run_health_assessment(
    profile: HealthProfile,
    lifestyle: LifestyleProfile | None = None,
    behavior_log: BehaviorLog | None = None,
    medications: Sequence[Medication] = (),
    *,
    activity_level: str = "sedentary",
    interaction_table: InteractionTable | None = None,
    rotation_index: int = 0,
) -> HealthAssessment:
    """Metrics, risks, interactions, behavior insights, coaching and per-medication adherence.

    Raises ``ValidationError`` if the profile or a behavior log is malformed.
    """
    metrics = compute_metrics(profile, activity_level)
    risks = assess_risks(profile, lifestyle)
    interactions = check_medication_interactions(medications, interaction_table)
    insights = analyze_behavior(behavior_log) if behavior_log is not None else []
    coaching = synthesize_coaching(profile, risks, insights, rotation_index=rotation_index)
    adherence = (
        medication_adherence_report(behavior_log.medication, medications)
        if behavior_log is not None else []
    )

    return HealthAssessment(
        metrics=metrics,
        risks=risks,
        interactions=interactions,
        behavior_insights=insights,
        coaching=coaching,
        medication_adherence=adherence,
    )


# ---------------------------------------------------------------------------
# Population batches
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AssessmentRequest:
    user_id: str
    profile: HealthProfile
    lifestyle: LifestyleProfile | None = None
    behavior_log: BehaviorLog | None = None
    medications: tuple[Medication, ...] = ()
    activity_level: str = "sedentary"


@dataclass
class PopulationResult:
    user_id: str
    assessment: HealthAssessment | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "assessment": self.assessment.to_dict() if self.assessment else None,
            "error": self.error,
        }


def assess_population(
    requests: Sequence[AssessmentRequest],
    max_workers: int | None = None,
    *,
    interaction_table: InteractionTable | None = None,
) -> list[PopulationResult]:
    """Run independent assessments on a thread pool.

    Results keep request order. A ``ValidationError`` for one user is
    recorded on that user's result and does not stop the batch.
    """

    def _one(request: AssessmentRequest) -> PopulationResult:
        try:
            assessment = run_health_assessment(
                request.profile,
                request.lifestyle,
                request.behavior_log,
                request.medications,
                activity_level=request.activity_level,
                interaction_table=interaction_table,
            )
        except ValidationError as exc:
            logger.warning("Assessment failed for user %s: %s", request.user_id, exc)
            return PopulationResult(user_id=request.user_id, error=str(exc))
        return PopulationResult(user_id=request.user_id, assessment=assessment)

    if not requests:
        return []
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        results = list(pool.map(_one, requests))

    failed = sum(1 for r in results if not r.ok)
    logger.info("Assessed %d users (%d failed)", len(results), failed)
    return results
