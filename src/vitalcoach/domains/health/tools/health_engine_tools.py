"""MCP tools exposing the health engine.

Each tool parses JSON-shaped arguments into the canonical models, calls
the engine, and returns a JSON string. ``ValidationError`` propagates so
FastMCP reports it as a tool error.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from vitalcoach.domains.health.connectors import HealthDataProvider
    from vitalcoach.domains.health.domain_logic.interaction_checker import InteractionTable

from vitalcoach.domains.health.connectors.payload_parser import (
    parse_behavior_log,
    parse_enum,
    parse_health_profile,
    parse_lifestyle,
    parse_medications,
)
from vitalcoach.domains.health.domain_logic.assessment import (
    AssessmentRequest,
    assess_population,
    run_health_assessment,
)
from vitalcoach.domains.health.domain_logic.behavior_analyzer import (
    analyze_behavior,
    medication_adherence_report,
)
from vitalcoach.domains.health.domain_logic.coaching_synthesizer import synthesize_coaching
from vitalcoach.domains.health.domain_logic.health_models import (
    EXERCISE_FREQUENCIES,
    BehaviorInsight,
    RiskAssessment,
    ValidationError,
)
from vitalcoach.domains.health.domain_logic.interaction_checker import (
    check_interactions,
    check_medication_interactions,
)
from vitalcoach.domains.health.domain_logic.metrics_calculator import compute_metrics
from vitalcoach.domains.health.domain_logic.risk_scorer import assess_risks

logger = logging.getLogger(__name__)


def register_health_engine_tools(
    mcp: FastMCP,
    provider: HealthDataProvider,
    interaction_table: InteractionTable,
    default_activity_level: str = "sedentary",
    batch_max_workers: int | None = None,
) -> None:
    """Register the engine tools on the MCP server."""

    def _activity(level: str) -> str:
        return parse_enum(level or None, "activity_level", EXERCISE_FREQUENCIES, default_activity_level)

    @mcp.tool
    async def compute_health_metrics(
        ctx: Context,
        profile: dict[str, Any],
        activity_level: str = "",
    ) -> str:
        """Compute BMI, BMI category, BMR, TDEE, max heart rate and heart-rate zones.

        Args:
            profile: Health profile (age, gender, height_cm, weight_kg, optional
                heart_rate readings for training zones).
            activity_level: sedentary, light, moderate, active or very_active.
        """
        metrics = compute_metrics(parse_health_profile(profile), _activity(activity_level))
        return json.dumps(metrics.to_dict())

    @mcp.tool
    async def assess_health_risks(
        ctx: Context,
        profile: dict[str, Any],
        lifestyle: dict[str, Any] | None = None,
    ) -> str:
        """Score cardiovascular disease, type 2 diabetes, hypertension and obesity risk.

        Type 2 diabetes is only assessed when a blood glucose reading is present.

        Args:
            profile: Health profile with optional blood pressure, glucose and
                cholesterol history.
            lifestyle: Optional lifestyle answers (smoking, alcohol, exercise,
                diet, sleep, stress). Missing lifestyle lowers confidence.
        """
        risks = assess_risks(parse_health_profile(profile), parse_lifestyle(lifestyle))
        return json.dumps({"risks": [r.to_dict() for r in risks]})

    @mcp.tool(name="check_medication_interactions")
    async def check_medication_interactions_tool(
        ctx: Context,
        medication_ids: list[str] | None = None,
        medications: list[dict[str, Any]] | None = None,
    ) -> str:
        """Look up known interactions between medications.

        Pass either bare ids or medication objects with a status; only
        active medications are checked in the second form. An empty result
        means no known interaction, not a guarantee of safety.

        Args:
            medication_ids: Medication ids to check pairwise.
            medications: Medication objects (id, name, status).
        """
        if medications is not None:
            findings = check_medication_interactions(parse_medications(medications), interaction_table)
        else:
            findings = check_interactions(medication_ids or [], interaction_table)
        return json.dumps({"interactions": [f.to_dict() for f in findings]})

    @mcp.tool
    async def analyze_behavior_log(
        ctx: Context,
        behavior_log: dict[str, Any],
        medications: list[dict[str, Any]] | None = None,
    ) -> str:
        """Score sleep, exercise, medication adherence and nutrition habits.

        Doses tagged with a medication_id also get a per-medication adherence
        report (counts, ratio, current streak, weekly trend).

        Args:
            behavior_log: Samples under sleep, exercise, medication and nutrition.
            medications: Optional medication list for names; inactive ones are
                left out of the adherence report.
        """
        log = parse_behavior_log(behavior_log)
        insights = analyze_behavior(log)
        adherence = medication_adherence_report(log.medication, parse_medications(medications))
        return json.dumps({
            "insights": [i.to_dict() for i in insights],
            "medication_adherence": [a.to_dict() for a in adherence],
        })

    @mcp.tool
    async def synthesize_coaching_messages(
        ctx: Context,
        profile: dict[str, Any] | None = None,
        risk_assessments: list[dict[str, Any]] | None = None,
        behavior_insights: list[dict[str, Any]] | None = None,
        rotation_index: int = 0,
    ) -> str:
        """Turn risk assessments, behavior insights and latest vitals into coaching messages.

        Args:
            profile: Optional health profile; its latest vitals trigger alerts.
            risk_assessments: Output of assess_health_risks.
            behavior_insights: Output of analyze_behavior_log.
            rotation_index: Picks the motivational message when nothing else applies.
        """
        parsed_profile = parse_health_profile(profile) if profile is not None else None
        risks = [RiskAssessment.from_dict(r) for r in risk_assessments or []]
        insights = [BehaviorInsight.from_dict(i) for i in behavior_insights or []]
        messages = synthesize_coaching(
            parsed_profile, risks, insights, rotation_index=rotation_index
        )
        return json.dumps({"coaching": [m.to_dict() for m in messages]})

    @mcp.tool
    async def full_health_assessment(
        ctx: Context,
        profile: dict[str, Any] | None = None,
        lifestyle: dict[str, Any] | None = None,
        behavior_log: dict[str, Any] | None = None,
        medications: list[dict[str, Any]] | None = None,
        activity_level: str = "",
        period: str = "last_14_days",
    ) -> str:
        """Run the whole engine: metrics, risks, interactions, behavior insights and coaching.

        With no profile, data comes from the configured health data provider.

        Args:
            profile: Health profile. Omit to use the connected data source.
            lifestyle: Lifestyle answers.
            behavior_log: Behavior samples.
            medications: Medication list with status.
            activity_level: Activity level for TDEE.
            period: Behavior log window when reading from the data source.
        """
        provenance: dict[str, str] = {"data_source": "payload"}
        if profile is None:
            await ctx.info(f"Fetching health data from {provider.data_source} source")
            profile = await provider.get_profile()
            lifestyle = await provider.get_lifestyle()
            behavior_log = await provider.get_behavior_log(period)
            medications = await provider.get_medications()
            provenance = provider.get_provenance()

        assessment = run_health_assessment(
            parse_health_profile(profile),
            parse_lifestyle(lifestyle),
            parse_behavior_log(behavior_log),
            parse_medications(medications),
            activity_level=_activity(activity_level),
            interaction_table=interaction_table,
        )
        logger.info(
            "Full assessment: %d risks, %d interactions, %d coaching messages",
            len(assessment.risks), len(assessment.interactions), len(assessment.coaching),
        )
        return json.dumps({**assessment.to_dict(), "data_context": provenance})

    @mcp.tool
    async def assess_population_batch(ctx: Context, users: list[dict[str, Any]]) -> str:
        """Run the full assessment for many users at once.

        A malformed record is reported on that user's result and does not
        stop the batch.

        Args:
            users: Records with user_id, profile and optional lifestyle,
                behavior_log, medications and activity_level.
        """
        requests = []
        errors: dict[int, dict[str, Any]] = {}
        for index, user in enumerate(users):
            user_id = str(user.get("user_id", user.get("userId", index)))
            try:
                requests.append(AssessmentRequest(
                    user_id=user_id,
                    profile=parse_health_profile(user.get("profile") or {}),
                    lifestyle=parse_lifestyle(user.get("lifestyle")),
                    behavior_log=parse_behavior_log(user.get("behavior_log", user.get("behaviorLog"))),
                    medications=parse_medications(user.get("medications")),
                    activity_level=_activity(user.get("activity_level", "")),
                ))
            except ValidationError as exc:
                errors[index] = {"user_id": user_id, "assessment": None, "error": str(exc)}

        results = iter(assess_population(
            requests, batch_max_workers, interaction_table=interaction_table
        ))
        # Merge parse failures back in request order
        ordered = [
            errors[i] if i in errors else next(results).to_dict()
            for i in range(len(users))
        ]
        return json.dumps({"results": ordered})
