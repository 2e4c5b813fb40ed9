"""Coaching message synthesis.

Merges behavior insights, risk assessments and direct vital-threshold
breaches into one deduplicated, priority-ordered message list. This
component never raises: a malformed insight or risk is skipped on its own,
and the motivational fallback fills an otherwise empty list.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Sequence, TypeVar

from vitalcoach.domains.health.domain_logic.health_models import (
    PRIORITY_RANK,
    BehaviorInsight,
    CoachingMessage,
    HealthProfile,
    RiskAssessment,
    ValidationError,
    latest_reading,
)

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

ACHIEVEMENT_SCORE = 90
ADHERENCE_ALERT_RATIO = 0.8
SYSTOLIC_ALERT = 140
DIASTOLIC_ALERT = 90
FASTING_GLUCOSE_ALERT = 126

CATEGORY_TITLES = {
    "sleep": "Improve Your Sleep",
    "exercise": "Boost Your Activity",
    "medication": "Medication Reminder",
    "nutrition": "Nutrition Check-In",
}

ACHIEVEMENT_TITLES = {
    "sleep": "Great Sleep Habits",
    "exercise": "Staying Active",
    "medication": "Medication On Track",
    "nutrition": "Eating Well",
}

# (category, observation substring) -> suggested action; first match wins
SUGGESTED_ACTIONS: list[tuple[str, str, str]] = [
    ("sleep", "below the recommended", "Set a bedtime alarm eight hours before you need to wake up"),
    ("sleep", "above the recommended", "Keep the same wake time every day, including weekends"),
    ("sleep", "varies significantly", "Go to bed and wake up at the same time every day"),
    ("sleep", "Bedtime shifts", "Start a 30-minute wind-down routine at the same time each night"),
    ("sleep", "quality is low", "Keep your bedroom dark and cool and put screens away before bed"),
    ("exercise", "below the 3+ target", "Schedule three 30-minute walks into your calendar this week"),
    ("exercise", "shorter than", "Add five minutes to each session until you reach 30"),
    ("exercise", "low intensity", "Pick up the pace on one session this week"),
    ("exercise", "No exercise logged", "Book a recurring weekly workout slot"),
    ("medication", "Missed", "Set a daily medication alarm or use a pill organizer"),
    ("medication", "slipped", "Check your refills and restart your reminder routine"),
    ("nutrition", "below the 64 oz", "Keep a water bottle with you throughout the day"),
    ("nutrition", "meal range", "Plan three balanced meals a day"),
    ("nutrition", "varies a lot", "Prep meals ahead for the week"),
]

DEFAULT_ACTIONS = {
    "sleep": "Aim for 7-9 hours of sleep on a regular schedule",
    "exercise": "Aim for at least 150 minutes of moderate activity per week",
    "medication": "Take your medications at the same time every day",
    "nutrition": "Drink water regularly and keep to three balanced meals",
}

MOTIVATIONAL_MESSAGES: list[tuple[str, str]] = [
    ("Keep Up the Good Work",
     "Your numbers look steady. Small daily habits are what keep them that way."),
    ("Every Step Counts",
     "A short walk today is still progress. Consistency beats intensity."),
    ("Check In With Yourself",
     "Take a moment to notice how you feel today. Sleep, water and movement all add up."),
    ("Stay Curious About Your Health",
     "Logging regularly helps spot changes early. Keep tracking your habits."),
]


def suggested_action(category: str, observations: Sequence[str]) -> str:
    """Look up the coaching action for a category's first matching observation."""
    for observation in observations:
        for cat, fragment, action in SUGGESTED_ACTIONS:
            if cat == category and fragment in observation:
                return action
    return DEFAULT_ACTIONS.get(category, DEFAULT_ACTIONS["exercise"])


def motivational_message(rotation_index: int = 0) -> CoachingMessage:
    title, text = MOTIVATIONAL_MESSAGES[rotation_index % len(MOTIVATIONAL_MESSAGES)]
    return CoachingMessage(
        category="general",
        priority="low",
        title=title,
        message=text,
        actionable=False,
    )


def _latest_or_last(series):
    """Latest by timestamp; unparseable timestamps fall back to list order."""
    try:
        return latest_reading(series)
    except ValidationError:
        logger.warning("Unparseable reading timestamp; using last listed reading")
        return series[-1] if series else None


# ---------------------------------------------------------------------------
# Message builders
# ---------------------------------------------------------------------------

def _insight_messages(insight: BehaviorInsight) -> list[CoachingMessage]:
    if not isinstance(insight.category, str):
        raise TypeError(f"Insight category must be a string, got {insight.category!r}")
    messages = []
    if insight.sentiment == "negative":
        title = CATEGORY_TITLES.get(insight.category, "Healthy Habits")
        issues = insight.observations or [f"Your {insight.category} score is low"]
        messages.append(CoachingMessage(
            category=insight.category,
            priority="high" if insight.category == "medication" else "medium",
            title=title,
            message=f"Your {insight.category} score is {insight.score}/100. {issues[0]}.",
            actionable=True,
            suggested_action=suggested_action(insight.category, issues),
        ))

    if (
        insight.category == "medication"
        and insight.adherence_ratio is not None
        and insight.adherence_ratio < ADHERENCE_ALERT_RATIO
    ):
        messages.append(CoachingMessage(
            category="medication",
            priority="high",
            title=CATEGORY_TITLES["medication"],
            message=(
                f"You took {insight.adherence_ratio:.0%} of your scheduled doses. "
                "Staying on schedule keeps your treatment working."
            ),
            actionable=True,
            suggested_action=suggested_action("medication", ["Missed"]),
        ))

    if insight.sentiment == "positive" and insight.score >= ACHIEVEMENT_SCORE:
        messages.append(CoachingMessage(
            category=insight.category,
            priority="low",
            title=ACHIEVEMENT_TITLES.get(insight.category, "Nice Work"),
            message=f"Your {insight.category} score is {insight.score}/100. Keep it going!",
            actionable=False,
        ))
    return messages


def _risk_messages(risk: RiskAssessment) -> list[CoachingMessage]:
    if risk.risk_level == "very_high":
        priority = "high"
    elif risk.risk_level == "high":
        priority = "medium"
    else:
        return []
    factors = ", ".join(risk.increasing_factors[:3]) or "several risk factors"
    return [CoachingMessage(
        category="general",
        priority=priority,
        title=f"{risk.condition} Risk",
        message=(
            f"Your {risk.condition.lower()} risk score is {risk.score}/100 "
            f"({risk.risk_level.replace('_', ' ')}). Main factors: {factors}."
        ),
        actionable=True,
        suggested_action=risk.recommendations[0] if risk.recommendations else None,
    )]


def _vital_messages(profile: HealthProfile | None) -> list[CoachingMessage]:
    if profile is None:
        return []
    messages = []

    bp = _latest_or_last(profile.blood_pressure)
    if bp is not None and (bp.systolic >= SYSTOLIC_ALERT or bp.diastolic >= DIASTOLIC_ALERT):
        messages.append(CoachingMessage(
            category="vitals",
            priority="high",
            title="High Blood Pressure Reading",
            message=(
                f"Your latest reading of {bp.systolic:.0f}/{bp.diastolic:.0f} mmHg "
                "is in the high range."
            ),
            actionable=True,
            suggested_action=(
                "Recheck after five minutes of rest; if it stays at or above 140/90, contact your doctor"
            ),
        ))

    glucose = _latest_or_last(profile.blood_glucose)
    if glucose is not None and glucose.mg_dl >= FASTING_GLUCOSE_ALERT:
        messages.append(CoachingMessage(
            category="vitals",
            priority="high",
            title="High Fasting Glucose Reading",
            message=(
                f"Your latest fasting glucose of {glucose.mg_dl:.0f} mg/dL "
                "is in the diabetes range."
            ),
            actionable=True,
            suggested_action="Contact your doctor to schedule a confirmatory test",
        ))
    return messages


def _dedupe_and_sort(messages: list[CoachingMessage]) -> list[CoachingMessage]:
    kept: dict[tuple[str, str], CoachingMessage] = {}
    for msg in messages:
        current = kept.get(msg.key)
        if current is None or PRIORITY_RANK[msg.priority] < PRIORITY_RANK[current.priority]:
            kept[msg.key] = msg
    return sorted(kept.values(), key=lambda m: (PRIORITY_RANK[m.priority], str(m.category)))


_MALFORMED = (AttributeError, KeyError, TypeError, ValueError)


def _collect(
    build: Callable[[_T], list[CoachingMessage]], items: Iterable[_T], kind: str
) -> list[CoachingMessage]:
    messages: list[CoachingMessage] = []
    for item in items:
        try:
            messages += build(item)
        except _MALFORMED:
            logger.warning("Skipping malformed %s in coaching synthesis", kind, exc_info=True)
    return messages


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def synthesize_coaching(
    profile: HealthProfile | None,
    risk_assessments: Sequence[RiskAssessment] = (),
    behavior_insights: Sequence[BehaviorInsight] = (),
    *,
    rotation_index: int = 0,
) -> list[CoachingMessage]:
    """Deduplicated coaching messages, high priority first.

    Always returns at least one message. Vital-threshold alerts are built
    independently of insights and risks, so a bad item in either never
    hides them.
    """
    messages = _collect(_insight_messages, behavior_insights or (), "behavior insight")
    messages += _collect(_risk_messages, risk_assessments or (), "risk assessment")
    messages += _collect(_vital_messages, [profile], "profile")
    if not messages:
        messages.append(motivational_message(rotation_index))
    return _dedupe_and_sort(messages)
