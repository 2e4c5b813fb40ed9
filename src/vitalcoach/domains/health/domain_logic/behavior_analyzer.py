"""Behavior insight analysis: longitudinal logs -> per-category insights.

Each category with data gets a 0-100 normalcy score built from a weighted
blend of sub-signals in [0, 1], a sentiment band, and one observation per
check. Out-of-range observations carry a matching suggestion.

All formulas are deterministic.
"""

from __future__ import annotations

import logging
import math
from datetime import timedelta
from statistics import mean, pstdev
from typing import Sequence

from vitalcoach.domains.health.domain_logic.health_models import (
    EXERCISE_INTENSITIES,
    AdherenceWeek,
    BehaviorInsight,
    BehaviorLog,
    ExerciseSample,
    Medication,
    MedicationAdherence,
    MedicationDoseSample,
    NutritionSample,
    SleepSample,
    ValidationError,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

POSITIVE_THRESHOLD = 75
NEGATIVE_THRESHOLD = 50

SLEEP_TARGET_HOURS = (7.0, 9.0)
EXERCISE_SESSIONS_TARGET = 3
EXERCISE_MINUTES_TARGET = 30
HYDRATION_TARGET_OZ = 64
MEAL_RANGE = (3, 5)
RECENT_DOSE_WINDOW = 7
ADHERENCE_TARGET = 0.8

INTENSITY_VALUES = {"low": 0.3, "moderate": 0.7, "high": 1.0}

# Neutral value when a sub-signal cannot be computed
FALLBACK_SUBSCORE = 0.5


def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


def _to_score(blend: float) -> int:
    return int(_clamp(math.floor(blend * 100 + 0.5), 0, 100))


def sentiment_for(score: int) -> str:
    if score >= POSITIVE_THRESHOLD:
        return "positive"
    if score < NEGATIVE_THRESHOLD:
        return "negative"
    return "neutral"


def _clock_minutes(value: str) -> int:
    try:
        hours, minutes = value.split(":")[:2]
        total = int(hours) * 60 + int(minutes)
    except (AttributeError, ValueError) as exc:
        raise ValidationError(f"Invalid HH:MM time: {value!r}") from exc
    if not 0 <= total < 24 * 60:
        raise ValidationError(f"Invalid HH:MM time: {value!r}")
    return total


def _time_consistency(minutes: list[int]) -> float:
    if len(minutes) < 2:
        return FALLBACK_SUBSCORE
    return _clamp(1 - pstdev(minutes) / 120)


class _Findings:
    """Collects observations and the suggestions for out-of-range ones."""

    def __init__(self) -> None:
        self.observations: list[str] = []
        self.suggestions: list[str] = []

    def issue(self, text: str, suggestion: str) -> None:
        self.observations.append(text)
        if suggestion not in self.suggestions:
            self.suggestions.append(suggestion)

    def check(self, in_range: bool, ok_text: str, issue_text: str, suggestion: str) -> None:
        if in_range:
            self.observations.append(ok_text)
        else:
            self.issue(issue_text, suggestion)


def _insight(category: str, blend: float, findings: _Findings, count: int, **extra) -> BehaviorInsight:
    score = _to_score(blend)
    return BehaviorInsight(
        category=category,
        score=score,
        sentiment=sentiment_for(score),
        observations=findings.observations,
        suggestions=findings.suggestions,
        sample_count=count,
        **extra,
    )


# ---------------------------------------------------------------------------
# Sleep
# ---------------------------------------------------------------------------

def analyze_sleep(samples: tuple[SleepSample, ...] | list[SleepSample]) -> BehaviorInsight | None:
    """Sleep duration, night-to-night variability and timing consistency.

    Weights: duration 40%, (1 - variability) 30%, bedtime 15%, wake time 15%.
    """
    if not samples:
        return None
    for s in samples:
        if s.hours_slept is None or not 0 <= s.hours_slept <= 24:
            raise ValidationError(f"hours_slept must be within 0-24, got {s.hours_slept!r}")
        if not 1 <= s.quality <= 10:
            raise ValidationError(f"sleep quality must be within 1-10, got {s.quality!r}")

    hours = [s.hours_slept for s in samples]
    avg_hours = mean(hours)
    low, high = SLEEP_TARGET_HOURS
    if low <= avg_hours <= high:
        duration = 1.0
    else:
        gap = low - avg_hours if avg_hours < low else avg_hours - high
        duration = _clamp(1 - gap / 3)

    hours_spread = pstdev(hours) if len(hours) > 1 else 0.0
    variability = _clamp(hours_spread / 2)

    # Bedtimes before noon belong to the previous evening
    bedtimes = [
        m + 24 * 60 if m < 12 * 60 else m
        for m in (_clock_minutes(s.bedtime) for s in samples if s.bedtime)
    ]
    wake_times = [_clock_minutes(s.wake_time) for s in samples if s.wake_time]
    bedtime_consistency = _time_consistency(bedtimes)
    wake_consistency = _time_consistency(wake_times)

    blend = (
        0.40 * duration
        + 0.30 * (1 - variability)
        + 0.15 * bedtime_consistency
        + 0.15 * wake_consistency
    )

    findings = _Findings()
    if avg_hours > high:
        findings.issue(
            f"Average sleep of {avg_hours:.1f} hours is above the recommended 7-9 hours",
            "Keep a fixed wake time; regularly sleeping past 9 hours can signal poor sleep quality",
        )
    else:
        findings.check(
            avg_hours >= low,
            f"Average sleep of {avg_hours:.1f} hours is within the recommended 7-9 hours",
            f"Average sleep of {avg_hours:.1f} hours is below the recommended 7-9 hours",
            "Increase sleep duration to at least 7 hours per night",
        )
    findings.check(
        hours_spread <= 1.0,
        "Sleep duration is consistent from night to night",
        "Sleep duration varies significantly from night to night",
        "Try to maintain a consistent sleep schedule, even on weekends",
    )
    if len(bedtimes) >= 2:
        findings.check(
            pstdev(bedtimes) <= 60,
            "Bedtime is consistent",
            "Bedtime shifts by more than an hour across the week",
            "Set a regular bedtime and start winding down 30 minutes before it",
        )
    avg_quality = mean(s.quality for s in samples)
    findings.check(
        avg_quality >= 6,
        f"Self-rated sleep quality is good (average {avg_quality:.1f}/10)",
        f"Self-rated sleep quality is low (average {avg_quality:.1f}/10)",
        "Limit screens and caffeine in the evening to improve sleep quality",
    )
    return _insight("sleep", blend, findings, len(samples))


# ---------------------------------------------------------------------------
# Exercise
# ---------------------------------------------------------------------------

def analyze_exercise(samples: tuple[ExerciseSample, ...] | list[ExerciseSample]) -> BehaviorInsight | None:
    """Session frequency, length, intensity and week-to-week consistency.

    Weights: frequency 30%, duration 25%, intensity 25%, consistency 20%.
    The observation window spans the logged dates and is at least one week.
    """
    if not samples:
        return None
    for s in samples:
        if s.intensity not in EXERCISE_INTENSITIES:
            raise ValidationError(
                f"intensity must be one of {', '.join(EXERCISE_INTENSITIES)}, got {s.intensity!r}"
            )

    dates = [parse_timestamp(s.date) for s in samples]
    first = min(dates)
    window_days = max(7, (max(dates) - first).days + 1)
    total_weeks = math.ceil(window_days / 7)

    sessions_per_week = len(samples) / (window_days / 7)
    frequency = _clamp(sessions_per_week / 4)

    minutes = [s.duration_minutes for s in samples if s.duration_minutes is not None]
    avg_minutes = mean(minutes) if minutes else None
    duration = _clamp(avg_minutes / EXERCISE_MINUTES_TARGET) if avg_minutes is not None else FALLBACK_SUBSCORE

    intensity = mean(INTENSITY_VALUES[s.intensity] for s in samples)

    active_weeks = len({(d - first).days // 7 for d in dates})
    consistency = _clamp(active_weeks / total_weeks)

    blend = 0.30 * frequency + 0.25 * duration + 0.25 * intensity + 0.20 * consistency

    findings = _Findings()
    findings.check(
        sessions_per_week >= EXERCISE_SESSIONS_TARGET,
        f"Averaging {sessions_per_week:.1f} exercise sessions per week, meeting the 3+ target",
        f"Averaging {sessions_per_week:.1f} exercise sessions per week, below the 3+ target",
        "Aim for at least 30 minutes of physical activity daily",
    )
    if avg_minutes is not None:
        findings.check(
            avg_minutes >= EXERCISE_MINUTES_TARGET,
            f"Sessions average {avg_minutes:.0f} minutes",
            f"Sessions average {avg_minutes:.0f} minutes, shorter than the 30-minute target",
            "Extend sessions gradually toward 30 minutes",
        )
    findings.check(
        intensity >= 0.5,
        "Good mix of moderate and high intensity sessions",
        "Most sessions are low intensity",
        "Add moderate-intensity sessions such as brisk walking or cycling",
    )
    findings.check(
        active_weeks == total_weeks,
        "Active every week of the period",
        f"No exercise logged in {total_weeks - active_weeks} of {total_weeks} weeks",
        "Schedule workouts at fixed times each week",
    )
    return _insight("exercise", blend, findings, len(samples))


# ---------------------------------------------------------------------------
# Medication adherence
# ---------------------------------------------------------------------------

def analyze_medication(
    samples: tuple[MedicationDoseSample, ...] | list[MedicationDoseSample],
) -> BehaviorInsight | None:
    """Adherence over scheduled doses, weighted 70% overall and 30% recent.

    Returns None when nothing was scheduled.
    """
    scheduled = sorted(
        (s for s in samples if s.scheduled),
        key=lambda s: parse_timestamp(s.date),
    )
    if not scheduled:
        return None

    taken = sum(1 for s in scheduled if s.taken_as_scheduled)
    adherence = taken / len(scheduled)
    recent = scheduled[-RECENT_DOSE_WINDOW:]
    recent_adherence = sum(1 for s in recent if s.taken_as_scheduled) / len(recent)

    blend = 0.7 * adherence + 0.3 * recent_adherence

    findings = _Findings()
    missed = len(scheduled) - taken
    findings.check(
        adherence >= ADHERENCE_TARGET,
        f"Took {taken} of {len(scheduled)} scheduled doses ({adherence:.0%} adherence)",
        f"Missed {missed} of {len(scheduled)} scheduled doses ({adherence:.0%} adherence)",
        "Set a daily alarm or use a pill organizer to stay on schedule",
    )
    findings.check(
        recent_adherence >= adherence - 0.1,
        "Recent doses are on track",
        f"Adherence has slipped over the last {len(recent)} doses",
        "Review what changed recently and refill prescriptions before they run out",
    )
    return _insight(
        "medication", blend, findings, len(scheduled),
        adherence_ratio=round(adherence, 4),
    )


def _current_streak(doses: list[MedicationDoseSample]) -> int:
    streak = 0
    for dose in reversed(doses):
        if not dose.taken_as_scheduled:
            break
        streak += 1
    return streak


def _weekly_trend(doses: list[MedicationDoseSample]) -> list[AdherenceWeek]:
    first_day = parse_timestamp(doses[0].date).date()
    weeks: dict[int, list[bool]] = {}
    for dose in doses:
        offset = (parse_timestamp(dose.date).date() - first_day).days // 7
        weeks.setdefault(offset, []).append(dose.taken_as_scheduled)
    return [
        AdherenceWeek(
            week_start=(first_day + timedelta(days=7 * offset)).isoformat(),
            adherence_ratio=round(sum(taken) / len(taken), 4),
            scheduled_doses=len(taken),
        )
        for offset, taken in sorted(weeks.items())
    ]


def medication_adherence_report(
    samples: Sequence[MedicationDoseSample],
    medications: Sequence[Medication] = (),
) -> list[MedicationAdherence]:
    """Per-medication dose counts, adherence, current streak and weekly trend.

    Doses without a ``medication_id`` only count toward the overall
    medication insight. When a medication list is given, inactive
    medications are left out and names are filled in. Sorted by id.
    """
    by_id = {m.id: m for m in medications}
    grouped: dict[str, list[MedicationDoseSample]] = {}
    for sample in samples:
        if sample.scheduled and sample.medication_id is not None:
            grouped.setdefault(sample.medication_id, []).append(sample)

    reports = []
    for medication_id in sorted(grouped):
        med = by_id.get(medication_id)
        if med is not None and not med.is_active:
            continue
        doses = sorted(grouped[medication_id], key=lambda s: parse_timestamp(s.date))
        taken = sum(1 for d in doses if d.taken_as_scheduled)
        reports.append(MedicationAdherence(
            medication_id=medication_id,
            medication_name=med.name if med is not None else None,
            taken_doses=taken,
            missed_doses=len(doses) - taken,
            total_scheduled_doses=len(doses),
            adherence_ratio=round(taken / len(doses), 4),
            current_streak=_current_streak(doses),
            weekly_trend=_weekly_trend(doses),
        ))
    logger.debug("Adherence report for %d medications", len(reports))
    return reports


# ---------------------------------------------------------------------------
# Nutrition
# ---------------------------------------------------------------------------

def analyze_nutrition(samples: tuple[NutritionSample, ...] | list[NutritionSample]) -> BehaviorInsight | None:
    """Hydration 50%, meal frequency 30%, meal consistency 20%."""
    if not samples:
        return None
    for s in samples:
        if s.water_intake_oz < 0 or s.meal_count < 0:
            raise ValidationError("water_intake_oz and meal_count must not be negative")

    avg_water = mean(s.water_intake_oz for s in samples)
    hydration = _clamp(avg_water / HYDRATION_TARGET_OZ)

    meals = [s.meal_count for s in samples]
    avg_meals = mean(meals)
    low, high = MEAL_RANGE
    if low <= avg_meals <= high:
        meal_frequency = 1.0
    elif avg_meals < low:
        meal_frequency = _clamp(avg_meals / low)
    else:
        meal_frequency = _clamp(1 - (avg_meals - high) / 3)

    meal_spread = pstdev(meals) if len(meals) > 1 else 0.0
    meal_consistency = _clamp(1 - meal_spread / 2)

    blend = 0.5 * hydration + 0.3 * meal_frequency + 0.2 * meal_consistency

    findings = _Findings()
    findings.check(
        avg_water >= HYDRATION_TARGET_OZ,
        f"Water intake averages {avg_water:.0f} oz, meeting the 64 oz daily target",
        f"Water intake averages {avg_water:.0f} oz, below the 64 oz daily target",
        "Stay hydrated with at least 8 glasses of water daily",
    )
    findings.check(
        low <= avg_meals <= high,
        f"Averaging {avg_meals:.1f} meals a day",
        f"Averaging {avg_meals:.1f} meals a day, outside the 3-5 meal range",
        "Eat regular meals spread through the day",
    )
    findings.check(
        meal_spread <= 1.0,
        "Meal routine is steady from day to day",
        "Meal count varies a lot from day to day",
        "Plan meals ahead to keep a steady eating routine",
    )
    return _insight("nutrition", blend, findings, len(samples))


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------

def analyze_behavior(log: BehaviorLog) -> list[BehaviorInsight]:
    """One insight per category with data, in sleep/exercise/medication/nutrition order."""
    candidates = [
        analyze_sleep(log.sleep),
        analyze_exercise(log.exercise),
        analyze_medication(log.medication),
        analyze_nutrition(log.nutrition),
    ]
    insights = [i for i in candidates if i is not None]
    logger.debug(
        "Behavior insights: %s",
        ", ".join(f"{i.category}={i.score}" for i in insights),
    )
    return insights
