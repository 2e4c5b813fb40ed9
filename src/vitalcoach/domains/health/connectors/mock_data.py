"""Mock health data generators for development and testing.

The mock user is a middle-aged adult with borderline numbers: overweight,
high-normal blood pressure, slightly raised fasting glucose, and a few
missed doses. Enough to exercise every engine stage without a crisis.
"""

from __future__ import annotations

from datetime import date, timedelta

_LOG_START = date(2026, 1, 1)

_SLEEP_HOURS = [6.5, 7.0, 6.0, 7.5, 6.5, 8.0, 7.0]
_SLEEP_QUALITY = [6, 7, 5, 8, 6, 8, 7]
_BEDTIMES = ["23:00", "23:30", "00:15", "22:45", "23:15", "23:00", "23:45"]
_WAKE_TIMES = ["06:30", "06:45", "06:30", "06:30", "07:00", "07:15", "07:00"]

_EXERCISE_DAYS = {0: ("moderate", 35), 2: ("low", 20), 5: ("moderate", 40),
                  7: ("moderate", 30), 9: ("low", 25), 12: ("high", 30)}
_MISSED_DOSE_DAYS = {3, 8, 11}


def _period_days(period: str) -> int:
    """Parse ``last_<n>_days``; anything else means two weeks."""
    parts = period.split("_")
    if len(parts) == 3 and parts[0] == "last" and parts[2] == "days" and parts[1].isdigit():
        return max(1, int(parts[1]))
    return 14


def get_mock_profile() -> dict:
    """Return mock profile data with vital-sign history."""
    return {
        "age": 52,
        "gender": "male",
        "height_cm": 178,
        "weight_kg": 88,
        "blood_pressure": [
            {"systolic": 128, "diastolic": 82, "timestamp": "2025-12-15T08:00:00Z"},
            {"systolic": 134, "diastolic": 86, "timestamp": "2026-01-12T08:00:00Z"},
        ],
        "blood_glucose": [
            {"value": 104, "unit": "mg/dL", "timestamp": "2026-01-10T07:30:00Z"},
        ],
        "cholesterol": [
            {"total": 210, "hdl": 45, "ldl": 130, "timestamp": "2026-01-10T07:30:00Z"},
        ],
        "heart_rate": [
            {"value": 68, "timestamp": "2026-01-12T08:00:00Z"},
        ],
        "conditions": [],
        "family_history": ["Father: heart disease"],
    }


def get_mock_lifestyle() -> dict:
    """Return mock lifestyle questionnaire answers."""
    return {
        "smoking_status": "former",
        "alcohol_consumption": "moderate",
        "exercise_frequency": "light",
        "diet": {"sugar_intake": "medium", "sodium_intake": "high", "produce_intake": "medium"},
        "sleep_hours": 6.5,
        "stress_level": "moderate",
    }


def get_mock_behavior_log(period: str = "last_14_days") -> dict:
    """Return mock behavior samples, one per day for the period."""
    days = [_LOG_START + timedelta(days=i) for i in range(_period_days(period))]
    sleep = [
        {
            "date": d.isoformat(),
            "hours_slept": _SLEEP_HOURS[i % 7],
            "quality": _SLEEP_QUALITY[i % 7],
            "bedtime": _BEDTIMES[i % 7],
            "wake_time": _WAKE_TIMES[i % 7],
        }
        for i, d in enumerate(days)
    ]
    exercise = [
        {"date": d.isoformat(), "intensity": _EXERCISE_DAYS[i][0],
         "duration_minutes": _EXERCISE_DAYS[i][1]}
        for i, d in enumerate(days)
        if i in _EXERCISE_DAYS
    ]
    medication = [
        {"date": d.isoformat(), "scheduled": True,
         "taken_as_scheduled": i not in _MISSED_DOSE_DAYS, "medication_id": "med1"}
        for i, d in enumerate(days)
    ]
    nutrition = [
        {"date": d.isoformat(), "water_intake_oz": 48 + (i % 3) * 8, "meal_count": 3}
        for i, d in enumerate(days)
    ]
    return {"sleep": sleep, "exercise": exercise, "medication": medication, "nutrition": nutrition}


def get_mock_medications() -> list[dict]:
    """Return mock medication list."""
    return [
        {"id": "med1", "name": "Lisinopril", "status": "active"},
        {"id": "med2", "name": "Metformin", "status": "active"},
        {"id": "med3", "name": "Atorvastatin", "status": "active"},
        {"id": "med4", "name": "Albuterol", "status": "active"},
        {"id": "med5", "name": "Ibuprofen", "status": "active"},
        {"id": "med6", "name": "Warfarin", "status": "on_hold"},
    ]
