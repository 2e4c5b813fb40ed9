"""Unit tests for the assessment orchestrator and population batches."""

from __future__ import annotations

import json

from conftest import make_dose_log, make_lifestyle, make_profile
from vitalcoach.domains.health.domain_logic.assessment import (
    AssessmentRequest,
    assess_population,
    run_health_assessment,
)
from vitalcoach.domains.health.domain_logic.health_models import Medication


class TestRunHealthAssessment:
    def test_full_pipeline(self, scenario_a_profile, interaction_table):
        meds = [Medication("med1", "Lisinopril"), Medication("med5", "Ibuprofen")]
        result = run_health_assessment(
            scenario_a_profile,
            make_lifestyle(),
            make_dose_log(taken=6, missed=4),
            meds,
            interaction_table=interaction_table,
        )
        assert result.metrics.bmi == 31.0
        assert {r.condition for r in result.risks} == {"Cardiovascular Disease", "Hypertension", "Obesity"}
        assert [f.severity for f in result.interactions] == ["moderate"]
        assert [i.category for i in result.behavior_insights] == ["medication"]
        titles = {m.title for m in result.coaching}
        assert "High Blood Pressure Reading" in titles
        assert "Medication Reminder" in titles

    def test_profile_only(self, healthy_profile):
        result = run_health_assessment(healthy_profile)
        assert result.interactions == []
        assert result.behavior_insights == []
        assert len(result.coaching) >= 1

    def test_to_dict_is_json_serializable(self, scenario_a_profile):
        data = run_health_assessment(scenario_a_profile).to_dict()
        assert set(data) == {
            "metrics", "risks", "interactions", "behavior_insights", "coaching", "medication_adherence",
        }
        json.dumps(data)

    def test_elevated_heart_rate_does_not_block_risks_or_alerts(self):
        result = run_health_assessment(make_profile(age=60, bp=(160, 100), resting_hr=170))
        assert result.metrics.heart_rate_zones is None
        assert {r.condition for r in result.risks} >= {"Hypertension"}
        assert ("vitals", "high", "High Blood Pressure Reading") in [
            (m.category, m.priority, m.title) for m in result.coaching
        ]

    def test_byte_identical_on_repeat(self, scenario_a_profile):
        first = json.dumps(run_health_assessment(scenario_a_profile, make_lifestyle()).to_dict())
        second = json.dumps(run_health_assessment(scenario_a_profile, make_lifestyle()).to_dict())
        assert first == second


class TestAssessPopulation:
    def test_results_keep_request_order(self):
        requests = [
            AssessmentRequest(user_id=f"u{i}", profile=make_profile(age=30 + i))
            for i in range(8)
        ]
        results = assess_population(requests, max_workers=4)
        assert [r.user_id for r in results] == [f"u{i}" for i in range(8)]
        assert all(r.ok for r in results)

    def test_invalid_user_does_not_abort_batch(self):
        requests = [
            AssessmentRequest(user_id="good", profile=make_profile()),
            AssessmentRequest(user_id="bad", profile=make_profile(age=0)),
        ]
        good, bad = assess_population(requests, max_workers=2)
        assert good.ok and good.assessment is not None
        assert not bad.ok
        assert "age" in bad.error
        assert bad.to_dict()["assessment"] is None

    def test_matches_single_assessment(self, scenario_a_profile):
        [result] = assess_population([AssessmentRequest("a", scenario_a_profile)])
        assert result.assessment.to_dict() == run_health_assessment(scenario_a_profile).to_dict()

    def test_empty_batch(self):
        assert assess_population([]) == []
