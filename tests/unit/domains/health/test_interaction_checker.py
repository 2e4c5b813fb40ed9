"""Unit tests for the medication interaction checker."""

from __future__ import annotations

import dataclasses

import pytest

from vitalcoach.domains.health.domain_logic.health_models import (
    InteractionFinding,
    Medication,
    ValidationError,
)
from vitalcoach.domains.health.domain_logic.interaction_checker import (
    InteractionTable,
    check_interactions,
    check_medication_interactions,
    get_default_interaction_table,
    load_interaction_table,
)


def _finding(a: str, b: str, severity: str = "mild") -> InteractionFinding:
    return InteractionFinding(
        medication_ids=(a, b),
        severity=severity,
        description="desc",
        recommendation="rec",
    )


class TestBundledTable:
    def test_loads_once(self):
        assert get_default_interaction_table() is get_default_interaction_table()

    def test_known_pairs(self, interaction_table):
        assert len(interaction_table) == 5
        assert ("med5", "med1") in interaction_table
        assert interaction_table.lookup("med5", "med6").severity == "severe"

    def test_names_follow_sorted_ids(self, interaction_table):
        finding = interaction_table.lookup("med5", "med1")
        assert finding.medication_ids == ("med1", "med5")
        assert finding.medication_names == ("Lisinopril", "Ibuprofen")
        assert finding.source == "Drug Interaction Database"


class TestCheckInteractions:
    def test_single_moderate_pair(self, interaction_table):
        findings = check_interactions(["med1", "med5"], interaction_table)
        assert len(findings) == 1
        assert findings[0].severity == "moderate"

    def test_symmetric(self, interaction_table):
        forward = check_interactions(["med1", "med5"], interaction_table)
        backward = check_interactions(["med5", "med1"], interaction_table)
        assert [f.to_dict() for f in forward] == [f.to_dict() for f in backward]

    def test_unknown_pair_is_not_an_error(self, interaction_table):
        assert check_interactions(["med4", "unknown"], interaction_table) == []

    def test_checked_and_safe_is_distinct_from_unknown(self, interaction_table):
        findings = check_interactions(["med1", "med2"], interaction_table)
        assert [f.severity for f in findings] == ["none"]

    def test_duplicate_ids_checked_once(self, interaction_table):
        findings = check_interactions(["med1", "med5", "med1", "med5"], interaction_table)
        assert len(findings) == 1

    def test_sorted_by_severity_then_ids(self, interaction_table):
        ids = ["med6", "med3", "med2", "med1", "med5"]
        findings = check_interactions(ids, interaction_table)
        assert [(f.medication_ids, f.severity) for f in findings] == [
            (("med5", "med6"), "severe"),
            (("med1", "med5"), "moderate"),
            (("med2", "med5"), "mild"),
            (("med3", "med5"), "mild"),
            (("med1", "med2"), "none"),
        ]

    def test_order_independent(self, interaction_table):
        a = check_interactions(["med1", "med2", "med3", "med5"], interaction_table)
        b = check_interactions(["med5", "med3", "med2", "med1"], interaction_table)
        assert [f.to_dict() for f in a] == [f.to_dict() for f in b]

    def test_findings_cannot_be_mutated(self, interaction_table):
        [finding] = check_interactions(["med1", "med5"], interaction_table)
        with pytest.raises(dataclasses.FrozenInstanceError):
            finding.severity = "none"
        assert interaction_table.lookup("med1", "med5").severity == "moderate"

    def test_uses_bundled_table_by_default(self):
        assert len(check_interactions(["med1", "med5"])) == 1


class TestCheckMedicationInteractions:
    def test_only_active_medications_checked(self, interaction_table):
        meds = [
            Medication("med5", "Ibuprofen"),
            Medication("med6", "Warfarin", status="on_hold"),
            Medication("med1", "Lisinopril"),
        ]
        findings = check_medication_interactions(meds, interaction_table)
        assert [f.medication_ids for f in findings] == [("med1", "med5")]


class TestInteractionTable:
    def test_duplicate_pair_rejected(self):
        table = InteractionTable()
        table.register(_finding("a", "b"))
        with pytest.raises(ValidationError):
            table.register(_finding("b", "a"))

    def test_self_pair_rejected(self):
        with pytest.raises(ValidationError):
            InteractionTable().register(_finding("a", "a"))

    def test_unknown_severity_rejected(self):
        with pytest.raises(ValidationError):
            InteractionTable().register(_finding("a", "b", severity="fatal"))

    def test_load_from_yaml(self, tmp_path):
        path = tmp_path / "table.yaml"
        path.write_text(
            "interactions:\n"
            "  - medications: [{id: x, name: X}, {id: y, name: Y}]\n"
            "    severity: moderate\n"
            "    description: Something\n"
            "    recommendation: Watch it\n"
        )
        table = load_interaction_table(path)
        assert table.lookup("y", "x").description == "Something"

    def test_load_rejects_malformed_entry(self, tmp_path):
        path = tmp_path / "table.yaml"
        path.write_text(
            "interactions:\n"
            "  - medications: [{id: x}]\n"
            "    severity: mild\n"
        )
        with pytest.raises(ValidationError):
            load_interaction_table(path)
