"""Medication interaction checker.

Pairwise lookup in a static, symmetric interaction table. The table is
read from YAML once and never mutated, so it is safe to share between
threads.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from itertools import combinations
from pathlib import Path
from typing import Any, Iterable

import yaml

from vitalcoach.domains.health.domain_logic.health_models import (
    INTERACTION_SEVERITIES,
    SEVERITY_RANK,
    InteractionFinding,
    Medication,
    ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_TABLE_PATH = Path(__file__).resolve().parent.parent / "data" / "medication_interactions.yaml"


def _pair_key(a: str, b: str) -> tuple[str, str]:
    return (a, b) if a <= b else (b, a)


class InteractionTable:
    """Known interactions keyed by sorted medication-id pair."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], InteractionFinding] = {}

    def register(self, finding: InteractionFinding) -> None:
        """Add one pair. Rejects self-pairs, duplicates and unknown severities."""
        a, b = finding.medication_ids
        if a == b:
            raise ValidationError(f"Interaction pair must name two medications, got {a!r} twice")
        if finding.severity not in INTERACTION_SEVERITIES:
            raise ValidationError(
                f"Unknown interaction severity {finding.severity!r} for pair ({a}, {b})"
            )
        key = _pair_key(a, b)
        if key in self._entries:
            raise ValidationError(f"Duplicate interaction pair registered: {key!r}")

        if key != (a, b):
            names = finding.medication_names
            finding = InteractionFinding(
                medication_ids=key,
                severity=finding.severity,
                description=finding.description,
                recommendation=finding.recommendation,
                medication_names=(names[1], names[0]) if names else None,
                source=finding.source,
            )
        self._entries[key] = finding

    def lookup(self, a: str, b: str) -> InteractionFinding | None:
        return self._entries.get(_pair_key(a, b))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, pair: tuple[str, str]) -> bool:
        return _pair_key(*pair) in self._entries


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def _parse_entry(entry: dict[str, Any]) -> InteractionFinding:
    meds = entry.get("medications") or []
    if len(meds) != 2:
        raise ValidationError(f"Interaction entry must list exactly two medications: {entry!r}")
    ids = tuple(str(m["id"]) for m in meds)
    names = tuple(str(m["name"]) for m in meds) if all("name" in m for m in meds) else None
    return InteractionFinding(
        medication_ids=ids,  # type: ignore[arg-type]
        severity=entry.get("severity", ""),
        description=str(entry.get("description", "")).strip(),
        recommendation=str(entry.get("recommendation", "")).strip(),
        medication_names=names,  # type: ignore[arg-type]
        source=entry.get("source"),
    )


def load_interaction_table(path: str | Path) -> InteractionTable:
    """Parse a YAML interaction file into a validated table."""
    path = Path(path)
    with open(path) as f:
        data: dict[str, Any] = yaml.safe_load(f) or {}

    table = InteractionTable()
    for entry in data.get("interactions", []):
        table.register(_parse_entry(entry))
    logger.info("Loaded %d medication interactions from %s", len(table), path)
    return table


@lru_cache(maxsize=1)
def get_default_interaction_table() -> InteractionTable:
    """The bundled interaction table, loaded once per process."""
    return load_interaction_table(DEFAULT_TABLE_PATH)


# ---------------------------------------------------------------------------
# Checking
# ---------------------------------------------------------------------------

def check_interactions(
    medication_ids: Iterable[str], table: InteractionTable | None = None
) -> list[InteractionFinding]:
    """Known interactions among the given medications.

    Each unordered pair is checked once. Results are ordered by severity
    (severe first) then id pair, independent of input order. An empty
    result means no known interaction, not a guarantee of safety.
    """
    table = table if table is not None else get_default_interaction_table()
    unique_ids = sorted(set(medication_ids))

    findings = []
    for a, b in combinations(unique_ids, 2):
        finding = table.lookup(a, b)
        if finding is not None:
            findings.append(finding)

    findings.sort(key=lambda f: (SEVERITY_RANK[f.severity], f.medication_ids))
    logger.debug("Checked %d medications: %d findings", len(unique_ids), len(findings))
    return findings


def check_medication_interactions(
    medications: Iterable[Medication], table: InteractionTable | None = None
) -> list[InteractionFinding]:
    """Interactions among the currently active medications only."""
    active = [m.id for m in medications if m.is_active]
    return check_interactions(active, table)
