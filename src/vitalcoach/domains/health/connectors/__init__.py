"""Health data connectors: the abstraction layer for health data retrieval."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class HealthDataProvider(Protocol):
    """Abstract interface for personal health data retrieval.

    Methods return JSON-shaped payloads; ``payload_parser`` turns them into
    the canonical models. Tools call these without knowing whether data
    comes from a device sync, a clinical record export, or mock generators.
    """

    async def get_profile(self) -> dict[str, Any]:
        """Demographics, anthropometrics and vital-sign history."""
        ...

    async def get_lifestyle(self) -> dict[str, Any] | None:
        """Self-reported lifestyle answers, or None if never collected."""
        ...

    async def get_behavior_log(self, period: str = "last_14_days") -> dict[str, Any]:
        """Sleep, exercise, medication-dose and nutrition samples."""
        ...

    async def get_medications(self) -> list[dict[str, Any]]:
        """Medication list with status."""
        ...

    def is_connected(self) -> bool:
        """Whether real health data is available."""
        ...

    @property
    def data_source(self) -> str:
        """Label for the active data source, e.g. 'mock'."""
        ...

    def get_provenance(self) -> dict[str, str]:
        """Return provenance metadata to merge into tool responses."""
        ...
