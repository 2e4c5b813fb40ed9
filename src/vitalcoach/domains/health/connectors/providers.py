"""Concrete HealthDataProvider implementations."""

from __future__ import annotations

from typing import Any

from vitalcoach.domains.health.connectors.mock_data import (
    get_mock_behavior_log,
    get_mock_lifestyle,
    get_mock_medications,
    get_mock_profile,
)


class MockHealthDataProvider:
    """Uses mock data generators. Always available."""

    async def get_profile(self) -> dict[str, Any]:
        return get_mock_profile()

    async def get_lifestyle(self) -> dict[str, Any] | None:
        return get_mock_lifestyle()

    async def get_behavior_log(self, period: str = "last_14_days") -> dict[str, Any]:
        return get_mock_behavior_log(period)

    async def get_medications(self) -> list[dict[str, Any]]:
        return get_mock_medications()

    def is_connected(self) -> bool:
        return False

    @property
    def data_source(self) -> str:
        return "mock"

    def get_provenance(self) -> dict[str, str]:
        return {
            "data_source": self.data_source,
            "data_source_note": (
                "Using simulated health data. "
                "Connect a health data source for real measurements."
            ),
        }


def create_provider(source: str) -> MockHealthDataProvider:
    """Provider for a configured data source name."""
    if source == "mock":
        return MockHealthDataProvider()
    raise ValueError(f"Unknown health data source: {source!r}")
