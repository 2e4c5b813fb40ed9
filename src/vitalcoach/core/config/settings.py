"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """VitalCoach server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default; the server has no auth layer.
    coach_host: str = "127.0.0.1"
    coach_port: int = 8001
    coach_log_level: str = "info"
    # Binding to a non-loopback host is refused unless this is true.
    coach_allow_insecure_bind: bool = False

    # Engine
    # Empty means the bundled medication_interactions.yaml
    interaction_table_path: str = ""
    # None lets ThreadPoolExecutor pick its default
    batch_max_workers: int | None = None
    default_activity_level: Literal[
        "sedentary", "light", "moderate", "active", "very_active"
    ] = "sedentary"

    # Connectors
    health_data_source: Literal["mock"] = "mock"


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
