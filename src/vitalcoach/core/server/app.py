"""VitalCoach MCP Server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from vitalcoach.core.config.settings import get_settings
from vitalcoach.domains.health.connectors import HealthDataProvider
from vitalcoach.domains.health.connectors.providers import create_provider
from vitalcoach.domains.health.domain_logic.interaction_checker import (
    InteractionTable,
    get_default_interaction_table,
    load_interaction_table,
)
from vitalcoach.domains.health.domain_logic.risk_scorer import RuleBasedRiskModel
from vitalcoach.domains.health.tools.health_engine_tools import register_health_engine_tools

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def create_app(
    *,
    health_data_provider_override: HealthDataProvider | None = None,
    interaction_table_override: InteractionTable | None = None,
) -> FastMCP:
    """Create and configure the VitalCoach MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Loads the medication interaction table
    3. Initializes the health data provider
    4. Registers all tools
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        "VitalCoach",
        instructions=(
            "Deterministic health-risk scoring and coaching engine. "
            "Computes body metrics, scores condition risks with explanations, "
            "checks medication interactions, analyzes behavior logs and "
            "produces prioritized coaching messages."
        ),
    )

    # --- Interaction table ---
    if interaction_table_override is not None:
        interaction_table = interaction_table_override
    elif settings.interaction_table_path:
        interaction_table = load_interaction_table(settings.interaction_table_path)
    else:
        interaction_table = get_default_interaction_table()

    # --- Health data provider ---
    if health_data_provider_override is not None:
        health_provider = health_data_provider_override
    else:
        health_provider = create_provider(settings.health_data_source)
        logger.info("Using %s health data provider", health_provider.data_source)

    conditions = RuleBasedRiskModel().conditions

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": "VitalCoach",
            "version": VERSION,
            "conditions": conditions,
            "interactions_loaded": len(interaction_table),
            "data_source": health_provider.data_source,
        }

    register_health_engine_tools(
        server,
        health_provider,
        interaction_table,
        default_activity_level=settings.default_activity_level,
        batch_max_workers=settings.batch_max_workers,
    )
    logger.info("Health engine tools registered")

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
