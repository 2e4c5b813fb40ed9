"""Console entry point for the VitalCoach server.

Run with ``vitalcoach`` or ``python -m vitalcoach.core.server.main``. The
server has no authentication, so it only listens on loopback unless
``COACH_ALLOW_INSECURE_BIND`` is set.
"""

from __future__ import annotations

import logging
from ipaddress import ip_address

from vitalcoach.core.config.settings import Settings, get_settings
from vitalcoach.core.server.app import create_app

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger(__name__)


def _is_loopback_host(host: str) -> bool:
    name = host.strip().strip("[]").lower()
    if name == "localhost":
        return True
    try:
        return ip_address(name).is_loopback
    except ValueError:
        return False


def check_bind_address(settings: Settings) -> None:
    """Raise ``RuntimeError`` for a public bind address without explicit opt-in."""
    if settings.coach_allow_insecure_bind or _is_loopback_host(settings.coach_host):
        return
    raise RuntimeError(
        f"VitalCoach has no auth layer and will not listen on {settings.coach_host!r}. "
        "Use a loopback address or set COACH_ALLOW_INSECURE_BIND=true."
    )


def run() -> None:
    """Serve the MCP app over streamable HTTP."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.coach_log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    check_bind_address(settings)

    app = create_app()
    logger.info(
        "VitalCoach listening on http://%s:%d (data source: %s)",
        settings.coach_host, settings.coach_port, settings.health_data_source,
    )
    app.run(transport="streamable-http", host=settings.coach_host, port=settings.coach_port)


if __name__ == "__main__":
    run()
