"""Service status reporting shared by the full API and the fallback responder."""

import time
from datetime import datetime, timezone
from typing import Any

from burstlet import __version__
from burstlet.config import Settings, settings

_STARTED = time.monotonic()

# Service flag -> setting whose presence marks the service as configured
SERVICE_SETTINGS = {
    "database": "database_url",
    "redis": "redis_url",
    "supabase": "supabase_url",
    "openai": "openai_api_key",
    "hailuoai": "hailuoai_api_key",
    "minimax": "minimax_api_key",
    "stripe": "stripe_secret_key",
}


def uptime_seconds() -> float:
    """Seconds since this process imported burstlet."""
    return round(time.monotonic() - _STARTED, 3)


def service_flags(config: Settings | None = None) -> dict[str, bool]:
    """Which backing services are configured, from setting presence alone."""
    config = config or settings
    return {name: bool(getattr(config, attr)) for name, attr in SERVICE_SETTINGS.items()}


def health_payload(mode: str, config: Settings | None = None) -> dict[str, Any]:
    """Body of ``GET /health``."""
    config = config or settings
    return {
        "status": "healthy",
        "mode": mode,
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": uptime_seconds(),
        "environment": config.environment,
        "services": service_flags(config),
        "frontend_url": config.frontend_url or "Not configured",
    }


def root_payload(mode: str) -> dict[str, Any]:
    """Body of ``GET /``."""
    endpoints = {"health": "/health"}
    if mode == "full":
        endpoints.update({"api": "/api/v1", "docs": "/docs"})
    return {
        "name": "Burstlet API",
        "version": __version__,
        "status": "operational",
        "mode": mode,
        "endpoints": endpoints,
    }
