"""Health check endpoints."""

from typing import Any

from fastapi import APIRouter, status
from pydantic import BaseModel

from burstlet.config import settings
from burstlet.db.session import check_database
from burstlet.logging import get_logger
from burstlet.status import health_payload

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    mode: str
    version: str
    timestamp: str
    uptime: float
    environment: str
    services: dict[str, bool]
    frontend_url: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    database: bool
    redis: bool


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Always 200 while the process is up; service flags reflect configuration only.",
)
async def health_check() -> dict[str, Any]:
    """Basic health check - is the API up?"""
    return health_payload("full")


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Verifies the database and Redis actually answer.",
)
async def readiness_check() -> ReadinessResponse:
    """Readiness check including dependencies."""
    database_ok = check_database()
    if not database_ok:
        logger.error("database_health_check_failed")

    redis_ok = False
    if settings.redis_url:
        try:
            import redis

            r = redis.from_url(settings.redis_url)
            r.ping()
            redis_ok = True
        except Exception as e:
            logger.error("redis_health_check_failed", error=str(e))

    return ReadinessResponse(
        ready=database_ok and redis_ok,
        database=database_ok,
        redis=redis_ok,
    )


@router.get(
    "/health/live",
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Simple liveness probe for Kubernetes.",
)
async def liveness_check() -> dict[str, str]:
    """Kubernetes liveness probe - is the process alive?"""
    return {"status": "alive"}
