"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from burstlet.db.session import get_session
from burstlet.services.analytics import AnalyticsService
from burstlet.services.billing import BillingService
from burstlet.services.generation import Dispatcher, GenerationService

DEFAULT_USER_ID = "demo-user"

# Database session dependency
SessionDep = Annotated[Session, Depends(get_session)]


def get_user_id(x_user_id: Annotated[str | None, Header()] = None) -> str:
    """Caller identity from the X-User-Id header."""
    return x_user_id or DEFAULT_USER_ID


UserIdDep = Annotated[str, Depends(get_user_id)]


def get_dispatcher() -> Dispatcher:
    """Enqueue jobs on the Celery worker."""
    from burstlet.jobs.generation import dispatch_generation_job

    return dispatch_generation_job


def get_generation_service(
    session: SessionDep,
    dispatcher: Annotated[Dispatcher, Depends(get_dispatcher)],
) -> GenerationService:
    """Get the generation service for this request."""
    return GenerationService(session, dispatcher=dispatcher)


def get_billing_service(session: SessionDep) -> BillingService:
    return BillingService(session)


def get_analytics_service(session: SessionDep) -> AnalyticsService:
    return AnalyticsService(session)


GenerationServiceDep = Annotated[GenerationService, Depends(get_generation_service)]
BillingServiceDep = Annotated[BillingService, Depends(get_billing_service)]
AnalyticsServiceDep = Annotated[AnalyticsService, Depends(get_analytics_service)]
