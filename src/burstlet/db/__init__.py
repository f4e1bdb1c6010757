"""Database layer."""

from burstlet.db.models import (
    Base,
    ContentMetricModel,
    ContentModel,
    GenerationJobModel,
    SubscriptionModel,
)
from burstlet.db.session import get_session, get_session_context, init_db

__all__ = [
    "Base",
    "get_session",
    "get_session_context",
    "init_db",
    # Models
    "ContentMetricModel",
    "ContentModel",
    "GenerationJobModel",
    "SubscriptionModel",
]
