"""Application services."""

from burstlet.services.analytics import AnalyticsService
from burstlet.services.billing import PLANS, BillingService, PlanDefinition
from burstlet.services.generation import GenerationService, to_schema

__all__ = [
    "PLANS",
    "AnalyticsService",
    "BillingService",
    "GenerationService",
    "PlanDefinition",
    "to_schema",
]
