"""API route modules."""

from burstlet.api.routes import analytics, billing, generation, health

__all__ = ["analytics", "billing", "generation", "health"]
