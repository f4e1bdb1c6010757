"""Burstlet - AI content generation backend and client."""

__version__ = "0.3.0"
