"""Python client for the Burstlet API."""

from burstlet.client.api import BurstletClient
from burstlet.client.poller import JobPoller, PollHandle, RetryPolicy
from burstlet.client.session import ClientSession, Notification

__all__ = [
    "BurstletClient",
    "ClientSession",
    "JobPoller",
    "Notification",
    "PollHandle",
    "RetryPolicy",
]
