"""Per-user client state: notifications, layout flags and active job watches."""

import itertools
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, TypeVar

from burstlet.client.api import BurstletClient
from burstlet.client.poller import JobPoller, PollHandle, RetryPolicy, UpdateCallback
from burstlet.errors import GenerationError
from burstlet.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

NOTIFICATION_LIMIT = 20

Variant = Literal["default", "destructive"]


@dataclass
class Notification:
    id: int
    title: str
    message: str | None = None
    variant: Variant = "default"
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ClientSession:
    """State shared by everything a signed-in user does in one client.

    Owns the API client (unless one is passed in), the job watches it started
    and a bounded list of notifications. ``close`` stops every watch.
    """

    def __init__(
        self,
        client: BurstletClient | None = None,
        poll_interval: float | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._owns_client = client is None
        self.client = client or BurstletClient()
        self.poller = JobPoller(self.client, interval=poll_interval, retry_policy=retry_policy)
        self.notifications: list[Notification] = []
        self.sidebar_collapsed = False
        self.handles: dict[str, PollHandle] = {}
        self._ids = itertools.count(1)

    async def __aenter__(self) -> "ClientSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # Notifications

    def notify(self, title: str, message: str | None = None, variant: Variant = "default") -> Notification:
        notification = Notification(id=next(self._ids), title=title, message=message, variant=variant)
        self.notifications.append(notification)
        del self.notifications[:-NOTIFICATION_LIMIT]
        return notification

    def dismiss(self, notification_id: int) -> None:
        self.notifications = [n for n in self.notifications if n.id != notification_id]

    def clear_notifications(self) -> None:
        self.notifications.clear()

    def toggle_sidebar(self) -> bool:
        self.sidebar_collapsed = not self.sidebar_collapsed
        return self.sidebar_collapsed

    # Jobs

    def watch_job(self, job_id: str, on_update: UpdateCallback | None = None) -> PollHandle:
        """Start polling ``job_id``; an existing watch on the same job is reused."""
        handle = self.handles.get(job_id)
        if handle is not None and not handle.done:
            return handle

        handle = self.poller.start(job_id, on_update)
        self.handles[job_id] = handle
        return handle

    @property
    def active_jobs(self) -> list[str]:
        return [job_id for job_id, handle in self.handles.items() if not handle.done]

    async def run_mutation(
        self,
        operation: Callable[[], Awaitable[T]],
        success_message: str | None = None,
        error_title: str = "Error",
    ) -> T | None:
        """Run ``operation`` and report the outcome as a notification.

        A GenerationError becomes a destructive notification and the call
        returns None. Any other exception propagates.
        """
        try:
            result = await operation()
        except GenerationError as e:
            logger.warning("mutation_failed", code=str(e.code), error=e.message)
            self.notify(error_title, e.message, variant="destructive")
            return None

        if success_message:
            self.notify("Success", success_message)
        return result

    async def close(self) -> None:
        for handle in self.handles.values():
            handle.stop()
        for handle in list(self.handles.values()):
            try:
                await handle.wait()
            except GenerationError as e:
                logger.debug("job_watch_ended_with_error", job_id=handle.job_id, error=e.message)
        self.handles.clear()
        self.notifications.clear()

        if self._owns_client:
            await self.client.aclose()
