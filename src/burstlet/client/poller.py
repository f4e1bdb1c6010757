"""Job status polling.

A JobPoller follows one generation job from submission to a terminal status:
it fetches the job immediately, then again every ``interval`` seconds while the
job is PENDING or PROCESSING, and stops on its own once the job is COMPLETED,
FAILED or CANCELED. Fetches never overlap, and the snapshots it publishes never
move backwards through the lifecycle.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

from burstlet.config import settings
from burstlet.domain.lifecycle import status_rank
from burstlet.domain.models import CancelResponse, GenerationJob
from burstlet.errors import GenerationError, InvalidRequestError, PollingAbortedError
from burstlet.logging import get_logger

logger = get_logger(__name__)

UpdateCallback = Callable[[GenerationJob], Awaitable[None] | None]
Sleep = Callable[[float], Awaitable[None]]


class JobSource(Protocol):
    """What the poller needs from an API client."""

    async def get_job(self, job_id: str) -> GenerationJob: ...

    async def cancel_job(self, job_id: str) -> CancelResponse: ...


@dataclass(frozen=True)
class RetryPolicy:
    """How the poller reacts to failed fetches.

    Only transient failures (connectivity errors, 5xx and 429 answers) are
    retried. With the defaults the poller keeps retrying at its normal
    interval forever.
    """

    max_consecutive_failures: int | None = None
    backoff_factor: float = 1.0
    max_interval: float = 30.0

    def __post_init__(self) -> None:
        if self.backoff_factor < 1.0:
            raise ValueError(f"backoff_factor must be >= 1.0, got {self.backoff_factor}")

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_consecutive_failures=settings.poll_max_consecutive_failures,
            backoff_factor=settings.poll_backoff_factor,
            max_interval=settings.poll_max_interval_seconds,
        )

    def should_retry(self, error: GenerationError) -> bool:
        return error.retryable

    def exhausted(self, failures: int) -> bool:
        return self.max_consecutive_failures is not None and failures >= self.max_consecutive_failures

    def next_delay(self, interval: float, failures: int) -> float:
        """Seconds to wait after ``failures`` consecutive failed fetches.

        Grows by ``backoff_factor`` per failure and stays at ``max_interval``
        once it gets there, however long the outage lasts.
        """
        if failures <= 0 or self.backoff_factor == 1.0 or interval <= 0:
            return interval
        ceiling = max(self.max_interval, interval)
        delay = interval
        for _ in range(failures):
            delay *= self.backoff_factor
            if delay >= ceiling:
                return ceiling
        return delay


class PollHandle:
    """A running poll of one job.

    ``latest`` always holds the most recent accepted snapshot. ``stop`` ends
    polling without waiting for the next fetch; ``wait`` returns the final
    snapshot once polling has ended.
    """

    def __init__(self, job_id: str, client: JobSource, on_update: UpdateCallback | None) -> None:
        self.job_id = job_id
        self.latest: GenerationJob | None = None
        self._client = client
        self._on_update = on_update
        self._task: asyncio.Task[GenerationJob | None] | None = None
        self._cancel_lock = asyncio.Lock()
        self._cancel_ack: CancelResponse | None = None

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_ack is not None

    def stop(self) -> None:
        """Stop polling. Safe to call more than once."""
        if self._task is not None and not self._task.done():
            logger.debug("job_poll_stopped", job_id=self.job_id)
            self._task.cancel()

    async def wait(self) -> GenerationJob | None:
        """Wait for polling to end and return the last snapshot.

        Re-raises whatever ended the poll with an error. A stopped poll
        returns the snapshot it had at the time.
        """
        await asyncio.wait({self._task})
        if self._task.cancelled():
            return self.latest
        return self._task.result()

    async def cancel_job(self) -> GenerationJob:
        """Ask the backend to cancel the job, then stop polling.

        The request is sent once. Later calls return the acknowledged job
        without another request. If the request fails the error propagates
        and polling carries on.
        """
        async with self._cancel_lock:
            if self._cancel_ack is None:
                self._cancel_ack = await self._client.cancel_job(self.job_id)
                logger.info("job_cancel_acknowledged", job_id=self.job_id)
        self.stop()
        await self._publish(self._cancel_ack.job)
        return self.latest or self._cancel_ack.job

    async def _publish(self, snapshot: GenerationJob) -> bool:
        """Record ``snapshot`` unless it would move the job backwards."""
        current = self.latest
        if current is not None and (
            current.is_terminal or status_rank(snapshot.status) < status_rank(current.status)
        ):
            logger.debug(
                "job_snapshot_dropped",
                job_id=self.job_id,
                current=str(current.status),
                received=str(snapshot.status),
            )
            return False

        self.latest = snapshot
        if self._on_update is not None:
            result = self._on_update(snapshot)
            if inspect.isawaitable(result):
                await result
        return True


class JobPoller:
    """Polls generation jobs through a client until they finish."""

    def __init__(
        self,
        client: JobSource,
        interval: float | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.client = client
        self.interval = settings.job_poll_interval_seconds if interval is None else interval
        self.retry_policy = retry_policy or RetryPolicy.from_settings()
        self._sleep = sleep

    def start(self, job_id: str, on_update: UpdateCallback | None = None) -> PollHandle:
        """Begin polling ``job_id`` in a background task.

        Must be called from a running event loop.
        """
        if not job_id or not job_id.strip():
            raise InvalidRequestError("job_id must be a non-empty string")

        handle = PollHandle(job_id, self.client, on_update)
        handle._task = asyncio.create_task(self._run(handle), name=f"poll-{job_id}")
        logger.debug("job_poll_started", job_id=job_id, interval=self.interval)
        return handle

    async def poll_until_terminal(
        self, job_id: str, on_update: UpdateCallback | None = None
    ) -> GenerationJob | None:
        """Poll ``job_id`` and return its terminal snapshot."""
        return await self.start(job_id, on_update).wait()

    async def _run(self, handle: PollHandle) -> GenerationJob | None:
        failures = 0
        while True:
            try:
                snapshot = await self.client.get_job(handle.job_id)
            except GenerationError as e:
                if not self.retry_policy.should_retry(e):
                    logger.warning(
                        "job_poll_failed",
                        job_id=handle.job_id,
                        code=str(e.code),
                        error=e.message,
                    )
                    raise

                failures += 1
                logger.warning(
                    "job_poll_retry",
                    job_id=handle.job_id,
                    failures=failures,
                    error=e.message,
                )
                if self.retry_policy.exhausted(failures):
                    raise PollingAbortedError(
                        f"Gave up polling job {handle.job_id} after {failures} failed attempts",
                        details={"job_id": handle.job_id, "last_error": e.to_dict()},
                    ) from e
                await self._sleep(self.retry_policy.next_delay(self.interval, failures))
                continue

            failures = 0
            await handle._publish(snapshot)
            if handle.latest is not None and handle.latest.is_terminal:
                logger.info(
                    "job_poll_finished",
                    job_id=handle.job_id,
                    status=str(handle.latest.status),
                )
                return handle.latest

            await self._sleep(self.interval)
