"""Tests for the API client and the job poller."""

import asyncio

import httpx
import pytest

from burstlet.client import BurstletClient, JobPoller, RetryPolicy
from burstlet.domain.enums import JobStatus
from burstlet.domain.models import CancelResponse, GenerationJob
from burstlet.errors import (
    InvalidRequestError,
    JobNotFoundError,
    PollingAbortedError,
    ProviderError,
    QuotaExceededError,
    TransportError,
)

API = "http://api.test/api/v1"


def job_body(status: str, job_id: str = "j1", **extra) -> dict:
    return {"id": job_id, "type": "blog", "status": status, "params": {"topic": "AI trends"}, **extra}


class FakeBackend:
    """Serves scripted job snapshots and records every request."""

    def __init__(self, snapshots: list = (), cancel_response: httpx.Response | None = None) -> None:
        self.snapshots = list(snapshots)
        self.cancel_response = cancel_response
        self.requests: list[httpx.Request] = []

    @property
    def gets(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "GET"]

    @property
    def cancels(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/cancel")]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path == "/api/v1/generation/blog":
            return httpx.Response(202, json=job_body("PENDING"))
        if path.endswith("/cancel"):
            return self.cancel_response or httpx.Response(
                200, json={"message": "Generation job canceled", "job": job_body("CANCELED")}
            )
        if request.method == "GET" and path == "/api/v1/generation/jobs/j1":
            # Keep serving the last snapshot once the script runs out
            item = self.snapshots.pop(0) if len(self.snapshots) > 1 else self.snapshots[0]
            if isinstance(item, Exception):
                raise item
            if isinstance(item, httpx.Response):
                return httpx.Response(item.status_code, content=item.content, headers=item.headers)
            return httpx.Response(200, json=job_body(item))
        return httpx.Response(404, json={"detail": "Not Found"})


class RecordingSleep:
    """Stands in for asyncio.sleep and records every requested delay."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


def make_client(backend: FakeBackend) -> BurstletClient:
    return BurstletClient(base_url=API, transport=httpx.MockTransport(backend))


# =============================================================================
# Client
# =============================================================================


@pytest.mark.asyncio
async def test_invalid_request_is_rejected_before_network() -> None:
    backend = FakeBackend()
    async with make_client(backend) as client:
        with pytest.raises(InvalidRequestError):
            await client.generate_blog({"topic": ""})
        with pytest.raises(InvalidRequestError):
            await client.get_job("")

    assert backend.requests == []


@pytest.mark.asyncio
async def test_client_sends_user_header_and_parses_job() -> None:
    backend = FakeBackend()
    async with BurstletClient(base_url=API, user_id="u-42", transport=httpx.MockTransport(backend)) as client:
        job = await client.generate_blog({"topic": "AI trends"})

    assert job.id == "j1"
    assert job.status == JobStatus.PENDING
    assert backend.requests[0].headers["X-User-Id"] == "u-42"
    assert backend.requests[0].url == f"{API}/generation/blog"


@pytest.mark.asyncio
async def test_client_maps_error_bodies() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/video"):
            return httpx.Response(
                429, json={"error": "Monthly video generation quota exceeded", "code": "QUOTA_EXCEEDED"}
            )
        return httpx.Response(
            502,
            json={"error": "openai API error", "code": "PROVIDER_ERROR", "provider": "openai", "upstream_status": 500},
        )

    async with BurstletClient(base_url=API, transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(QuotaExceededError):
            await client.generate_video({"prompt": "clip"})
        with pytest.raises(ProviderError) as exc_info:
            await client.generate_blog({"topic": "AI"})

    assert exc_info.value.provider == "openai"
    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_client_connection_failure() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with BurstletClient(base_url=API, transport=httpx.MockTransport(refuse)) as client:
        with pytest.raises(TransportError) as exc_info:
            await client.get_job("j1")

    assert exc_info.value.provider == "burstlet-api"


@pytest.mark.asyncio
async def test_health_is_served_from_the_root() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json={"status": "healthy", "mode": "minimal"})

    async with BurstletClient(base_url=API, transport=httpx.MockTransport(handler)) as client:
        data = await client.health()

    assert data["mode"] == "minimal"
    assert seen == ["http://api.test/health"]


# =============================================================================
# Poller
# =============================================================================


@pytest.mark.asyncio
async def test_generate_and_poll_blog_to_completion() -> None:
    """Submit a blog, then follow it PENDING -> PROCESSING -> COMPLETED."""
    completed = httpx.Response(
        200,
        json=job_body("COMPLETED", result={"urls": ["https://cdn.burstlet.dev/j1.md"]}),
    )
    backend = FakeBackend(["PENDING", "PROCESSING", completed])
    sleep = RecordingSleep()
    seen: list[JobStatus] = []

    async with make_client(backend) as client:
        job = await client.generate_blog({"topic": "AI trends"})
        poller = JobPoller(client, interval=2.0, retry_policy=RetryPolicy(), sleep=sleep)
        final = await poller.poll_until_terminal(job.id, lambda snapshot: seen.append(snapshot.status))

        # Nothing else is fetched once the job is terminal
        for _ in range(5):
            await asyncio.sleep(0)

    assert seen == [JobStatus.PENDING, JobStatus.PROCESSING, JobStatus.COMPLETED]
    assert final.status == JobStatus.COMPLETED
    assert final.result.urls == ["https://cdn.burstlet.dev/j1.md"]
    assert len(backend.gets) == 3
    assert sleep.delays == [2.0, 2.0]


@pytest.mark.asyncio
async def test_stale_snapshots_are_dropped() -> None:
    backend = FakeBackend(["PROCESSING", "PENDING", "PROCESSING", "COMPLETED"])
    seen: list[JobStatus] = []

    async with make_client(backend) as client:
        poller = JobPoller(client, interval=0, retry_policy=RetryPolicy(), sleep=RecordingSleep())
        handle = poller.start("j1", lambda snapshot: seen.append(snapshot.status))
        final = await handle.wait()

    assert seen == [JobStatus.PROCESSING, JobStatus.PROCESSING, JobStatus.COMPLETED]
    assert final.status == JobStatus.COMPLETED
    assert handle.done


@pytest.mark.asyncio
async def test_async_update_callbacks_are_awaited() -> None:
    backend = FakeBackend(["PROCESSING", "COMPLETED"])
    seen: list[JobStatus] = []

    async def on_update(snapshot) -> None:
        await asyncio.sleep(0)
        seen.append(snapshot.status)

    async with make_client(backend) as client:
        poller = JobPoller(client, interval=0, retry_policy=RetryPolicy(), sleep=RecordingSleep())
        await poller.poll_until_terminal("j1", on_update)

    assert seen == [JobStatus.PROCESSING, JobStatus.COMPLETED]


@pytest.mark.asyncio
async def test_transient_errors_are_retried() -> None:
    backend = FakeBackend(
        [
            httpx.Response(503, json={"error": "busy"}),
            httpx.ConnectError("reset"),
            "COMPLETED",
        ]
    )
    sleep = RecordingSleep()

    async with make_client(backend) as client:
        poller = JobPoller(client, interval=2.0, retry_policy=RetryPolicy(), sleep=sleep)
        final = await poller.poll_until_terminal("j1")

    assert final.status == JobStatus.COMPLETED
    assert len(backend.gets) == 3
    assert sleep.delays == [2.0, 2.0]


@pytest.mark.asyncio
async def test_missing_job_ends_polling() -> None:
    backend = FakeBackend([httpx.Response(404, json={"error": "Generation job not found", "code": "NOT_FOUND"})])

    async with make_client(backend) as client:
        poller = JobPoller(client, interval=0, retry_policy=RetryPolicy(), sleep=RecordingSleep())
        with pytest.raises(JobNotFoundError):
            await poller.poll_until_terminal("j1")

    assert len(backend.gets) == 1


@pytest.mark.asyncio
async def test_gives_up_after_consecutive_failures() -> None:
    backend = FakeBackend([httpx.Response(500, json={"error": "boom"})])
    sleep = RecordingSleep()

    async with make_client(backend) as client:
        policy = RetryPolicy(max_consecutive_failures=3, backoff_factor=2.0, max_interval=5.0)
        poller = JobPoller(client, interval=2.0, retry_policy=policy, sleep=sleep)
        with pytest.raises(PollingAbortedError) as exc_info:
            await poller.poll_until_terminal("j1")

    assert len(backend.gets) == 3
    assert sleep.delays == [4.0, 5.0]
    assert exc_info.value.details["job_id"] == "j1"


def test_retry_policy_delays() -> None:
    fixed = RetryPolicy()
    assert fixed.next_delay(2.0, 5) == 2.0
    assert not fixed.exhausted(1000)

    backoff = RetryPolicy(max_consecutive_failures=2, backoff_factor=3.0, max_interval=10.0)
    assert backoff.next_delay(2.0, 0) == 2.0
    assert backoff.next_delay(2.0, 1) == 6.0
    assert backoff.next_delay(2.0, 2) == 10.0
    assert backoff.exhausted(2)


def test_backoff_stays_at_ceiling_through_long_outages() -> None:
    policy = RetryPolicy(backoff_factor=2.0, max_interval=30.0)

    assert policy.next_delay(2.0, 3) == 16.0
    assert policy.next_delay(2.0, 4) == 30.0
    assert policy.next_delay(2.0, 5000) == 30.0


def test_backoff_factor_below_one_is_rejected() -> None:
    with pytest.raises(ValueError):
        RetryPolicy(backoff_factor=0.5)


class ScriptedSource:
    """A JobSource that fails ``failures`` times, then walks through ``statuses``."""

    def __init__(self, statuses: list[str], failures: int = 0) -> None:
        self.statuses = list(statuses)
        self.failures = failures
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def get_job(self, job_id: str) -> GenerationJob:
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if self.failures:
                self.failures -= 1
                raise TransportError("connection refused", provider="burstlet-api")
            status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
            return GenerationJob.model_validate(job_body(status, job_id))
        finally:
            self.in_flight -= 1

    async def cancel_job(self, job_id: str) -> CancelResponse:
        raise AssertionError("cancel not expected")


@pytest.mark.asyncio
async def test_unlimited_retries_survive_a_long_outage() -> None:
    source = ScriptedSource(["COMPLETED"], failures=1100)
    sleep = RecordingSleep()
    policy = RetryPolicy(backoff_factor=2.0, max_interval=30.0)

    final = await JobPoller(source, interval=2.0, retry_policy=policy, sleep=sleep).poll_until_terminal("j1")

    assert final.status == JobStatus.COMPLETED
    assert source.calls == 1101
    assert max(sleep.delays) == 30.0
    assert sleep.delays[-1] == 30.0


@pytest.mark.asyncio
async def test_fetches_never_overlap() -> None:
    source = ScriptedSource(["PENDING", "PROCESSING", "PROCESSING", "COMPLETED"])
    seen: list[JobStatus] = []

    final = await JobPoller(source, interval=0, retry_policy=RetryPolicy(), sleep=RecordingSleep()).poll_until_terminal(
        "j1", lambda snapshot: seen.append(snapshot.status)
    )

    assert final.status == JobStatus.COMPLETED
    assert source.calls == 4
    assert source.max_in_flight == 1
    assert seen == [JobStatus.PENDING, JobStatus.PROCESSING, JobStatus.PROCESSING, JobStatus.COMPLETED]


@pytest.mark.asyncio
async def test_wait_after_stop_returns_latest_snapshot() -> None:
    source = ScriptedSource(["PROCESSING"])
    first_update = asyncio.Event()
    handle = JobPoller(source, interval=60.0, retry_policy=RetryPolicy()).start(
        "j1", lambda snapshot: first_update.set()
    )
    await asyncio.wait_for(first_update.wait(), timeout=5)

    handle.stop()

    assert (await handle.wait()).status == JobStatus.PROCESSING
    assert handle.done


@pytest.mark.asyncio
async def test_empty_job_id_is_rejected() -> None:
    async with make_client(FakeBackend()) as client:
        with pytest.raises(InvalidRequestError):
            JobPoller(client).start("  ")


@pytest.mark.asyncio
async def test_stop_ends_polling_between_fetches() -> None:
    backend = FakeBackend(["PROCESSING"])
    first_update = asyncio.Event()

    async with make_client(backend) as client:
        poller = JobPoller(client, interval=60.0, retry_policy=RetryPolicy())
        handle = poller.start("j1", lambda snapshot: first_update.set())
        await asyncio.wait_for(first_update.wait(), timeout=5)

        handle.stop()
        handle.stop()
        final = await handle.wait()

    assert final.status == JobStatus.PROCESSING
    assert handle.done
    assert len(backend.gets) == 1


@pytest.mark.asyncio
async def test_cancel_is_sent_once_and_stops_polling() -> None:
    backend = FakeBackend(["PROCESSING"])
    first_update = asyncio.Event()
    seen: list[JobStatus] = []

    def on_update(snapshot) -> None:
        seen.append(snapshot.status)
        first_update.set()

    async with make_client(backend) as client:
        poller = JobPoller(client, interval=60.0, retry_policy=RetryPolicy())
        handle = poller.start("j1", on_update)
        await asyncio.wait_for(first_update.wait(), timeout=5)

        canceled = await handle.cancel_job()
        again = await handle.cancel_job()
        final = await handle.wait()

    assert canceled.status == JobStatus.CANCELED
    assert again.status == JobStatus.CANCELED
    assert final.status == JobStatus.CANCELED
    assert handle.cancel_requested
    assert len(backend.cancels) == 1
    assert len(backend.gets) == 1
    assert seen == [JobStatus.PROCESSING, JobStatus.CANCELED]


@pytest.mark.asyncio
async def test_failed_cancel_keeps_polling() -> None:
    backend = FakeBackend(
        ["PROCESSING"],
        cancel_response=httpx.Response(503, json={"error": "try later"}),
    )
    first_update = asyncio.Event()

    async with make_client(backend) as client:
        poller = JobPoller(client, interval=60.0, retry_policy=RetryPolicy())
        handle = poller.start("j1", lambda snapshot: first_update.set())
        await asyncio.wait_for(first_update.wait(), timeout=5)

        with pytest.raises(ProviderError):
            await handle.cancel_job()

        assert not handle.done
        assert not handle.cancel_requested
        handle.stop()
        await handle.wait()
