"""Tests for client session state."""

import asyncio

import httpx
import pytest

from burstlet.client import BurstletClient, ClientSession, RetryPolicy
from burstlet.client.session import NOTIFICATION_LIMIT
from burstlet.domain.enums import JobStatus


def backend(request: httpx.Request) -> httpx.Response:
    if request.method == "POST" and request.url.path.endswith("/generation/video"):
        return httpx.Response(429, json={"error": "Monthly video generation quota exceeded", "code": "QUOTA_EXCEEDED"})
    if request.method == "POST":
        return httpx.Response(202, json={"id": "j1", "type": "blog", "status": "PENDING"})
    return httpx.Response(200, json={"id": "j1", "type": "blog", "status": "PROCESSING"})


@pytest.fixture
def client() -> BurstletClient:
    return BurstletClient(base_url="http://api.test/api/v1", transport=httpx.MockTransport(backend))


@pytest.mark.asyncio
async def test_successful_mutation_notifies(client: BurstletClient) -> None:
    async with ClientSession(client) as session:
        job = await session.run_mutation(
            lambda: client.generate_blog({"topic": "AI trends"}),
            success_message="Blog generation started",
        )

        assert job.id == "j1"
        assert [n.variant for n in session.notifications] == ["default"]
        assert session.notifications[0].message == "Blog generation started"


@pytest.mark.asyncio
async def test_failed_mutation_becomes_destructive_notification(client: BurstletClient) -> None:
    async with ClientSession(client) as session:
        result = await session.run_mutation(lambda: client.generate_video({"prompt": "clip"}))

        assert result is None
        notification = session.notifications[-1]
        assert notification.variant == "destructive"
        assert "quota" in notification.message


@pytest.mark.asyncio
async def test_unexpected_errors_propagate(client: BurstletClient) -> None:
    async def explode() -> None:
        raise RuntimeError("bug")

    async with ClientSession(client) as session:
        with pytest.raises(RuntimeError):
            await session.run_mutation(explode)
        assert session.notifications == []


@pytest.mark.asyncio
async def test_notifications_are_bounded_and_dismissable(client: BurstletClient) -> None:
    async with ClientSession(client) as session:
        for i in range(NOTIFICATION_LIMIT + 5):
            session.notify(f"n{i}")

        assert len(session.notifications) == NOTIFICATION_LIMIT
        assert session.notifications[0].title == "n5"

        first_id = session.notifications[0].id
        session.dismiss(first_id)
        assert first_id not in [n.id for n in session.notifications]

        session.clear_notifications()
        assert session.notifications == []


@pytest.mark.asyncio
async def test_sidebar_toggle(client: BurstletClient) -> None:
    async with ClientSession(client) as session:
        assert session.sidebar_collapsed is False
        assert session.toggle_sidebar() is True
        assert session.toggle_sidebar() is False


@pytest.mark.asyncio
async def test_close_stops_watches(client: BurstletClient) -> None:
    session = ClientSession(client, poll_interval=60.0, retry_policy=RetryPolicy())
    first_update = asyncio.Event()

    handle = session.watch_job("j1", lambda snapshot: first_update.set())
    assert session.watch_job("j1") is handle
    await asyncio.wait_for(first_update.wait(), timeout=5)
    assert session.active_jobs == ["j1"]

    await session.close()

    assert handle.done
    assert handle.latest.status == JobStatus.PROCESSING
    assert session.handles == {}
    await client.aclose()
