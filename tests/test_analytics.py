"""Tests for content analytics."""

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from burstlet.db.models import ContentMetricModel, ContentModel
from burstlet.errors import InvalidRequestError
from burstlet.services.analytics import AnalyticsService, engagement_rate

TODAY = date(2026, 3, 31)


@pytest.fixture
def seeded(db_session) -> dict[str, str]:
    """Two published items with a few days of metrics, plus another user's item."""
    launch = ContentModel(user_id="demo-user", title="Launch video", type="video", status="published")
    tips = ContentModel(user_id="demo-user", title="Tips thread", type="social", status="published")
    draft = ContentModel(user_id="demo-user", title="Draft", type="blog", status="draft")
    other = ContentModel(user_id="someone-else", title="Not mine", type="video", status="published")
    db_session.add_all([launch, tips, draft, other])
    db_session.flush()

    rows = [
        (launch, "youtube", TODAY, 1000, 100, 10, 40, 500),
        (launch, "youtube", TODAY - timedelta(days=1), 500, 20, 5, 5, 480),
        (launch, "tiktok", TODAY, 2000, 300, 50, 20, 900),
        (tips, "twitter", TODAY - timedelta(days=2), 300, 30, 3, 2, 150),
        # Previous 30-day window
        (launch, "youtube", TODAY - timedelta(days=40), 1900, 10, 0, 0, 400),
        (other, "youtube", TODAY, 99999, 0, 0, 0, 1),
    ]
    for content, platform, day, views, likes, shares, comments, followers in rows:
        db_session.add(
            ContentMetricModel(
                content_id=content.id,
                platform=platform,
                date=day,
                views=views,
                likes=likes,
                shares=shares,
                comments=comments,
                followers=followers,
            )
        )
    db_session.commit()
    return {"launch": launch.id, "tips": tips.id}


def test_engagement_rate() -> None:
    assert engagement_rate(1000, 50, 25, 25) == 10.0
    assert engagement_rate(0, 5, 5, 5) == 0.0


def test_overview(db_session, seeded) -> None:
    overview = AnalyticsService(db_session).overview("demo-user", end_date=TODAY)

    assert overview["views"] == 3800
    assert overview["likes"] == 450
    assert overview["total_content"] == 3
    assert overview["published_content"] == 2
    assert overview["views_change"] == 100.0
    assert overview["engagement_rate"] == engagement_rate(3800, 450, 68, 67)


def test_platform_filter(db_session, seeded) -> None:
    overview = AnalyticsService(db_session).overview("demo-user", end_date=TODAY, platform="tiktok")
    assert overview["views"] == 2000


def test_daily_metrics(db_session, seeded) -> None:
    points = AnalyticsService(db_session).metrics("demo-user", end_date=TODAY)

    assert [p["date"] for p in points] == [
        TODAY - timedelta(days=2),
        TODAY - timedelta(days=1),
        TODAY,
    ]
    assert points[-1]["views"] == 3000


def test_platform_breakdown(db_session, seeded) -> None:
    platforms = AnalyticsService(db_session).platforms("demo-user", end_date=TODAY)

    assert [p["platform"] for p in platforms] == ["tiktok", "youtube", "twitter"]
    youtube = platforms[1]
    assert youtube["views"] == 1500
    assert youtube["followers"] == 500
    assert youtube["content_count"] == 1


def test_top_content(db_session, seeded) -> None:
    service = AnalyticsService(db_session)

    by_views = service.top_content("demo-user", end_date=TODAY)
    assert [item["content_id"] for item in by_views] == [seeded["launch"], seeded["tips"]]

    by_engagement = service.top_content("demo-user", end_date=TODAY, metric="engagement", limit=1)
    assert len(by_engagement) == 1
    assert by_engagement[0]["content_id"] == seeded["launch"]


def test_overview_endpoint(test_client: TestClient, seeded) -> None:
    response = test_client.get(
        "/api/v1/analytics/overview",
        params={"start_date": str(TODAY - timedelta(days=29)), "end_date": str(TODAY)},
    )

    assert response.status_code == 200
    assert response.json()["views"] == 3800


def test_top_content_endpoint(test_client: TestClient, seeded) -> None:
    response = test_client.get(
        "/api/v1/analytics/top-content",
        params={"end_date": str(TODAY), "metric": "likes"},
    )

    assert response.status_code == 200
    assert response.json()["content"][0]["title"] == "Launch video"


def test_reversed_date_range_is_rejected(db_session) -> None:
    with pytest.raises(InvalidRequestError):
        AnalyticsService(db_session).overview("demo-user", start_date=TODAY, end_date=TODAY - timedelta(days=1))


def test_reversed_date_range_endpoint(test_client: TestClient) -> None:
    response = test_client.get(
        "/api/v1/analytics/metrics",
        params={"start_date": str(TODAY), "end_date": str(TODAY - timedelta(days=7))},
    )

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"
