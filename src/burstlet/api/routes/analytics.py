"""Analytics endpoints over published content metrics."""

from datetime import date

from fastapi import APIRouter, Query
from pydantic import BaseModel

from burstlet.api.deps import AnalyticsServiceDep, UserIdDep
from burstlet.domain.enums import Platform

router = APIRouter(prefix="/analytics", tags=["Analytics"])


# =============================================================================
# Response Models
# =============================================================================


class AnalyticsOverview(BaseModel):
    """Headline numbers for a date window."""

    start_date: date
    end_date: date
    platform: str | None = None
    total_content: int
    published_content: int
    views: int
    likes: int
    shares: int
    comments: int
    engagement_rate: float
    views_change: float | None = None
    generations: dict[str, int]


class MetricPoint(BaseModel):
    date: date
    views: int
    likes: int
    shares: int
    comments: int


class MetricsResponse(BaseModel):
    metrics: list[MetricPoint]


class PlatformBreakdown(BaseModel):
    platform: str
    views: int
    likes: int
    shares: int
    comments: int
    followers: int
    content_count: int
    engagement_rate: float


class PlatformsResponse(BaseModel):
    platforms: list[PlatformBreakdown]


class TopContentItem(BaseModel):
    content_id: str
    title: str
    type: str
    views: int
    likes: int
    shares: int
    comments: int
    engagement: float


class TopContentResponse(BaseModel):
    content: list[TopContentItem]


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/overview", response_model=AnalyticsOverview, summary="Analytics overview")
async def get_overview(
    service: AnalyticsServiceDep,
    user_id: UserIdDep,
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    platform: Platform | None = Query(None),
) -> AnalyticsOverview:
    return AnalyticsOverview.model_validate(
        service.overview(user_id, start_date, end_date, platform and str(platform))
    )


@router.get("/metrics", response_model=MetricsResponse, summary="Daily metrics")
async def get_metrics(
    service: AnalyticsServiceDep,
    user_id: UserIdDep,
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    platform: Platform | None = Query(None),
) -> MetricsResponse:
    points = service.metrics(user_id, start_date, end_date, platform and str(platform))
    return MetricsResponse(metrics=[MetricPoint.model_validate(p) for p in points])


@router.get("/platforms", response_model=PlatformsResponse, summary="Per-platform breakdown")
async def get_platforms(
    service: AnalyticsServiceDep,
    user_id: UserIdDep,
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    platform: Platform | None = Query(None),
) -> PlatformsResponse:
    rows = service.platforms(user_id, start_date, end_date, platform and str(platform))
    return PlatformsResponse(platforms=[PlatformBreakdown.model_validate(r) for r in rows])


@router.get("/top-content", response_model=TopContentResponse, summary="Top content")
async def get_top_content(
    service: AnalyticsServiceDep,
    user_id: UserIdDep,
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    platform: Platform | None = Query(None),
    metric: str = Query("views", description="views, likes, shares, comments or engagement"),
    limit: int = Query(10, ge=1, le=50),
) -> TopContentResponse:
    items = service.top_content(
        user_id, start_date, end_date, platform and str(platform), metric=metric, limit=limit
    )
    return TopContentResponse(content=[TopContentItem.model_validate(i) for i in items])
