"""Content analytics aggregated from per-platform daily metrics."""

from datetime import date, timedelta
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from burstlet.db.models import ContentMetricModel, ContentModel, GenerationJobModel
from burstlet.domain.enums import ContentStatus
from burstlet.errors import InvalidRequestError
from burstlet.logging import get_logger

logger = get_logger(__name__)

DEFAULT_WINDOW_DAYS = 30

TOP_CONTENT_METRICS = ("views", "likes", "shares", "comments", "engagement")


def engagement_rate(views: int, likes: int, shares: int, comments: int) -> float:
    """Interactions per view, as a percentage."""
    if not views:
        return 0.0
    return round((likes + shares + comments) / views * 100, 2)


class AnalyticsService:
    """Read-only analytics for one user's content."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def _window(self, start_date: date | None, end_date: date | None) -> tuple[date, date]:
        end = end_date or date.today()
        start = start_date or end - timedelta(days=DEFAULT_WINDOW_DAYS - 1)
        if start > end:
            raise InvalidRequestError(
                f"start_date {start.isoformat()} is after end_date {end.isoformat()}",
                details={"start_date": start.isoformat(), "end_date": end.isoformat()},
            )
        return start, end

    def _metrics_query(
        self,
        columns: list[Any],
        user_id: str,
        start: date,
        end: date,
        platform: str | None,
    ) -> Select[Any]:
        query = (
            select(*columns)
            .join(ContentModel, ContentMetricModel.content_id == ContentModel.id)
            .where(
                ContentModel.user_id == user_id,
                ContentMetricModel.date >= start,
                ContentMetricModel.date <= end,
            )
        )
        if platform:
            query = query.where(ContentMetricModel.platform == platform)
        return query

    def _totals(
        self, user_id: str, start: date, end: date, platform: str | None
    ) -> dict[str, int]:
        row = self.session.execute(
            self._metrics_query(
                [
                    func.coalesce(func.sum(ContentMetricModel.views), 0),
                    func.coalesce(func.sum(ContentMetricModel.likes), 0),
                    func.coalesce(func.sum(ContentMetricModel.shares), 0),
                    func.coalesce(func.sum(ContentMetricModel.comments), 0),
                ],
                user_id,
                start,
                end,
                platform,
            )
        ).one()
        return {"views": int(row[0]), "likes": int(row[1]), "shares": int(row[2]), "comments": int(row[3])}

    def overview(
        self,
        user_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
        platform: str | None = None,
    ) -> dict[str, Any]:
        """Headline numbers for the window, compared against the previous window."""
        start, end = self._window(start_date, end_date)
        totals = self._totals(user_id, start, end, platform)

        span = end - start + timedelta(days=1)
        previous = self._totals(user_id, start - span, start - timedelta(days=1), platform)

        content_counts = dict(
            self.session.execute(
                select(ContentModel.status, func.count())
                .where(ContentModel.user_id == user_id)
                .group_by(ContentModel.status)
            ).all()
        )
        generation_counts = dict(
            self.session.execute(
                select(GenerationJobModel.status, func.count())
                .where(GenerationJobModel.user_id == user_id)
                .group_by(GenerationJobModel.status)
            ).all()
        )

        return {
            "start_date": start,
            "end_date": end,
            "platform": platform,
            "total_content": sum(content_counts.values()),
            "published_content": content_counts.get(str(ContentStatus.PUBLISHED), 0),
            **totals,
            "engagement_rate": engagement_rate(**totals),
            "views_change": _percent_change(previous["views"], totals["views"]),
            "generations": {str(k): v for k, v in generation_counts.items()},
        }

    def metrics(
        self,
        user_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
        platform: str | None = None,
    ) -> list[dict[str, Any]]:
        """Daily time series, one point per day that has data."""
        start, end = self._window(start_date, end_date)
        rows = self.session.execute(
            self._metrics_query(
                [
                    ContentMetricModel.date,
                    func.sum(ContentMetricModel.views),
                    func.sum(ContentMetricModel.likes),
                    func.sum(ContentMetricModel.shares),
                    func.sum(ContentMetricModel.comments),
                ],
                user_id,
                start,
                end,
                platform,
            )
            .group_by(ContentMetricModel.date)
            .order_by(ContentMetricModel.date)
        ).all()

        return [
            {"date": day, "views": views, "likes": likes, "shares": shares, "comments": comments}
            for day, views, likes, shares, comments in rows
        ]

    def platforms(
        self,
        user_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
        platform: str | None = None,
    ) -> list[dict[str, Any]]:
        """Totals broken down by platform."""
        start, end = self._window(start_date, end_date)
        rows = self.session.execute(
            self._metrics_query(
                [
                    ContentMetricModel.platform,
                    func.sum(ContentMetricModel.views),
                    func.sum(ContentMetricModel.likes),
                    func.sum(ContentMetricModel.shares),
                    func.sum(ContentMetricModel.comments),
                    func.max(ContentMetricModel.followers),
                    func.count(func.distinct(ContentMetricModel.content_id)),
                ],
                user_id,
                start,
                end,
                platform,
            )
            .group_by(ContentMetricModel.platform)
            .order_by(func.sum(ContentMetricModel.views).desc())
        ).all()

        return [
            {
                "platform": name,
                "views": views,
                "likes": likes,
                "shares": shares,
                "comments": comments,
                "followers": followers,
                "content_count": content_count,
                "engagement_rate": engagement_rate(views, likes, shares, comments),
            }
            for name, views, likes, shares, comments, followers, content_count in rows
        ]

    def top_content(
        self,
        user_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
        platform: str | None = None,
        metric: str = "views",
        limit: int = 10,
    ) -> list[dict[str, Any]]:
        """Best performing content in the window, ranked by ``metric``."""
        if metric not in TOP_CONTENT_METRICS:
            metric = "views"

        start, end = self._window(start_date, end_date)
        rows = self.session.execute(
            self._metrics_query(
                [
                    ContentModel.id,
                    ContentModel.title,
                    ContentModel.type,
                    func.sum(ContentMetricModel.views),
                    func.sum(ContentMetricModel.likes),
                    func.sum(ContentMetricModel.shares),
                    func.sum(ContentMetricModel.comments),
                ],
                user_id,
                start,
                end,
                platform,
            ).group_by(ContentModel.id, ContentModel.title, ContentModel.type)
        ).all()

        items = []
        for content_id, title, content_type, views, likes, shares, comments in rows:
            items.append(
                {
                    "content_id": content_id,
                    "title": title,
                    "type": content_type,
                    "views": views,
                    "likes": likes,
                    "shares": shares,
                    "comments": comments,
                    "engagement": engagement_rate(views, likes, shares, comments),
                }
            )
        items.sort(key=lambda item: item[metric], reverse=True)
        return items[:limit]


def _percent_change(previous: int, current: int) -> float | None:
    if not previous:
        return None
    return round((current - previous) / previous * 100, 2)
