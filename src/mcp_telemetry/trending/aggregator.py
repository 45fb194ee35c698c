"""On-demand trending ranking over the local activity log."""

from __future__ import annotations
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from mcp_telemetry.trending.activity_log import ActivityLog
from mcp_telemetry.trending.models import (
    ServerActivityMetrics,
    ServerSource,
    TrendingResult,
    resolve_period,
)
from mcp_telemetry.trending.scoring import score_aggregate


logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10


class TrendingAggregator:
    """Compute time-decayed trending scores from activity counts.

    Results are computed fresh on every call. ``clock`` makes the computation
    a pure function of the log snapshot and the supplied time.
    """

    def __init__(
        self,
        activity_log: ActivityLog,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Bind the aggregator to an activity log."""
        self._activity_log = activity_log
        self._clock = clock or (lambda: datetime.now(tz=UTC))

    async def compute_trending(
        self,
        source: ServerSource | None = None,
        window: str = "7d",
        limit: int = DEFAULT_LIMIT,
    ) -> list[TrendingResult]:
        """Return up to ``limit`` servers ranked by trending score.

        Groups scoring zero or less are excluded. Equal scores are ordered by
        server key, then source, so rankings are reproducible across storage
        engines.
        """
        if limit <= 0:
            return []
        period = resolve_period(window)
        now = self._clock()
        cutoff = now - timedelta(hours=period.hours)

        aggregates = await self._activity_log.aggregate(since=cutoff, source=source)
        scored = [
            score_aggregate(aggregate, now=now, window_hours=period.hours)
            for aggregate in aggregates
        ]
        ranked = sorted(
            (result for result in scored if result.trending_score > 0),
            key=lambda result: (
                -result.trending_score,
                result.server_key,
                result.source.value,
            ),
        )
        logger.debug(
            "Computed trending ranking",
            extra={
                "event": "trending_computed",
                "window": period.hours,
                "groups": len(aggregates),
                "ranked": len(ranked),
            },
        )
        return ranked[:limit]

    async def server_activity_metrics(
        self,
        server_id: str,
        source: ServerSource,
        window: str = "7d",
    ) -> ServerActivityMetrics:
        """Return install, usage and per-day activity for one server."""
        period = resolve_period(window)
        cutoff = self._clock() - timedelta(hours=period.hours)
        return await self._activity_log.server_activity(
            server_id, source, since=cutoff
        )


__all__ = ["DEFAULT_LIMIT", "TrendingAggregator"]
