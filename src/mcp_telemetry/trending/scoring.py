"""Weighted, recency-decayed trending score."""

from __future__ import annotations
import math
from datetime import datetime
from mcp_telemetry.trending.models import ActivityAggregate, TrendingResult


INSTALL_WEIGHT = 40
ACTIVITY_WEIGHT = 40
RECENCY_WEIGHT = 20
RECENCY_FLOOR = 0.5


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return math.floor(value + 0.5)


def recency_multiplier(
    last_activity_at: datetime, *, now: datetime, window_hours: int
) -> float:
    """Return a factor in ``[0.5, 1.0]`` that decays across the window."""
    hours_since = (now - last_activity_at).total_seconds() / 3600
    decayed = 1 - hours_since / window_hours
    return min(1.0, max(RECENCY_FLOOR, decayed))


def trending_score(
    aggregate: ActivityAggregate, *, now: datetime, window_hours: int
) -> int:
    """Combine net installs, usage and recency into a single score.

    Recency only boosts groups whose counts already score above zero, so a
    server without installs or usage never ranks on recency alone.
    """
    base = (
        aggregate.net_install_count * INSTALL_WEIGHT
        + aggregate.activity_count * ACTIVITY_WEIGHT
    )
    if base <= 0:
        return base
    if aggregate.last_activity_at is None:
        recency = RECENCY_FLOOR
    else:
        recency = recency_multiplier(
            aggregate.last_activity_at, now=now, window_hours=window_hours
        )
    return round_half_up(base + recency * RECENCY_WEIGHT)


def score_aggregate(
    aggregate: ActivityAggregate, *, now: datetime, window_hours: int
) -> TrendingResult:
    """Build the ranked result for one aggregate."""
    return TrendingResult(
        server_key=aggregate.server_key,
        source=aggregate.source,
        net_install_count=aggregate.net_install_count,
        tool_call_count=aggregate.tool_call_count,
        total_activity_count=aggregate.total_count,
        trending_score=trending_score(aggregate, now=now, window_hours=window_hours),
        last_activity_at=aggregate.last_activity_at or now,
    )


__all__ = [
    "ACTIVITY_WEIGHT",
    "INSTALL_WEIGHT",
    "RECENCY_FLOOR",
    "RECENCY_WEIGHT",
    "recency_multiplier",
    "round_half_up",
    "score_aggregate",
    "trending_score",
]
