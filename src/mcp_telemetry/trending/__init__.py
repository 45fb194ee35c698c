"""Trending ranking computed from the local activity log."""

from mcp_telemetry.trending.activity_log import (
    ActivityLog,
    InMemoryActivityLog,
    SqliteActivityLog,
    aggregate_entries,
)
from mcp_telemetry.trending.aggregator import TrendingAggregator
from mcp_telemetry.trending.models import (
    TRENDING_PERIODS,
    ActivityAction,
    ActivityAggregate,
    ActivityLogEntry,
    DailyActivity,
    ServerActivityMetrics,
    ServerSource,
    TrendingPeriod,
    TrendingResult,
    canonical_server_key,
    resolve_period,
)


__all__ = [
    "TRENDING_PERIODS",
    "ActivityAction",
    "ActivityAggregate",
    "ActivityLog",
    "ActivityLogEntry",
    "DailyActivity",
    "InMemoryActivityLog",
    "ServerActivityMetrics",
    "ServerSource",
    "SqliteActivityLog",
    "TrendingAggregator",
    "TrendingPeriod",
    "TrendingResult",
    "aggregate_entries",
    "canonical_server_key",
    "resolve_period",
]
