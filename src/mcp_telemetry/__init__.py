"""Activity telemetry and trending ranking for MCP server dashboards."""

from mcp_telemetry.buffer import EventBuffer
from mcp_telemetry.errors import ActivityLogError, MetricsStoreError, TelemetryError
from mcp_telemetry.events import Event, EventKind, EventRejection, accept
from mcp_telemetry.query import MetricsQueryFacade
from mcp_telemetry.service import TelemetryService
from mcp_telemetry.transport import MetricsTransport
from mcp_telemetry.trending import TrendingAggregator, TrendingResult


__all__ = [
    "ActivityLogError",
    "Event",
    "EventBuffer",
    "EventKind",
    "EventRejection",
    "MetricsQueryFacade",
    "MetricsStoreError",
    "MetricsTransport",
    "TelemetryError",
    "TelemetryService",
    "TrendingAggregator",
    "TrendingResult",
    "accept",
]
