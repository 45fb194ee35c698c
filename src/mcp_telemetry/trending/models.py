"""Activity log records and trending result types."""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class ServerSource(str, Enum):
    """Where a server listing originates from."""

    PLUGGEDIN = "PLUGGEDIN"
    SMITHERY = "SMITHERY"
    NPM = "NPM"
    GITHUB = "GITHUB"
    REGISTRY = "REGISTRY"
    COMMUNITY = "COMMUNITY"


class ActivityAction(str, Enum):
    """Actions the recorder writes that contribute to trending scores."""

    INSTALL = "install"
    UNINSTALL = "uninstall"
    TOOL_CALL = "tool_call"
    RESOURCE_READ = "resource_read"
    PROMPT_GET = "prompt_get"


def canonical_server_key(
    source: ServerSource | str,
    server_uuid: str | None,
    external_id: str | None,
) -> str | None:
    """Return the identifier that merges activity for one logical server.

    Registry servers are keyed by their external identifier when present so
    that activity recorded before and after a local install lands together.
    """
    if ServerSource(source) is ServerSource.REGISTRY and external_id is not None:
        return external_id
    return server_uuid if server_uuid is not None else external_id


@dataclass(frozen=True, slots=True)
class ActivityLogEntry:
    """Single row of the append-only activity log."""

    source: ServerSource
    action: str
    occurred_at: datetime
    server_uuid: str | None = None
    external_id: str | None = None

    @property
    def server_key(self) -> str | None:
        """Return the canonical key this row is grouped under."""
        return canonical_server_key(self.source, self.server_uuid, self.external_id)


@dataclass(slots=True)
class ActivityAggregate:
    """Per ``(server_key, source)`` counts over a time window."""

    server_key: str
    source: ServerSource
    install_count: int = 0
    uninstall_count: int = 0
    tool_call_count: int = 0
    resource_read_count: int = 0
    prompt_get_count: int = 0
    total_count: int = 0
    last_activity_at: datetime | None = None

    @property
    def net_install_count(self) -> int:
        """Installs minus uninstalls; may be negative."""
        return self.install_count - self.uninstall_count

    @property
    def activity_count(self) -> int:
        """Tool calls, resource reads and prompt fetches combined."""
        return self.tool_call_count + self.resource_read_count + self.prompt_get_count


@dataclass(frozen=True, slots=True)
class TrendingPeriod:
    """Named aggregation window."""

    hours: int
    label: str


TRENDING_PERIODS: dict[str, TrendingPeriod] = {
    "24h": TrendingPeriod(hours=24, label="Last 24 hours"),
    "7d": TrendingPeriod(hours=168, label="Last 7 days"),
    "30d": TrendingPeriod(hours=720, label="Last 30 days"),
}
DEFAULT_PERIOD = "7d"


def resolve_period(window: str | None) -> TrendingPeriod:
    """Return the period for ``window``, falling back to seven days."""
    fallback = TRENDING_PERIODS[DEFAULT_PERIOD]
    return TRENDING_PERIODS.get(window or DEFAULT_PERIOD, fallback)


class TrendingResult(BaseModel):
    """Ranked entry produced by the trending aggregator."""

    model_config = ConfigDict(frozen=True)

    server_key: str
    source: ServerSource
    net_install_count: int
    tool_call_count: int
    total_activity_count: int
    trending_score: int
    last_activity_at: datetime


class DailyActivity(BaseModel):
    """Number of activity rows recorded on one calendar day (UTC)."""

    date: date
    count: int = Field(ge=0)


class ServerActivityMetrics(BaseModel):
    """Activity summary for a single server over a window."""

    net_install_count: int = 0
    tool_call_count: int = 0
    total_activity_count: int = 0
    daily_activity: list[DailyActivity] = Field(default_factory=list)


__all__ = [
    "DEFAULT_PERIOD",
    "TRENDING_PERIODS",
    "ActivityAction",
    "ActivityAggregate",
    "ActivityLogEntry",
    "DailyActivity",
    "ServerActivityMetrics",
    "ServerSource",
    "TrendingPeriod",
    "TrendingResult",
    "canonical_server_key",
    "resolve_period",
]
