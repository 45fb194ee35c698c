"""Response schemas for the telemetry HTTP API."""

from __future__ import annotations
from datetime import datetime
from typing import Any
from pydantic import BaseModel, Field
from mcp_telemetry.trending import ServerSource


class HealthResponse(BaseModel):
    """Liveness payload with telemetry queue depth."""

    status: str
    analytics_enabled: bool
    pending_events: int
    in_flight_batches: int


class TrackEventResponse(BaseModel):
    """Outcome of submitting one telemetry event."""

    accepted: bool
    kind: str | None = None
    reason: str | None = None
    errors: list[str] = Field(default_factory=list)


class TrendingPeriodResponse(BaseModel):
    """Window used for a trending computation."""

    label: str
    hours: int


class TrendingServerItem(BaseModel):
    """Locally computed trending entry."""

    id: str
    source: ServerSource
    trending_score: int
    install_count: int
    tool_call_count: int
    total_activity_count: int
    last_activity: datetime


class TrendingServersResponse(BaseModel):
    """Locally computed trending ranking with its window."""

    servers: list[TrendingServerItem]
    period: TrendingPeriodResponse


class RemoteTrendingItem(BaseModel):
    """Remote trending entry normalized for display."""

    id: str | None = None
    name: str
    description: str
    score: float = 0
    installations: int = 0
    views: int = 0
    rank: int
    change: float = 0


class RemoteTrendingResponse(BaseModel):
    """Remote trending ranking wrapper."""

    data: list[RemoteTrendingItem]


class ServerListResponse(BaseModel):
    """Plain list of servers returned by the remote store."""

    servers: list[dict[str, Any]]


class TimelineResponse(BaseModel):
    """Activity timeline for a server."""

    timeline: list[dict[str, Any]]


__all__ = [
    "HealthResponse",
    "RemoteTrendingItem",
    "RemoteTrendingResponse",
    "ServerListResponse",
    "TimelineResponse",
    "TrackEventResponse",
    "TrendingPeriodResponse",
    "TrendingServerItem",
    "TrendingServersResponse",
]
