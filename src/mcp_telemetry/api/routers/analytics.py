"""Routes for submitting telemetry and reading remote metrics."""

from __future__ import annotations
import logging
import math
from typing import Any
from fastapi import APIRouter, Body, HTTPException, Query, status
from mcp_telemetry.api.dependencies import FacadeDep, OptionalFacadeDep, TelemetryDep
from mcp_telemetry.api.schemas import (
    RemoteTrendingItem,
    RemoteTrendingResponse,
    ServerListResponse,
    TimelineResponse,
    TrackEventResponse,
)
from mcp_telemetry.errors import MetricsStoreError
from mcp_telemetry.events import EventRejection


logger = logging.getLogger(__name__)

router = APIRouter()


def display_name(raw: str) -> str:
    """Turn ``io.github.user/my-server`` into ``My Server``."""
    tail = raw.split("/")[-1] or raw
    words = tail.replace("-", " ").replace("_", " ").split(" ")
    return " ".join(word[:1].upper() + word[1:] for word in words)


def _number(value: Any) -> float:
    """Return ``value`` as a finite float, or ``0.0`` when it is not numeric."""
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _to_remote_item(server: dict[str, Any], index: int) -> RemoteTrendingItem:
    raw_id = server.get("server_id") or server.get("serverId")
    raw_name = str(server.get("server_name") or server.get("serverId") or "")
    name = display_name(raw_name) if raw_name else f"Server {index + 1}"
    return RemoteTrendingItem(
        id=str(raw_id) if raw_id is not None else None,
        name=name,
        description=str(server.get("description") or "Trending MCP server"),
        score=_number(server.get("trending_score") or server.get("score")),
        installations=int(
            _number(server.get("recent_installs") or server.get("installations"))
        ),
        views=int(_number(server.get("views"))),
        rank=index + 1,
        change=_number(server.get("install_growth")),
    )


@router.post(
    "/events",
    response_model=TrackEventResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def track_event(
    telemetry: TelemetryDep,
    payload: dict[str, Any] = Body(...),  # noqa: B008
) -> TrackEventResponse:
    """Validate and enqueue a telemetry event; rejections are not errors."""
    result = telemetry.track(payload)
    if isinstance(result, EventRejection):
        return TrackEventResponse(
            accepted=False, reason=result.reason, errors=list(result.errors)
        )
    return TrackEventResponse(accepted=True, kind=result.kind)


@router.get("/trending", response_model=RemoteTrendingResponse)
async def get_remote_trending(
    facade: OptionalFacadeDep,
    limit: int = Query(default=10, ge=1, le=50),
) -> RemoteTrendingResponse:
    """Return the remote trending ranking normalized for display."""
    if facade is None:
        return RemoteTrendingResponse(data=[])
    servers = await facade.get_trending_servers(limit)
    return RemoteTrendingResponse(
        data=[
            _to_remote_item(server, index)
            for index, server in enumerate(servers)
            if isinstance(server, dict)
        ]
    )


@router.get("/servers/{server_id}/metrics")
async def get_server_metrics(server_id: str, facade: FacadeDep) -> dict[str, Any]:
    """Return remote metrics for one server."""
    metrics = await facade.get_server_metrics(server_id)
    if metrics is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Server metrics are unavailable.",
        )
    return metrics


@router.get("/servers/{server_id}/timeline", response_model=TimelineResponse)
async def get_server_timeline(
    server_id: str,
    facade: FacadeDep,
    period: str = Query(default="30d"),
) -> TimelineResponse:
    """Return the remote activity timeline for one server."""
    timeline = await facade.get_server_timeline(server_id, period)
    if timeline is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Server timeline is unavailable.",
        )
    return TimelineResponse(timeline=timeline)


@router.get("/global")
async def get_global_metrics(facade: FacadeDep) -> dict[str, Any]:
    """Return global metrics, surfacing store failures as 502."""
    try:
        return await facade.get_global_metrics()
    except MetricsStoreError as exc:
        logger.error("Global metrics unavailable: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to fetch global metrics.",
        ) from exc


@router.get("/popular", response_model=ServerListResponse)
async def get_popular_servers(
    facade: FacadeDep,
    category: str = Query(default="all"),
    limit: int = Query(default=10, ge=1, le=50),
) -> ServerListResponse:
    """Return popular servers for a category."""
    servers = await facade.get_popular_servers(category, limit)
    return ServerListResponse(servers=servers)


__all__ = ["display_name", "router"]
