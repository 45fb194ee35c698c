"""Routes exposing the locally computed trending ranking."""

from __future__ import annotations
import logging
from typing import Literal
from fastapi import APIRouter, HTTPException, Query, status
from mcp_telemetry.api.dependencies import AggregatorDep
from mcp_telemetry.api.schemas import (
    TrendingPeriodResponse,
    TrendingServerItem,
    TrendingServersResponse,
)
from mcp_telemetry.errors import ActivityLogError
from mcp_telemetry.trending import (
    ServerActivityMetrics,
    ServerSource,
    TrendingResult,
    resolve_period,
)


logger = logging.getLogger(__name__)

router = APIRouter()

SourceFilter = Literal["REGISTRY", "COMMUNITY", "all"]
PeriodFilter = Literal["24h", "7d", "30d"]


def _to_item(result: TrendingResult) -> TrendingServerItem:
    return TrendingServerItem(
        id=result.server_key,
        source=result.source,
        trending_score=result.trending_score,
        install_count=result.net_install_count,
        tool_call_count=result.tool_call_count,
        total_activity_count=result.total_activity_count,
        last_activity=result.last_activity_at,
    )


def _activity_log_unavailable(exc: ActivityLogError) -> HTTPException:
    logger.error("Activity log unavailable: %s", exc)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Failed to read server activity.",
    )


@router.get("/servers", response_model=TrendingServersResponse)
async def get_trending_servers(
    aggregator: AggregatorDep,
    source: SourceFilter = Query(default="all"),
    period: PeriodFilter = Query(default="7d"),
    limit: int = Query(default=10, ge=1, le=50),
) -> TrendingServersResponse:
    """Return servers ranked by recent installs and usage."""
    source_filter = None if source == "all" else ServerSource(source)
    try:
        results = await aggregator.compute_trending(source_filter, period, limit)
    except ActivityLogError as exc:
        raise _activity_log_unavailable(exc) from exc
    window = resolve_period(period)
    return TrendingServersResponse(
        servers=[_to_item(result) for result in results],
        period=TrendingPeriodResponse(label=period, hours=window.hours),
    )


@router.get("/servers/{server_id}/activity", response_model=ServerActivityMetrics)
async def get_server_activity(
    server_id: str,
    aggregator: AggregatorDep,
    source: Literal["REGISTRY", "COMMUNITY"] = Query(default="REGISTRY"),
    period: PeriodFilter = Query(default="7d"),
) -> ServerActivityMetrics:
    """Return install, usage and daily activity counts for one server."""
    try:
        return await aggregator.server_activity_metrics(
            server_id, ServerSource(source), period
        )
    except ActivityLogError as exc:
        raise _activity_log_unavailable(exc) from exc


__all__ = ["router"]
