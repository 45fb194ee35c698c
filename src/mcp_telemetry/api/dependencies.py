"""FastAPI dependencies resolving the components stored on app state."""

from __future__ import annotations
from typing import Annotated
from fastapi import Depends, HTTPException, Request, status
from mcp_telemetry.query import MetricsQueryFacade
from mcp_telemetry.service import TelemetryService
from mcp_telemetry.trending import TrendingAggregator


def get_telemetry(request: Request) -> TelemetryService:
    """Return the telemetry service bound to the application."""
    return request.app.state.telemetry


def get_aggregator(request: Request) -> TrendingAggregator:
    """Return the trending aggregator bound to the application."""
    return request.app.state.aggregator


def analytics_enabled(request: Request) -> bool:
    """Return whether the remote metrics store is configured for use."""
    return bool(request.app.state.analytics_enabled)


def get_facade(request: Request) -> MetricsQueryFacade:
    """Return the query facade, or 503 when the remote store is disabled."""
    if not analytics_enabled(request):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Analytics is not enabled.",
        )
    return request.app.state.facade


def get_optional_facade(request: Request) -> MetricsQueryFacade | None:
    """Return the query facade, or ``None`` when the remote store is disabled."""
    if not analytics_enabled(request):
        return None
    return request.app.state.facade


TelemetryDep = Annotated[TelemetryService, Depends(get_telemetry)]
AggregatorDep = Annotated[TrendingAggregator, Depends(get_aggregator)]
AnalyticsEnabledDep = Annotated[bool, Depends(analytics_enabled)]
FacadeDep = Annotated[MetricsQueryFacade, Depends(get_facade)]
OptionalFacadeDep = Annotated[
    MetricsQueryFacade | None, Depends(get_optional_facade)
]


__all__ = [
    "AggregatorDep",
    "AnalyticsEnabledDep",
    "FacadeDep",
    "OptionalFacadeDep",
    "TelemetryDep",
    "analytics_enabled",
    "get_aggregator",
    "get_facade",
    "get_optional_facade",
    "get_telemetry",
]
