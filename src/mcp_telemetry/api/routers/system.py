"""System status routes."""

from __future__ import annotations
from fastapi import APIRouter
from mcp_telemetry.api.dependencies import AnalyticsEnabledDep, TelemetryDep
from mcp_telemetry.api.schemas import HealthResponse


router = APIRouter()


@router.get("/system/health", response_model=HealthResponse)
def get_system_health(
    telemetry: TelemetryDep, analytics_enabled: AnalyticsEnabledDep
) -> HealthResponse:
    """Return a lightweight health status with the current queue depth."""
    return HealthResponse(
        status="ok",
        analytics_enabled=analytics_enabled,
        pending_events=telemetry.pending,
        in_flight_batches=telemetry.in_flight,
    )


__all__ = ["router"]
