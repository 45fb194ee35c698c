"""FastAPI application factory wiring telemetry, queries and trending."""

from __future__ import annotations
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any
from fastapi import FastAPI
from mcp_telemetry.api.routers import analytics, system, trending
from mcp_telemetry.config import get_settings
from mcp_telemetry.logging_config import get_logger
from mcp_telemetry.query import MetricsQueryFacade
from mcp_telemetry.service import TelemetryService
from mcp_telemetry.transport import MetricsTransport
from mcp_telemetry.trending import (
    ActivityLog,
    SqliteActivityLog,
    TrendingAggregator,
)


logger = get_logger(__name__)


def create_app(
    settings: Any | None = None,
    *,
    transport: MetricsTransport | None = None,
    activity_log: ActivityLog | None = None,
    clock: Callable[[], datetime] | None = None,
) -> FastAPI:
    """Return a configured application.

    ``transport`` and ``activity_log`` replace the instances otherwise built
    from settings.
    """
    settings = settings if settings is not None else get_settings()
    if transport is None:
        transport = MetricsTransport.from_settings(settings)
    telemetry = TelemetryService.from_settings(settings, transport=transport)
    log = (
        activity_log
        if activity_log is not None
        else SqliteActivityLog(settings.activity_db_path)
    )
    aggregator = TrendingAggregator(log, clock=clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if isinstance(log, SqliteActivityLog):
            await log.ensure_schema()
        logger.info(
            "Telemetry API started",
            extra={"event": "startup", "analytics_enabled": telemetry.enabled},
        )
        try:
            yield
        finally:
            await telemetry.shutdown()
            logger.info("Telemetry API stopped", extra={"event": "shutdown"})

    app = FastAPI(title="MCP Telemetry", lifespan=lifespan)
    app.state.settings = settings
    app.state.telemetry = telemetry
    app.state.facade = MetricsQueryFacade(transport)
    app.state.aggregator = aggregator
    app.state.analytics_enabled = bool(settings.enabled)

    app.include_router(system.router, prefix="/api", tags=["system"])
    app.include_router(analytics.router, prefix="/api/analytics", tags=["analytics"])
    app.include_router(trending.router, prefix="/api/trending", tags=["trending"])
    return app


__all__ = ["create_app"]
