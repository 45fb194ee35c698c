"""Read-side access to remote metrics used by dashboard widgets."""

from __future__ import annotations
import logging
from typing import Any, Protocol
from mcp_telemetry.errors import MetricsStoreError


logger = logging.getLogger(__name__)


class MetricsReader(Protocol):
    """Anything able to perform authenticated JSON reads against the store."""

    async def get_json(
        self, path: str, params: dict[str, Any] | None = None
    ) -> Any:  # pragma: no cover - protocol
        """Return the decoded JSON body or raise ``MetricsStoreError``."""
        ...


def _as_list(payload: Any, key: str) -> list[Any]:
    """Accept either a bare list or an object wrapping the list under ``key``."""
    if isinstance(payload, dict):
        payload = payload.get(key)
    return list(payload) if isinstance(payload, list) else []


class MetricsQueryFacade:
    """Query remote metrics with a per-endpoint failure policy.

    Widget-style reads (per-server, trending, popular, timeline) log and
    return an empty result when the store fails. ``get_global_metrics``
    propagates :class:`MetricsStoreError` so summary views can show an
    explicit error state.

    ``get_trending_servers`` reads the remote ranking and is independent of
    :class:`~mcp_telemetry.trending.TrendingAggregator`.
    """

    def __init__(self, reader: MetricsReader) -> None:
        """Bind the facade to a reader, usually a ``MetricsTransport``."""
        self._reader = reader

    async def get_server_metrics(self, server_id: str) -> dict[str, Any] | None:
        """Return metrics for one server, or ``None`` when unavailable."""
        try:
            payload = await self._reader.get_json(f"/api/metrics/server/{server_id}")
        except MetricsStoreError as exc:
            logger.error("Failed to get server metrics for %s: %s", server_id, exc)
            return None
        return payload if isinstance(payload, dict) else None

    async def get_global_metrics(self) -> dict[str, Any]:
        """Return global metrics; failures propagate to the caller."""
        payload = await self._reader.get_json("/api/metrics/global")
        if not isinstance(payload, dict):
            msg = "Metrics store returned an unexpected global metrics payload"
            raise MetricsStoreError(msg)
        return payload

    async def get_trending_servers(self, limit: int = 10) -> list[dict[str, Any]]:
        """Return the remote trending ranking, or ``[]`` on failure."""
        try:
            payload = await self._reader.get_json(
                "/api/metrics/trending", {"limit": limit}
            )
        except MetricsStoreError as exc:
            logger.error("Failed to get trending servers: %s", exc)
            return []
        return _as_list(payload, "servers")

    async def get_popular_servers(
        self, category: str = "all", limit: int = 10
    ) -> list[dict[str, Any]]:
        """Return popular servers in ``category``, or ``[]`` on failure."""
        try:
            payload = await self._reader.get_json(
                "/api/metrics/popular", {"category": category, "limit": limit}
            )
        except MetricsStoreError as exc:
            logger.error("Failed to get popular servers for %s: %s", category, exc)
            return []
        return _as_list(payload, "servers")

    async def get_server_timeline(
        self, server_id: str, period: str = "30d"
    ) -> list[dict[str, Any]] | None:
        """Return the activity timeline for a server, or ``None`` on failure."""
        try:
            payload = await self._reader.get_json(
                f"/api/metrics/server/{server_id}/timeline", {"period": period}
            )
        except MetricsStoreError as exc:
            logger.error("Failed to get timeline for %s: %s", server_id, exc)
            return None
        return _as_list(payload, "timeline")


__all__ = ["MetricsQueryFacade", "MetricsReader"]
