"""HTTP transport to the remote metrics store."""

from __future__ import annotations
import logging
import time
from collections.abc import Mapping, Sequence
from typing import Any
import httpx
from mcp_telemetry.errors import MetricsStoreError
from mcp_telemetry.events import Event


logger = logging.getLogger(__name__)

EVENTS_BATCH_PATH = "/api/events/batch"
DEFAULT_CLIENT_ID = "pluggedin-app"

# Kind-specific attributes copied into the wire metadata under these keys.
_METADATA_FIELDS: dict[str, tuple[tuple[str, str], ...]] = {
    "install": (("source", "source"),),
    "uninstall": (("reason", "reason"),),
    "usage": (
        ("tool_name", "toolName"),
        ("duration_ms", "duration"),
        ("success", "success"),
    ),
    "view": (("source", "viewSource"),),
    "error": (("error", "error"), ("context", "context")),
    "rating": (("rating", "rating"),),
    "share": (("visibility", "visibility"),),
    "comment": (("comment", "comment"), ("parent_id", "parentId")),
}


def serialize_event(
    event: Event, *, client_id: str = DEFAULT_CLIENT_ID
) -> dict[str, Any]:
    """Convert an event into the flat shape expected by the metrics store."""
    metadata: dict[str, Any] = dict(event.metadata)
    metadata["timestamp"] = (
        event.timestamp.isoformat() if event.timestamp is not None else None
    )
    for attribute, key in _METADATA_FIELDS.get(event.kind, ()):
        metadata[key] = getattr(event, attribute)

    session_id = event.metadata.get("sessionId") or (
        f"session-{int(time.time() * 1000)}"
    )
    return {
        "event_type": event.kind,
        "server_id": event.server_id,
        "client_id": client_id,
        "session_id": session_id,
        "user_id": getattr(event, "user_id", None) or "anonymous",
        "metadata": metadata,
    }


class MetricsTransport:
    """Authenticated client for writing batches to and reading from the store."""

    def __init__(
        self,
        base_url: str,
        *,
        username: str | None = None,
        password: str | None = None,
        client_id: str = DEFAULT_CLIENT_ID,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Create the transport, building an ``httpx.AsyncClient`` if needed."""
        self.base_url = base_url.rstrip("/")
        self.client_id = client_id
        auth = (
            httpx.BasicAuth(username, password)
            if username is not None and password is not None
            else None
        )
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url, auth=auth, timeout=timeout
        )

    @classmethod
    def from_settings(cls, settings: Any) -> MetricsTransport:
        """Build a transport from normalized Dynaconf settings."""
        return cls(
            settings.api_url,
            username=settings.api_username,
            password=settings.api_password,
            client_id=settings.client_id,
            timeout=settings.request_timeout_seconds,
        )

    async def send(self, batch: Sequence[Event]) -> bool:
        """Send one batch; return ``False`` when any part of the call failed.

        Failed batches are not retried; the caller drops them.
        """
        if not batch:
            return True
        body = {
            "events": [
                serialize_event(event, client_id=self.client_id) for event in batch
            ]
        }
        try:
            response = await self._client.post(EVENTS_BATCH_PATH, json=body)
        except httpx.HTTPError as exc:
            logger.error(
                "Failed to send %d telemetry events: %s",
                len(batch),
                exc,
                extra={"event": "telemetry_flush", "status": "network_error"},
            )
            return False
        if not response.is_success:
            logger.error(
                "Failed to send %d telemetry events: HTTP %s",
                len(batch),
                response.status_code,
                extra={
                    "event": "telemetry_flush",
                    "status": "rejected",
                    "status_code": response.status_code,
                },
            )
            return False
        logger.info(
            "Sent %d telemetry events",
            len(batch),
            extra={"event": "telemetry_flush", "status": "sent"},
        )
        return True

    async def get_json(
        self, path: str, params: Mapping[str, Any] | None = None
    ) -> Any:
        """Perform an authenticated GET and return the decoded JSON body."""
        try:
            response = await self._client.get(path, params=dict(params or {}))
        except httpx.HTTPError as exc:
            msg = f"Metrics store request to {path} failed: {exc}"
            raise MetricsStoreError(msg) from exc
        if not response.is_success:
            msg = f"Metrics store returned HTTP {response.status_code} for {path}"
            raise MetricsStoreError(msg, status_code=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            msg = f"Metrics store returned invalid JSON for {path}"
            raise MetricsStoreError(msg, status_code=response.status_code) from exc

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()


__all__ = ["EVENTS_BATCH_PATH", "MetricsTransport", "serialize_event"]
