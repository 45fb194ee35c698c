"""Shorthand helpers used by product call sites to emit telemetry."""

from __future__ import annotations
from collections.abc import Mapping
from typing import Any, Protocol
from mcp_telemetry.events.models import Event, ShareVisibility, ViewSource
from mcp_telemetry.events.validation import EventRejection


class EventSink(Protocol):
    """Anything that can accept a candidate event without raising."""

    def track(
        self, candidate: Mapping[str, Any]
    ) -> Event | EventRejection:  # pragma: no cover - protocol
        """Validate and enqueue a candidate event."""
        ...


def _payload(kind: str, server_id: str, **fields: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {"kind": kind, "server_id": server_id}
    payload.update({key: value for key, value in fields.items() if value is not None})
    return payload


def track_install(
    sink: EventSink, server_id: str, user_id: str, source: str
) -> Event | EventRejection:
    """Record that ``user_id`` installed ``server_id``."""
    return sink.track(
        _payload("install", server_id, user_id=user_id, source=source)
    )


def track_uninstall(
    sink: EventSink, server_id: str, user_id: str, reason: str | None = None
) -> Event | EventRejection:
    """Record that ``user_id`` removed ``server_id``."""
    return sink.track(
        _payload("uninstall", server_id, user_id=user_id, reason=reason)
    )


def track_usage(
    sink: EventSink,
    server_id: str,
    user_id: str,
    tool_name: str,
    duration_ms: float,
    success: bool | None = None,
) -> Event | EventRejection:
    """Record a tool invocation and how long it took."""
    return sink.track(
        _payload(
            "usage",
            server_id,
            user_id=user_id,
            tool_name=tool_name,
            duration_ms=duration_ms,
            success=success,
        )
    )


def track_view(
    sink: EventSink,
    server_id: str,
    source: ViewSource,
    user_id: str | None = None,
) -> Event | EventRejection:
    """Record that a server was displayed from ``source``."""
    return sink.track(_payload("view", server_id, source=source, user_id=user_id))


def track_error(
    sink: EventSink,
    server_id: str,
    error: str,
    context: str,
    user_id: str | None = None,
) -> Event | EventRejection:
    """Record a server failure observed by the dashboard."""
    return sink.track(
        _payload("error", server_id, error=error, context=context, user_id=user_id)
    )


def track_rating(
    sink: EventSink, server_id: str, user_id: str, rating: float
) -> Event | EventRejection:
    """Record a 1-5 rating."""
    return sink.track(_payload("rating", server_id, user_id=user_id, rating=rating))


def track_claim(
    sink: EventSink, server_id: str, user_id: str
) -> Event | EventRejection:
    """Record that a community server was claimed."""
    return sink.track(_payload("claim", server_id, user_id=user_id))


def track_share(
    sink: EventSink, server_id: str, user_id: str, visibility: ShareVisibility
) -> Event | EventRejection:
    """Record that a server configuration was shared."""
    return sink.track(
        _payload("share", server_id, user_id=user_id, visibility=visibility)
    )


def track_comment(
    sink: EventSink,
    server_id: str,
    user_id: str,
    comment: str,
    parent_id: str | None = None,
) -> Event | EventRejection:
    """Record a comment, optionally as a reply to ``parent_id``."""
    return sink.track(
        _payload(
            "comment", server_id, user_id=user_id, comment=comment, parent_id=parent_id
        )
    )


__all__ = [
    "EventSink",
    "track_claim",
    "track_comment",
    "track_error",
    "track_install",
    "track_rating",
    "track_share",
    "track_uninstall",
    "track_usage",
    "track_view",
]
