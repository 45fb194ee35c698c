"""Event model, validation and call-site helpers."""

from mcp_telemetry.events.models import (
    BaseEvent,
    ClaimEvent,
    CommentEvent,
    ErrorEvent,
    Event,
    EventKind,
    InstallEvent,
    RatingEvent,
    ShareEvent,
    UninstallEvent,
    UsageEvent,
    ViewEvent,
)
from mcp_telemetry.events.validation import (
    EventRejection,
    accept,
    apply_default_timestamp,
)


__all__ = [
    "BaseEvent",
    "ClaimEvent",
    "CommentEvent",
    "ErrorEvent",
    "Event",
    "EventKind",
    "EventRejection",
    "InstallEvent",
    "RatingEvent",
    "ShareEvent",
    "UninstallEvent",
    "UsageEvent",
    "ViewEvent",
    "accept",
    "apply_default_timestamp",
]
