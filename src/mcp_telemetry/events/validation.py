"""Validation of candidate events before they enter the buffer."""

from __future__ import annotations
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from pydantic import ValidationError
from mcp_telemetry.events.models import EVENT_ADAPTER, BaseEvent, Event, EventKind


@dataclass(frozen=True, slots=True)
class EventRejection:
    """Outcome returned instead of an event when a candidate is malformed."""

    reason: str
    errors: tuple[str, ...] = ()

    def __str__(self) -> str:
        """Return the reason followed by individual field errors."""
        if not self.errors:
            return self.reason
        return f"{self.reason}: {'; '.join(self.errors)}"


def apply_default_timestamp(event: Event, now: datetime) -> Event:
    """Return ``event`` with ``timestamp`` set to ``now`` when it is missing."""
    if event.timestamp is not None:
        return event
    return event.model_copy(update={"timestamp": now})


def _format_errors(exc: ValidationError) -> tuple[str, ...]:
    formatted = []
    for error in exc.errors(include_url=False):
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        formatted.append(f"{location}: {message}" if location else message)
    return tuple(formatted)


def _rejection_reason(exc: ValidationError, kind: Any) -> str:
    error_types = {error.get("type") for error in exc.errors(include_url=False)}
    if "union_tag_not_found" in error_types:
        return "missing event kind"
    if "union_tag_invalid" in error_types:
        return f"unknown event kind {kind!r}"
    return f"invalid {kind} event"


def accept(
    candidate: Mapping[str, Any] | BaseEvent | Any,
    *,
    now: datetime | None = None,
) -> Event | EventRejection:
    """Validate ``candidate`` and return a timestamped event or a rejection.

    This function never raises: every malformed input is reported through an
    :class:`EventRejection`. The legacy ``type`` key is accepted in place of
    ``kind``. Prebuilt models are validated again from their field values, so
    a bare :class:`BaseEvent` or a model built with ``model_construct`` is held
    to the same rules as a mapping.
    """
    reference = now or datetime.now(tz=UTC)

    if isinstance(candidate, BaseEvent):
        try:
            candidate = candidate.model_dump()
        except (AttributeError, TypeError, ValueError) as exc:
            return EventRejection(reason="invalid event model", errors=(str(exc),))

    if not isinstance(candidate, Mapping):
        return EventRejection(
            reason=f"event must be a mapping, got {type(candidate).__name__}"
        )

    payload = dict(candidate)
    if "kind" not in payload and "type" in payload:
        payload["kind"] = payload.pop("type")
    kind = payload.get("kind")
    if isinstance(kind, EventKind):
        kind = payload["kind"] = kind.value

    try:
        event = EVENT_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        return EventRejection(
            reason=_rejection_reason(exc, kind), errors=_format_errors(exc)
        )
    except (TypeError, ValueError) as exc:
        return EventRejection(reason=f"invalid {kind} event", errors=(str(exc),))
    return apply_default_timestamp(event, reference)


__all__ = ["EventRejection", "accept", "apply_default_timestamp"]
