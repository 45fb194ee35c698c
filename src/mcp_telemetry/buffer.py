"""In-process buffer of validated events awaiting transmission."""

from __future__ import annotations
from mcp_telemetry.events import Event


class EventBuffer:
    """Append-only list of events that is swapped out wholesale on drain.

    Not thread-safe; the owning service runs on a single event loop.
    """

    def __init__(self) -> None:
        """Initialise an empty buffer."""
        self._events: list[Event] = []

    def append(self, event: Event) -> int:
        """Add an event and return the new buffer length."""
        self._events.append(event)
        return len(self._events)

    def drain(self) -> tuple[Event, ...]:
        """Return every buffered event and reset the buffer to empty."""
        batch, self._events = self._events, []
        return tuple(batch)

    def __len__(self) -> int:
        """Return the number of buffered events."""
        return len(self._events)

    def __bool__(self) -> bool:
        """Return whether any event is buffered."""
        return bool(self._events)


__all__ = ["EventBuffer"]
