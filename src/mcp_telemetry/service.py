"""Non-blocking telemetry ingestion with size and idle-time flushing."""

from __future__ import annotations
import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Protocol
from mcp_telemetry.buffer import EventBuffer
from mcp_telemetry.events import BaseEvent, Event, EventRejection, accept
from mcp_telemetry.transport import MetricsTransport


logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50
DEFAULT_FLUSH_INTERVAL_SECONDS = 5.0


class BatchSender(Protocol):
    """Transport contract used by the service to ship batches."""

    async def send(self, batch: Sequence[Event]) -> bool:  # pragma: no cover
        """Send the batch and report success."""
        ...

    async def aclose(self) -> None:  # pragma: no cover
        """Release transport resources."""
        ...


@dataclass(slots=True)
class TelemetryStats:
    """Running counters describing what the service did with its input."""

    accepted: int = 0
    rejected: int = 0
    sent: int = 0
    dropped: int = 0
    flushes: int = 0


class TelemetryService:
    """Validate events, buffer them and forward them in batches.

    ``track`` is synchronous and never raises. A flush happens as soon as the
    buffer reaches ``batch_size`` or ``flush_interval`` seconds after the first
    event of a cycle, whichever comes first. Batches whose send fails are
    dropped rather than requeued so memory stays bounded during an outage.
    """

    def __init__(
        self,
        transport: BatchSender,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        flush_interval: float = DEFAULT_FLUSH_INTERVAL_SECONDS,
        enabled: bool = True,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Create a service bound to ``transport``."""
        if batch_size <= 0:
            msg = "batch_size must be greater than zero."
            raise ValueError(msg)
        if flush_interval <= 0:
            msg = "flush_interval must be greater than zero."
            raise ValueError(msg)
        self._transport = transport
        self._batch_size = batch_size
        self._flush_interval = flush_interval
        self._enabled = enabled
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._buffer = EventBuffer()
        self._timer: asyncio.TimerHandle | None = None
        self._in_flight: set[asyncio.Task[bool]] = set()
        self.stats = TelemetryStats()

    @classmethod
    def from_settings(
        cls, settings: Any, *, transport: BatchSender | None = None
    ) -> TelemetryService:
        """Build a service (and its transport) from normalized settings."""
        return cls(
            transport or MetricsTransport.from_settings(settings),
            batch_size=settings.batch_size,
            flush_interval=settings.flush_interval_seconds,
            enabled=settings.enabled,
        )

    @property
    def enabled(self) -> bool:
        """Return whether accepted events are buffered for delivery."""
        return self._enabled

    @property
    def pending(self) -> int:
        """Return the number of buffered events not yet handed to a send."""
        return len(self._buffer)

    @property
    def in_flight(self) -> int:
        """Return the number of sends still running."""
        return len(self._in_flight)

    @property
    def flush_scheduled(self) -> bool:
        """Return whether the idle-time flush timer is armed."""
        return self._timer is not None

    def track(
        self, candidate: Mapping[str, Any] | BaseEvent
    ) -> Event | EventRejection:
        """Validate ``candidate`` and enqueue it, flushing when due."""
        result = accept(candidate, now=self._clock())
        if isinstance(result, EventRejection):
            self.stats.rejected += 1
            logger.warning(
                "Rejected telemetry event: %s",
                result,
                extra={"event": "telemetry_track", "status": "rejected"},
            )
            return result

        self.stats.accepted += 1
        if not self._enabled:
            logger.debug("Telemetry disabled; discarding %s event", result.kind)
            return result

        size = self._buffer.append(result)
        if size >= self._batch_size:
            self._flush()
        else:
            self._arm_timer()
        return result

    async def force_flush(self) -> None:
        """Send everything buffered and wait for all running sends to finish."""
        self._cancel_timer()
        batch = self._buffer.drain()
        if batch:
            self.stats.flushes += 1
            await self._send(batch)
        if self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    async def shutdown(self) -> None:
        """Flush pending events and close the transport."""
        await self.force_flush()
        await self._transport.aclose()

    def _arm_timer(self) -> None:
        if self._timer is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Without a loop, events wait for a size trigger or force_flush.
            return
        self._timer = loop.call_later(self._flush_interval, self._on_timer)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        self._flush()

    def _flush(self) -> asyncio.Task[bool] | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return None
        self._cancel_timer()
        batch = self._buffer.drain()
        if not batch:
            return None
        self.stats.flushes += 1
        task = loop.create_task(self._send(batch))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def _send(self, batch: tuple[Event, ...]) -> bool:
        try:
            delivered = await self._transport.send(batch)
        except Exception:
            logger.exception("Telemetry transport raised while sending a batch")
            delivered = False
        if delivered:
            self.stats.sent += len(batch)
        else:
            self.stats.dropped += len(batch)
            logger.warning(
                "Dropped %d telemetry events after a failed send",
                len(batch),
                extra={"event": "telemetry_flush", "status": "dropped"},
            )
        return delivered


__all__ = ["BatchSender", "TelemetryService", "TelemetryStats"]
