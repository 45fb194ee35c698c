"""Tests for buffered telemetry ingestion and flushing."""

from __future__ import annotations
import asyncio
import json
import logging
import httpx
import pytest
import respx
from dynaconf import Dynaconf
from mcp_telemetry.events import BaseEvent, EventRejection
from mcp_telemetry.service import TelemetryService
from mcp_telemetry.transport import MetricsTransport
from tests._telemetry_test_helpers import RecordingTransport, install_payload


@pytest.mark.asyncio
async def test_size_trigger_flushes_before_track_returns(
    transport: RecordingTransport,
) -> None:
    """Reaching the batch size drains the buffer synchronously."""
    service = TelemetryService(transport, batch_size=50, flush_interval=60)

    for index in range(49):
        service.track(install_payload(f"srv-{index}"))
    assert service.pending == 49
    assert service.flush_scheduled

    service.track(install_payload("srv-49"))

    assert service.pending == 0
    assert service.in_flight == 1
    assert not service.flush_scheduled

    await service.force_flush()
    assert len(transport.batches) == 1
    assert len(transport.batches[0]) == 50
    assert service.stats.sent == 50
    assert service.in_flight == 0


@pytest.mark.asyncio
async def test_idle_timer_flushes_partial_batch(
    transport: RecordingTransport,
) -> None:
    """A partial batch is sent once the flush interval elapses."""
    service = TelemetryService(transport, batch_size=50, flush_interval=0.05)

    service.track(install_payload("srv-1"))
    service.track(install_payload("srv-2"))
    assert service.flush_scheduled

    await asyncio.sleep(0.2)

    assert service.pending == 0
    assert not service.flush_scheduled
    assert [event.server_id for event in transport.sent_events] == [
        "srv-1",
        "srv-2",
    ]


@pytest.mark.asyncio
async def test_timer_is_rearmed_for_next_cycle(
    transport: RecordingTransport,
) -> None:
    service = TelemetryService(transport, batch_size=50, flush_interval=0.05)

    service.track(install_payload("srv-1"))
    await asyncio.sleep(0.2)
    service.track(install_payload("srv-2"))
    assert service.flush_scheduled
    await asyncio.sleep(0.2)

    assert len(transport.batches) == 2
    assert service.stats.flushes == 2


@pytest.mark.asyncio
async def test_force_flush_on_empty_buffer_is_noop(
    transport: RecordingTransport,
) -> None:
    service = TelemetryService(transport)

    await service.force_flush()

    assert transport.batches == []
    assert service.stats.flushes == 0


@pytest.mark.asyncio
async def test_failed_batch_is_dropped_not_requeued(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """A failed send discards its batch and later events still flow."""
    transport = RecordingTransport(result=False)
    service = TelemetryService(transport, batch_size=50, flush_interval=60)

    service.track(install_payload("srv-1"))
    service.track(install_payload("srv-2"))
    with caplog.at_level(logging.WARNING, logger="mcp_telemetry.service"):
        await service.force_flush()

    assert service.pending == 0
    assert service.stats.dropped == 2
    assert "Dropped 2 telemetry events" in caplog.text

    transport.result = True
    result = service.track(install_payload("srv-3"))
    assert not isinstance(result, EventRejection)
    await service.force_flush()

    assert [event.server_id for event in transport.batches[-1]] == ["srv-3"]
    assert service.stats.sent == 1


@pytest.mark.asyncio
async def test_transport_exception_is_contained() -> None:
    """Unexpected transport errors never escape to the caller."""
    transport = RecordingTransport(result=RuntimeError("boom"))
    service = TelemetryService(transport, batch_size=1, flush_interval=60)

    service.track(install_payload("srv-1"))
    await service.force_flush()

    assert service.stats.dropped == 1
    assert service.pending == 0


@pytest.mark.asyncio
async def test_track_does_not_wait_for_slow_transport() -> None:
    transport = RecordingTransport(delay=0.1)
    service = TelemetryService(transport, batch_size=2, flush_interval=60)

    service.track(install_payload("srv-1"))
    service.track(install_payload("srv-2"))
    service.track(install_payload("srv-3"))

    assert service.in_flight == 1
    assert service.pending == 1
    assert transport.batches == []

    await service.force_flush()
    assert len(transport.sent_events) == 3


@pytest.mark.asyncio
async def test_rejected_event_leaves_buffer_unchanged(
    transport: RecordingTransport,
) -> None:
    service = TelemetryService(transport, flush_interval=60)
    service.track(install_payload("srv-1"))

    result = service.track({"kind": "teleport", "server_id": "srv-1"})

    assert isinstance(result, EventRejection)
    assert service.pending == 1
    assert service.stats.rejected == 1
    assert service.stats.accepted == 1
    await service.force_flush()


@pytest.mark.asyncio
async def test_event_without_kind_is_rejected_before_buffering(
    transport: RecordingTransport,
) -> None:
    service = TelemetryService(transport, flush_interval=60)

    result = service.track(BaseEvent(server_id="srv-1"))

    assert isinstance(result, EventRejection)
    assert service.pending == 0
    assert service.stats.rejected == 1
    await service.force_flush()
    assert transport.batches == []


@pytest.mark.asyncio
async def test_unencodable_metadata_does_not_sink_the_batch() -> None:
    """One bad event is rejected on track; its neighbours are still delivered."""
    transport = MetricsTransport(
        "https://metrics.test", username="svc", password="secret"
    )
    service = TelemetryService(transport, batch_size=50, flush_interval=60)

    for server_id in ("srv-1", "srv-2", "srv-3"):
        service.track(install_payload(server_id))
    bad = service.track(install_payload("srv-4", metadata={"obj": object()}))

    with respx.mock(assert_all_called=True) as router:
        route = router.post("https://metrics.test/api/events/batch").mock(
            return_value=httpx.Response(200, json={"ok": True})
        )
        await service.force_flush()
        body = json.loads(route.calls.last.request.content)

    assert isinstance(bad, EventRejection)
    assert [item["server_id"] for item in body["events"]] == [
        "srv-1",
        "srv-2",
        "srv-3",
    ]
    assert service.stats.accepted == 3
    assert service.stats.rejected == 1
    assert service.stats.sent == 3
    assert service.stats.dropped == 0
    await transport.aclose()


@pytest.mark.asyncio
async def test_disabled_service_validates_without_buffering(
    transport: RecordingTransport,
) -> None:
    service = TelemetryService(transport, enabled=False, flush_interval=0.01)

    accepted = service.track(install_payload("srv-1"))
    rejected = service.track({"kind": "rating", "server_id": "srv-1"})

    assert not isinstance(accepted, EventRejection)
    assert isinstance(rejected, EventRejection)
    assert service.pending == 0
    assert not service.flush_scheduled
    await service.force_flush()
    assert transport.batches == []


@pytest.mark.asyncio
async def test_shutdown_flushes_and_closes_transport(
    transport: RecordingTransport,
) -> None:
    service = TelemetryService(transport, flush_interval=60)
    service.track(install_payload("srv-1"))

    await service.shutdown()

    assert len(transport.sent_events) == 1
    assert transport.closed
    assert not service.flush_scheduled


def test_events_wait_in_buffer_without_running_loop(
    transport: RecordingTransport,
) -> None:
    """Outside an event loop nothing is scheduled; force_flush delivers."""
    service = TelemetryService(transport, batch_size=2, flush_interval=0.01)

    service.track(install_payload("srv-1"))
    service.track(install_payload("srv-2"))

    assert service.pending == 2
    assert not service.flush_scheduled

    asyncio.run(service.force_flush())
    assert len(transport.sent_events) == 2


@pytest.mark.parametrize(
    ("batch_size", "flush_interval"),
    [(0, 1.0), (10, 0)],
)
def test_constructor_rejects_non_positive_limits(
    transport: RecordingTransport, batch_size: int, flush_interval: float
) -> None:
    with pytest.raises(ValueError):
        TelemetryService(
            transport, batch_size=batch_size, flush_interval=flush_interval
        )


@pytest.mark.asyncio
async def test_from_settings_uses_configured_limits(
    transport: RecordingTransport,
) -> None:
    settings = Dynaconf(settings_files=[], load_dotenv=False, environments=False)
    settings.set("BATCH_SIZE", 7)
    settings.set("FLUSH_INTERVAL_SECONDS", 1.5)
    settings.set("ENABLED", True)

    service = TelemetryService.from_settings(settings, transport=transport)

    assert service.enabled is True
    for index in range(7):
        service.track(install_payload(f"srv-{index}"))
    assert service.pending == 0
    await service.force_flush()
    assert len(transport.batches) == 1
