"""Tests for the swap-on-drain event buffer."""

from mcp_telemetry.buffer import EventBuffer
from mcp_telemetry.events import ClaimEvent


def _event(index: int) -> ClaimEvent:
    return ClaimEvent(server_id=f"srv-{index}", user_id="u-1")


def test_append_reports_new_length() -> None:
    buffer = EventBuffer()

    assert not buffer
    assert buffer.append(_event(1)) == 1
    assert buffer.append(_event(2)) == 2
    assert len(buffer) == 2
    assert buffer


def test_drain_returns_events_in_order_and_resets() -> None:
    buffer = EventBuffer()
    events = [_event(index) for index in range(3)]
    for event in events:
        buffer.append(event)

    batch = buffer.drain()

    assert batch == tuple(events)
    assert len(buffer) == 0
    assert buffer.drain() == ()


def test_appends_after_drain_do_not_touch_drained_batch() -> None:
    buffer = EventBuffer()
    buffer.append(_event(1))
    batch = buffer.drain()

    buffer.append(_event(2))

    assert len(batch) == 1
    assert len(buffer) == 1
