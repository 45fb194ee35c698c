"""Tests for the SQLite-backed activity log."""

from __future__ import annotations
from datetime import timedelta
from pathlib import Path
import aiosqlite
import pytest
from mcp_telemetry.errors import ActivityLogError
from mcp_telemetry.trending import (
    ActivityLogEntry,
    InMemoryActivityLog,
    ServerSource,
    SqliteActivityLog,
    TrendingAggregator,
)
from mcp_telemetry.trending.activity_log import format_timestamp, parse_timestamp
from tests._telemetry_test_helpers import FIXED_NOW, entries


async def _write(path: Path, log_entries: list[ActivityLogEntry]) -> None:
    async with aiosqlite.connect(path) as conn:
        await conn.executemany(
            """
            INSERT INTO mcp_activity (
                source, server_uuid, external_id, action, created_at
            ) VALUES (?, ?, ?, ?, ?)
            """,
            [
                (
                    entry.source.value,
                    entry.server_uuid,
                    entry.external_id,
                    entry.action,
                    format_timestamp(entry.occurred_at),
                )
                for entry in log_entries
            ],
        )
        await conn.commit()


def _mixed_entries() -> list[ActivityLogEntry]:
    return [
        *entries("install", 5, hours_ago=12, external_id="server-a"),
        *entries("uninstall", 1, hours_ago=12, external_id="server-a"),
        *entries("tool_call", 10, hours_ago=12, external_id="server-a"),
        *entries(
            "resource_read",
            2,
            hours_ago=6,
            server_uuid="uuid-a",
            external_id="server-a",
        ),
        *entries("install", 1, hours_ago=1, external_id="server-b"),
        *entries("uninstall", 1, hours_ago=1, external_id="server-b"),
        *entries(
            "install",
            3,
            hours_ago=30,
            source=ServerSource.COMMUNITY,
            server_uuid="uuid-c",
        ),
        *entries(
            "prompt_get",
            1,
            hours_ago=3,
            source=ServerSource.COMMUNITY,
            server_uuid="uuid-c",
        ),
        *entries("install", 4, hours_ago=400, external_id="server-old"),
        *entries("install", 2, hours_ago=1),
    ]


@pytest.mark.asyncio
async def test_sqlite_and_in_memory_rankings_agree(tmp_path: Path) -> None:
    """Grouping in SQL matches grouping in Python for the same snapshot."""
    log_entries = _mixed_entries()
    sqlite_log = SqliteActivityLog(tmp_path / "activity.sqlite")
    await sqlite_log.ensure_schema()
    await _write(tmp_path / "activity.sqlite", log_entries)

    clock = lambda: FIXED_NOW  # noqa: E731
    from_sql = await TrendingAggregator(sqlite_log, clock=clock).compute_trending()
    in_memory = await TrendingAggregator(
        InMemoryActivityLog(log_entries), clock=clock
    ).compute_trending()

    assert from_sql == in_memory
    assert [result.server_key for result in from_sql] == ["server-a", "uuid-c"]
    assert from_sql[0].total_activity_count == 18


@pytest.mark.asyncio
async def test_sqlite_server_activity_matches_in_memory(tmp_path: Path) -> None:
    log_entries = _mixed_entries()
    sqlite_log = SqliteActivityLog(tmp_path / "activity.sqlite")
    await sqlite_log.ensure_schema()
    await _write(tmp_path / "activity.sqlite", log_entries)
    memory_log = InMemoryActivityLog(log_entries)
    since = FIXED_NOW.replace(day=20, month=5)

    for server_id, source in (
        ("server-a", ServerSource.REGISTRY),
        ("uuid-c", ServerSource.COMMUNITY),
        ("missing", ServerSource.REGISTRY),
    ):
        assert await sqlite_log.server_activity(
            server_id, source, since=since
        ) == await memory_log.server_activity(server_id, source, since=since)


@pytest.mark.asyncio
async def test_window_handles_current_timestamp_rows(tmp_path: Path) -> None:
    """Rows written as ``YYYY-MM-DD HH:MM:SS`` are windowed by time, not text."""
    path = tmp_path / "activity.sqlite"
    log = SqliteActivityLog(path)
    await log.ensure_schema()
    async with aiosqlite.connect(path) as conn:
        await conn.executemany(
            "INSERT INTO mcp_activity (source, external_id, action, created_at) "
            "VALUES ('REGISTRY', ?, 'install', ?)",
            [
                ("ext-1", "2025-05-25 13:00:00"),
                ("ext-1", format_timestamp(FIXED_NOW - timedelta(hours=12))),
                ("ext-1", "2025-06-01 06:00:00"),
                ("ext-old", "2025-05-25 11:00:00"),
            ],
        )
        await conn.commit()
    since = FIXED_NOW - timedelta(days=7)

    aggregates = await log.aggregate(since=since)
    activity = await log.server_activity("ext-1", ServerSource.REGISTRY, since=since)

    assert [item.server_key for item in aggregates] == ["ext-1"]
    assert aggregates[0].install_count == 3
    assert aggregates[0].last_activity_at == FIXED_NOW - timedelta(hours=6)
    assert activity.net_install_count == 3
    assert [(day.date.isoformat(), day.count) for day in activity.daily_activity] == [
        ("2025-05-25", 1),
        ("2025-06-01", 2),
    ]


@pytest.mark.asyncio
async def test_ensure_schema_is_idempotent(tmp_path: Path) -> None:
    log = SqliteActivityLog(tmp_path / "nested" / "activity.sqlite")

    await log.ensure_schema()
    await log.ensure_schema()

    assert await log.aggregate(since=FIXED_NOW) == []


@pytest.mark.asyncio
async def test_query_failure_raises_activity_log_error(tmp_path: Path) -> None:
    """Store errors propagate to the caller as ActivityLogError."""
    log = SqliteActivityLog(tmp_path / "empty.sqlite")
    aggregator = TrendingAggregator(log, clock=lambda: FIXED_NOW)

    with pytest.raises(ActivityLogError):
        await aggregator.compute_trending()


def test_timestamp_format_round_trips_naive_values() -> None:
    naive = FIXED_NOW.replace(tzinfo=None)

    stored = format_timestamp(naive)

    assert stored == "2025-06-01T12:00:00.000000+00:00"
    assert parse_timestamp(stored) == FIXED_NOW
    assert parse_timestamp("2025-06-01T12:00:00") == FIXED_NOW
