"""Read-only access to the append-only server activity log."""

from __future__ import annotations
from collections.abc import Iterable
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Protocol
import aiosqlite
from mcp_telemetry.errors import ActivityLogError
from mcp_telemetry.trending.models import (
    ActivityAction,
    ActivityAggregate,
    ActivityLogEntry,
    DailyActivity,
    ServerActivityMetrics,
    ServerSource,
)


# ``created_at`` is SQLite time-value text. This package writes UTC ISO-8601
# with microseconds, while rows written with ``CURRENT_TIMESTAMP`` use
# ``YYYY-MM-DD HH:MM:SS``. Queries compare through ``julianday()`` so both
# spellings (and explicit offsets) order chronologically.
ACTIVITY_LOG_SCHEMA = """
CREATE TABLE IF NOT EXISTS mcp_activity (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    source TEXT NOT NULL,
    server_uuid TEXT,
    external_id TEXT,
    action TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_mcp_activity_created_at
    ON mcp_activity (created_at);
CREATE INDEX IF NOT EXISTS idx_mcp_activity_source_created_at
    ON mcp_activity (source, created_at);
CREATE INDEX IF NOT EXISTS idx_mcp_activity_external_id_source
    ON mcp_activity (external_id, source);
"""

_SERVER_KEY_SQL = (
    "CASE WHEN source = 'REGISTRY' AND external_id IS NOT NULL THEN external_id "
    "ELSE COALESCE(server_uuid, external_id) END"
)


def format_timestamp(value: datetime) -> str:
    """Render ``value`` in the storage format used by ``mcp_activity``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def parse_timestamp(value: str) -> datetime:
    """Parse a stored timestamp, assuming UTC when no offset is present."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class ActivityLog(Protocol):
    """Read interface the trending aggregator depends on."""

    async def aggregate(
        self, *, since: datetime, source: ServerSource | None = None
    ) -> list[ActivityAggregate]:  # pragma: no cover - protocol
        """Return per-server counts for rows recorded at or after ``since``."""
        ...

    async def server_activity(
        self, server_id: str, source: ServerSource, *, since: datetime
    ) -> ServerActivityMetrics:  # pragma: no cover - protocol
        """Return the activity summary for a single server."""
        ...


def aggregate_entries(entries: Iterable[ActivityLogEntry]) -> list[ActivityAggregate]:
    """Group entries by ``(server_key, source)`` in first-seen order."""
    groups: dict[tuple[str, ServerSource], ActivityAggregate] = {}
    for entry in entries:
        key = entry.server_key
        if key is None:
            continue
        source = ServerSource(entry.source)
        aggregate = groups.get((key, source))
        if aggregate is None:
            aggregate = groups[(key, source)] = ActivityAggregate(
                server_key=key, source=source
            )
        aggregate.total_count += 1
        if entry.action == ActivityAction.INSTALL.value:
            aggregate.install_count += 1
        elif entry.action == ActivityAction.UNINSTALL.value:
            aggregate.uninstall_count += 1
        elif entry.action == ActivityAction.TOOL_CALL.value:
            aggregate.tool_call_count += 1
        elif entry.action == ActivityAction.RESOURCE_READ.value:
            aggregate.resource_read_count += 1
        elif entry.action == ActivityAction.PROMPT_GET.value:
            aggregate.prompt_get_count += 1
        if (
            aggregate.last_activity_at is None
            or entry.occurred_at > aggregate.last_activity_at
        ):
            aggregate.last_activity_at = entry.occurred_at
    return list(groups.values())


def _matches_server(
    entry: ActivityLogEntry, server_id: str, source: ServerSource
) -> bool:
    if ServerSource(entry.source) is not source:
        return False
    if source is ServerSource.COMMUNITY:
        return entry.server_uuid == server_id
    return entry.external_id == server_id


def _summarize(
    net_installs: int,
    tool_calls: int,
    total: int,
    daily: Iterable[tuple[date | str, int]],
) -> ServerActivityMetrics:
    return ServerActivityMetrics(
        net_install_count=net_installs,
        tool_call_count=tool_calls,
        total_activity_count=total,
        daily_activity=[
            DailyActivity.model_validate({"date": day, "count": count})
            for day, count in daily
        ],
    )


class InMemoryActivityLog:
    """Activity log backed by a fixed snapshot of entries."""

    def __init__(self, entries: Iterable[ActivityLogEntry] = ()) -> None:
        """Capture the snapshot of entries to serve."""
        self._entries: tuple[ActivityLogEntry, ...] = tuple(entries)

    def __len__(self) -> int:
        """Return the number of entries in the snapshot."""
        return len(self._entries)

    async def aggregate(
        self, *, since: datetime, source: ServerSource | None = None
    ) -> list[ActivityAggregate]:
        """Return per-server counts for entries at or after ``since``."""
        selected = (
            entry
            for entry in self._entries
            if entry.occurred_at >= since
            and (source is None or ServerSource(entry.source) is source)
        )
        return aggregate_entries(selected)

    async def server_activity(
        self, server_id: str, source: ServerSource, *, since: datetime
    ) -> ServerActivityMetrics:
        """Return the activity summary for a single server."""
        selected = [
            entry
            for entry in self._entries
            if entry.occurred_at >= since and _matches_server(entry, server_id, source)
        ]
        installs = sum(1 for e in selected if e.action == ActivityAction.INSTALL.value)
        uninstalls = sum(
            1 for e in selected if e.action == ActivityAction.UNINSTALL.value
        )
        tool_calls = sum(
            1 for e in selected if e.action == ActivityAction.TOOL_CALL.value
        )
        per_day: dict[date, int] = {}
        for entry in selected:
            day = entry.occurred_at.astimezone(UTC).date()
            per_day[day] = per_day.get(day, 0) + 1
        return _summarize(
            installs - uninstalls, tool_calls, len(selected), sorted(per_day.items())
        )


class SqliteActivityLog:
    """Activity log stored in the ``mcp_activity`` SQLite table.

    The recorder owns writes; this class only creates the schema and reads.
    """

    def __init__(self, database_path: str | Path) -> None:
        """Initialize the log with the given database path."""
        self._database_path = Path(database_path).expanduser()

    async def ensure_schema(self) -> None:
        """Create the activity table and its indexes if they are missing."""
        self._database_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            async with aiosqlite.connect(self._database_path) as conn:
                await conn.executescript(ACTIVITY_LOG_SCHEMA)
                await conn.commit()
        except aiosqlite.Error as exc:
            msg = f"Failed to initialise activity log at {self._database_path}"
            raise ActivityLogError(msg) from exc

    async def aggregate(
        self, *, since: datetime, source: ServerSource | None = None
    ) -> list[ActivityAggregate]:
        """Return per-server counts computed by a grouped SQL query."""
        query = f"""
            SELECT
                {_SERVER_KEY_SQL} AS server_key,
                source,
                SUM(CASE WHEN action = 'install' THEN 1 ELSE 0 END) AS installs,
                SUM(CASE WHEN action = 'uninstall' THEN 1 ELSE 0 END) AS uninstalls,
                SUM(CASE WHEN action = 'tool_call' THEN 1 ELSE 0 END) AS tool_calls,
                SUM(CASE WHEN action = 'resource_read' THEN 1 ELSE 0 END)
                    AS resource_reads,
                SUM(CASE WHEN action = 'prompt_get' THEN 1 ELSE 0 END)
                    AS prompt_gets,
                COUNT(*) AS total,
                -- a bare column next to MAX() is read from the row holding the max
                MAX(julianday(created_at)) AS last_julian,
                created_at AS last_activity
              FROM mcp_activity
             WHERE julianday(created_at) >= julianday(?)
               AND (server_uuid IS NOT NULL OR external_id IS NOT NULL)
        """  # noqa: S608 - only the constant CASE expression is interpolated
        params: list[object] = [format_timestamp(since)]
        if source is not None:
            query += " AND source = ?"
            params.append(source.value)
        query += f" GROUP BY {_SERVER_KEY_SQL}, source"

        rows = await self._fetchall(query, tuple(params))
        return [
            ActivityAggregate(
                server_key=row["server_key"],
                source=ServerSource(row["source"]),
                install_count=int(row["installs"]),
                uninstall_count=int(row["uninstalls"]),
                tool_call_count=int(row["tool_calls"]),
                resource_read_count=int(row["resource_reads"]),
                prompt_get_count=int(row["prompt_gets"]),
                total_count=int(row["total"]),
                last_activity_at=parse_timestamp(row["last_activity"]),
            )
            for row in rows
        ]

    async def server_activity(
        self, server_id: str, source: ServerSource, *, since: datetime
    ) -> ServerActivityMetrics:
        """Return totals and a per-day breakdown for one server."""
        column = "server_uuid" if source is ServerSource.COMMUNITY else "external_id"
        where = (
            f"{column} = ? AND source = ? "
            "AND julianday(created_at) >= julianday(?)"
        )
        params = (server_id, source.value, format_timestamp(since))

        totals = await self._fetchall(
            f"""
            SELECT
                SUM(CASE WHEN action = 'install' THEN 1 ELSE 0 END)
                  - SUM(CASE WHEN action = 'uninstall' THEN 1 ELSE 0 END)
                    AS net_installs,
                SUM(CASE WHEN action = 'tool_call' THEN 1 ELSE 0 END) AS tool_calls,
                COUNT(*) AS total
              FROM mcp_activity
             WHERE {where}
            """,  # noqa: S608 - column name comes from a fixed pair
            params,
        )
        daily = await self._fetchall(
            f"""
            SELECT date(created_at) AS day, COUNT(*) AS count
              FROM mcp_activity
             WHERE {where}
             GROUP BY day
             ORDER BY day
            """,  # noqa: S608 - column name comes from a fixed pair
            params,
        )
        row = totals[0] if totals else None
        return _summarize(
            int(row["net_installs"] or 0) if row else 0,
            int(row["tool_calls"] or 0) if row else 0,
            int(row["total"] or 0) if row else 0,
            ((item["day"], int(item["count"])) for item in daily),
        )

    async def _fetchall(
        self, query: str, params: tuple[object, ...]
    ) -> list[aiosqlite.Row]:
        try:
            async with aiosqlite.connect(self._database_path) as conn:
                conn.row_factory = aiosqlite.Row
                cursor = await conn.execute(query, params)
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            msg = f"Activity log query failed: {exc}"
            raise ActivityLogError(msg) from exc
        return list(rows)


__all__ = [
    "ACTIVITY_LOG_SCHEMA",
    "ActivityLog",
    "InMemoryActivityLog",
    "SqliteActivityLog",
    "aggregate_entries",
    "format_timestamp",
    "parse_timestamp",
]
