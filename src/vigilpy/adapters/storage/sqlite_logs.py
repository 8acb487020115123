"""SQLite log store."""

import json
from collections.abc import AsyncIterable
from typing import Any

from vigilpy.adapters.storage.sqlite_base import SQLiteStoreBase, loads_object
from vigilpy.core.models import LogContext, LogEntry, LogFilters
from vigilpy.core.time_range import TimeRange

_LOGS_SCHEMA = """
CREATE TABLE IF NOT EXISTS logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp REAL NOT NULL,
    level TEXT NOT NULL,
    message TEXT NOT NULL,
    category TEXT NOT NULL,
    source TEXT NOT NULL,
    user_id TEXT,
    workflow_id TEXT,
    request_id TEXT,
    session_id TEXT,
    correlation_id TEXT,
    attributes TEXT NOT NULL DEFAULT '{}'
);
CREATE INDEX IF NOT EXISTS idx_logs_timestamp ON logs(timestamp);
CREATE INDEX IF NOT EXISTS idx_logs_user_timestamp ON logs(user_id, timestamp);
"""

_INSERT_LOG = """
INSERT INTO logs (
    timestamp, level, message, category, source,
    user_id, workflow_id, request_id, session_id, correlation_id, attributes
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

_SELECT_LOGS = """
SELECT timestamp, level, message, category, source,
       user_id, workflow_id, request_id, session_id, correlation_id, attributes
FROM logs
WHERE timestamp >= ? AND timestamp <= ?
"""

# LogFilters field -> column
_FILTER_COLUMNS = {
    "user_id": "user_id",
    "workflow_id": "workflow_id",
    "request_id": "request_id",
    "component": "source",
    "level": "level",
}

_COUNT_LOGS = "SELECT COUNT(*) FROM logs"

_DELETE_LOGS_BEFORE = "DELETE FROM logs WHERE timestamp < ?"


def _row_to_entry(row: Any) -> LogEntry:
    return LogEntry(
        timestamp=row[0],
        level=row[1],
        message=row[2],
        category=row[3],
        source=row[4],
        context=LogContext(
            user_id=row[5],
            workflow_id=row[6],
            request_id=row[7],
            session_id=row[8],
            correlation_id=row[9],
        ),
        attributes=loads_object(row[10]),
    )


class SQLiteLogStore(SQLiteStoreBase):
    """SQLite implementation of LogStorePort.

    Uses aiosqlite for non-blocking access and WAL mode for file databases.
    For ``:memory:`` databases a persistent connection is kept until
    ``close``.
    """

    _schema = _LOGS_SCHEMA

    async def write(self, entry: LogEntry) -> None:
        ctx = entry.context
        async with self.connection() as db:
            await db.execute(
                _INSERT_LOG,
                (
                    entry.timestamp,
                    str(entry.level),
                    entry.message,
                    str(entry.category),
                    entry.source,
                    ctx.user_id,
                    ctx.workflow_id,
                    ctx.request_id,
                    ctx.session_id,
                    ctx.correlation_id,
                    json.dumps(entry.attributes),
                ),
            )
            await db.commit()

    async def query(
        self, time_range: TimeRange, filters: LogFilters | None = None
    ) -> AsyncIterable[LogEntry]:
        sql = _SELECT_LOGS
        params: list[Any] = [time_range.start, time_range.end]
        if filters is not None:
            for field_name, column in _FILTER_COLUMNS.items():
                value = getattr(filters, field_name)
                if value is not None:
                    sql += f" AND {column} = ?"
                    params.append(str(value))
        sql += " ORDER BY timestamp ASC, id ASC"
        async with self.connection() as db:
            async with db.execute(sql, params) as cursor:
                async for row in cursor:
                    yield _row_to_entry(row)

    async def count(self) -> int:
        return await self._fetch_count(_COUNT_LOGS)

    async def delete_before(self, timestamp: float) -> int:
        """Delete entries older than ``timestamp``; return how many went."""
        async with self.connection() as db:
            cursor = await db.execute(_DELETE_LOGS_BEFORE, (timestamp,))
            deleted = cursor.rowcount
            await db.commit()
            return deleted
