"""SQLite metric store."""

import json
import time
from typing import Any

from vigilpy.adapters.storage.in_memory import metric_matches
from vigilpy.adapters.storage.sqlite_base import SQLiteStoreBase, loads_object
from vigilpy.core.dimensions import Dimension, DimensionSet
from vigilpy.core.models import Metric, MetricCategory, MetricType, MetricValue
from vigilpy.core.time_range import MINUTE, TimeRange

_METRICS_SCHEMA = """
CREATE TABLE IF NOT EXISTS metrics (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    metric_id TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    timestamp REAL NOT NULL,
    value REAL NOT NULL,
    type TEXT NOT NULL,
    unit TEXT NOT NULL,
    precision INTEGER NOT NULL DEFAULT 0,
    source TEXT NOT NULL,
    category TEXT NOT NULL,
    dimensions TEXT NOT NULL DEFAULT '{}',
    tags TEXT NOT NULL DEFAULT '[]'
);
CREATE INDEX IF NOT EXISTS idx_metrics_name_timestamp ON metrics(name, timestamp);
CREATE INDEX IF NOT EXISTS idx_metrics_timestamp ON metrics(timestamp);
"""

_INSERT_METRIC = """
INSERT OR REPLACE INTO metrics (
    metric_id, name, timestamp, value, type, unit, precision,
    source, category, dimensions, tags
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

_COLUMNS = """
SELECT metric_id, name, timestamp, value, type, unit, precision,
       source, category, dimensions, tags
FROM metrics
"""

_SELECT_RECENT = (
    _COLUMNS
    + "WHERE name = ? AND timestamp >= ? AND timestamp <= ? ORDER BY timestamp DESC, id DESC"
)

_SELECT_RANGE = (
    _COLUMNS + "WHERE timestamp >= ? AND timestamp <= ? ORDER BY timestamp ASC, id ASC"
)

_COUNT_METRICS = "SELECT COUNT(*) FROM metrics"


def _row_to_metric(row: Any) -> Metric:
    dimensions = DimensionSet(
        Dimension.of(kind, value) for kind, value in loads_object(row[9]).items()
    )
    return Metric(
        name=row[1],
        value=MetricValue(
            value=row[3],
            type=MetricType(row[4]),
            unit=row[5],
            precision=row[6],
            timestamp=row[2],
        ),
        source=row[7],
        category=MetricCategory(row[8]),
        dimensions=dimensions,
        tags=tuple(json.loads(row[10])),
        timestamp=row[2],
        metric_id=row[0],
    )


class SQLiteMetricStore(SQLiteStoreBase):
    """SQLite implementation of MetricStorePort.

    Dimension filters are applied after decoding; ``name`` and time bounds
    are pushed down to SQL.
    """

    _schema = _METRICS_SCHEMA

    async def save(self, metric: Metric) -> None:
        value = metric.value
        async with self.connection() as db:
            await db.execute(
                _INSERT_METRIC,
                (
                    metric.metric_id,
                    metric.name,
                    metric.at,
                    value.value,
                    str(value.type),
                    value.unit,
                    value.precision,
                    metric.source,
                    str(metric.category),
                    json.dumps(metric.dimensions.to_filters()),
                    json.dumps(list(metric.tags)),
                ),
            )
            await db.commit()

    async def _select(self, query: str, params: tuple[Any, ...]) -> list[Metric]:
        async with self.connection() as db:
            async with db.execute(query, params) as cursor:
                return [_row_to_metric(row) async for row in cursor]

    async def find_recent_metrics(
        self, name: str, minutes: float, now: float | None = None
    ) -> list[Metric]:
        end = time.time() if now is None else now
        return await self._select(_SELECT_RECENT, (name, end - minutes * MINUTE, end))

    async def find_by_query(
        self, time_range: TimeRange, filters: dict[str, str] | None = None
    ) -> list[Metric]:
        found = await self._select(_SELECT_RANGE, (time_range.start, time_range.end))
        return [m for m in found if metric_matches(m, filters)]

    async def count(self) -> int:
        return await self._fetch_count(_COUNT_METRICS)
