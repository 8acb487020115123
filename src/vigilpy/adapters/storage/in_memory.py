"""In-memory storage adapters for logs, metrics and alerts."""

import time
from collections.abc import AsyncIterable, Iterable, Mapping

from vigilpy.core.alerts import Alert, AlertStatus
from vigilpy.core.models import LogEntry, LogFilters, Metric
from vigilpy.core.time_range import MINUTE, TimeRange

_LIVE_STATUSES = (AlertStatus.ACTIVE, AlertStatus.TRIGGERED)


def select_logs(
    entries: Iterable[LogEntry], time_range: TimeRange, filters: LogFilters | None
) -> list[LogEntry]:
    """Entries inside ``time_range`` that pass ``filters``, ascending."""
    selected = [
        e
        for e in entries
        if time_range.contains(e.timestamp) and (filters is None or filters.matches(e))
    ]
    return sorted(selected, key=lambda e: e.timestamp)


def metric_matches(metric: Metric, filters: Mapping[str, str] | None) -> bool:
    """``name`` and ``source`` keys match those fields; others match dimensions."""
    if not filters:
        return True
    rest = dict(filters)
    if "name" in rest and rest.pop("name") != metric.name:
        return False
    if "source" in rest and rest.pop("source") != metric.source:
        return False
    return metric.dimensions.matches(rest)


class InMemoryLogStore:
    """In-memory implementation of LogStorePort.

    Stores log entries in a list. Suitable for testing and
    low-volume applications where persistence is not required.
    """

    def __init__(self, entries: Iterable[LogEntry] = ()) -> None:
        self._entries: list[LogEntry] = list(entries)

    async def write(self, entry: LogEntry) -> None:
        self._entries.append(entry)

    async def query(
        self, time_range: TimeRange, filters: LogFilters | None = None
    ) -> AsyncIterable[LogEntry]:
        for entry in select_logs(self._entries, time_range, filters):
            yield entry

    async def count(self) -> int:
        return len(self._entries)

    async def clear(self) -> None:
        self._entries.clear()


class InMemoryMetricStore:
    """In-memory implementation of MetricStorePort."""

    def __init__(self) -> None:
        self._metrics: list[Metric] = []

    async def save(self, metric: Metric) -> None:
        self._metrics.append(metric)

    async def find_recent_metrics(
        self, name: str, minutes: float, now: float | None = None
    ) -> list[Metric]:
        end = time.time() if now is None else now
        window = TimeRange.create(end - minutes * MINUTE, end)
        found = [m for m in self._metrics if m.name == name and window.contains(m.at)]
        return sorted(found, key=lambda m: m.at, reverse=True)

    async def find_by_query(
        self, time_range: TimeRange, filters: dict[str, str] | None = None
    ) -> list[Metric]:
        found = [
            m
            for m in self._metrics
            if time_range.contains(m.at) and metric_matches(m, filters)
        ]
        return sorted(found, key=lambda m: m.at)

    async def count(self) -> int:
        return len(self._metrics)


class InMemoryAlertRepository:
    """In-memory implementation of AlertRepositoryPort.

    Holds the alert objects themselves, so callers share state with the
    repository the way a unit of work would.
    """

    def __init__(self) -> None:
        self._alerts: dict[str, Alert] = {}

    async def save(self, alert: Alert) -> None:
        self._alerts[alert.alert_id] = alert

    async def get(self, alert_id: str) -> Alert | None:
        return self._alerts.get(alert_id)

    async def find_by_metric_name(self, metric_name: str) -> list[Alert]:
        return [a for a in self._alerts.values() if a.metric_name == metric_name]

    async def find_active(self) -> list[Alert]:
        return [a for a in self._alerts.values() if a.status in _LIVE_STATUSES]

    async def find_by_status(self, status: AlertStatus) -> list[Alert]:
        return [a for a in self._alerts.values() if a.status is status]

    async def count(self) -> int:
        return len(self._alerts)

    async def count_by_status(self, status: AlertStatus) -> int:
        return len(await self.find_by_status(status))

    async def delete(self, alert_id: str) -> bool:
        return self._alerts.pop(alert_id, None) is not None
