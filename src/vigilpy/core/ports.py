"""Port interfaces for the collaborators the core depends on.

The alerting, health and incident code only ever talks to these protocols.
Concrete stores and publishers live under ``vigilpy.adapters``.
"""

from collections.abc import AsyncIterable
from typing import Protocol, runtime_checkable

from vigilpy.core.alerts import Alert, AlertStatus
from vigilpy.core.events import DomainEvent
from vigilpy.core.models import LogEntry, LogFilters, Metric
from vigilpy.core.time_range import TimeRange


@runtime_checkable
class LogStorePort(Protocol):
    """Append-only log store with range queries.

    Examples: InMemoryLogStore, RingBufferLogStore, SQLiteLogStore.
    """

    async def write(self, entry: LogEntry) -> None:
        """Append a log entry."""
        ...

    def query(
        self, time_range: TimeRange, filters: LogFilters | None = None
    ) -> AsyncIterable[LogEntry]:
        """Entries whose timestamp lies in ``time_range`` (inclusive).

        Args:
            time_range: Window to scan.
            filters: Optional user/workflow/request/component/level filters.

        Returns:
            Matching entries, ordered by timestamp ascending.
        """
        ...


@runtime_checkable
class MetricStorePort(Protocol):
    """Store of named metric samples.

    Examples: InMemoryMetricStore, SQLiteMetricStore.
    """

    async def save(self, metric: Metric) -> None:
        """Persist a metric sample."""
        ...

    async def find_recent_metrics(
        self, name: str, minutes: float, now: float | None = None
    ) -> list[Metric]:
        """Samples named ``name`` from the last ``minutes``, newest first."""
        ...

    async def find_by_query(
        self, time_range: TimeRange, filters: dict[str, str] | None = None
    ) -> list[Metric]:
        """Samples inside ``time_range``, oldest first.

        Args:
            time_range: Window to scan.
            filters: Optional dimension filters, e.g. ``{"user": "u1"}``;
                the keys ``name`` and ``source`` match those fields.
        """
        ...


@runtime_checkable
class EventPublisherPort(Protocol):
    """Hands domain events to the outside world."""

    async def publish(self, event: DomainEvent) -> None:
        """Publish one event. Failures propagate to the caller."""
        ...


@runtime_checkable
class AlertRepositoryPort(Protocol):
    """Keeps alert aggregates between evaluations."""

    async def save(self, alert: Alert) -> None: ...

    async def get(self, alert_id: str) -> Alert | None: ...

    async def find_by_metric_name(self, metric_name: str) -> list[Alert]: ...

    async def find_active(self) -> list[Alert]:
        """Alerts still being evaluated (Active or Triggered)."""
        ...

    async def find_by_status(self, status: AlertStatus) -> list[Alert]: ...

    async def count(self) -> int: ...

    async def count_by_status(self, status: AlertStatus) -> int: ...
