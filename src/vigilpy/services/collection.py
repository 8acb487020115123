"""Metric ingestion: turning measurements into stored Metrics."""

import logging
import time
from collections.abc import Iterable

from vigilpy.core.alerts import Clock
from vigilpy.core.dimensions import Dimension, DimensionSet, DimensionType
from vigilpy.core.models import Metric, MetricCategory, MetricValue
from vigilpy.core.ports import MetricStorePort

logger = logging.getLogger(__name__)

SYSTEM_MONITOR_SOURCE = "system-monitor"
WORKFLOW_ENGINE_SOURCE = "workflow-engine"
API_GATEWAY_SOURCE = "api-gateway"
USER_SERVICE_SOURCE = "user-service"


class MetricCollectionService:
    """Records application, workflow and system measurements in a metric store.

    The ``record_*_metrics`` helpers build the conventional metric names
    (``cpu_usage``, ``workflow_executions``, ``api_response_time``...) read
    by alerts and the incident engine. Every metric of one call shares a
    single timestamp.

    Args:
        metric_store: Destination for recorded metrics.
        clock: Source of timestamps; defaults to ``time.time``.
    """

    def __init__(self, metric_store: MetricStorePort, clock: Clock | None = None) -> None:
        self._store = metric_store
        self._clock = clock or time.time

    async def record_metric(
        self,
        name: str,
        value: MetricValue,
        category: MetricCategory = MetricCategory.SYSTEM,
        source: str = "system",
        dimensions: DimensionSet | None = None,
        tags: Iterable[str] = (),
    ) -> Metric:
        metric = Metric(
            name,
            value,
            source=source,
            category=category,
            dimensions=dimensions or DimensionSet(),
            tags=tuple(tags),
        )
        await self._store.save(metric)
        logger.debug("Recorded %s=%s from %s", name, value.display_value, source)
        return metric

    async def record_batch(self, metrics: Iterable[Metric]) -> list[Metric]:
        """Save already built metrics in order."""
        saved = []
        for metric in metrics:
            await self._store.save(metric)
            saved.append(metric)
        logger.debug("Recorded batch of %d metrics", len(saved))
        return saved

    async def record_system_metrics(
        self,
        component: str,
        *,
        cpu_usage: float | None = None,
        memory_usage: float | None = None,
        disk_usage: float | None = None,
        network_in: float | None = None,
        network_out: float | None = None,
    ) -> list[Metric]:
        """Record host readings for ``component``; omitted readings are skipped.

        Usages are percentages, network figures are bytes.
        """
        now = self._clock()
        dimensions = DimensionSet([Dimension.of(DimensionType.SOURCE, component)])
        readings = [
            ("cpu_usage", cpu_usage, MetricValue.percentage, ("system", "cpu")),
            ("memory_usage", memory_usage, MetricValue.percentage, ("system", "memory")),
            ("disk_usage", disk_usage, MetricValue.percentage, ("system", "disk")),
            ("network_in", network_in, MetricValue.bytes, ("system", "network", "inbound")),
            ("network_out", network_out, MetricValue.bytes, ("system", "network", "outbound")),
        ]
        return await self.record_batch(
            Metric(
                name,
                factory(reading, timestamp=now),
                source=SYSTEM_MONITOR_SOURCE,
                category=MetricCategory.SYSTEM,
                dimensions=dimensions,
                tags=tags,
            )
            for name, reading, factory, tags in readings
            if reading is not None
        )

    async def record_workflow_metrics(
        self,
        workflow_id: str,
        user_id: str,
        *,
        succeeded: bool,
        execution_time_ms: float | None = None,
        actions_executed: int | None = None,
    ) -> list[Metric]:
        """Record one workflow run; failed runs also count a ``workflow_errors``."""
        now = self._clock()
        status = "success" if succeeded else "error"
        dimensions = DimensionSet(
            [
                Dimension.workflow(workflow_id),
                Dimension.user(user_id),
                Dimension.of(DimensionType.STATUS, status),
            ]
        )

        def workflow_metric(name, value, category, tags) -> Metric:
            return Metric(
                name,
                value,
                source=WORKFLOW_ENGINE_SOURCE,
                category=category,
                dimensions=dimensions,
                tags=tags,
            )

        metrics = [
            workflow_metric(
                "workflow_executions",
                MetricValue.counter(1, timestamp=now),
                MetricCategory.BUSINESS,
                ("workflow", "execution", status),
            )
        ]
        if execution_time_ms is not None:
            metrics.append(
                workflow_metric(
                    "workflow_execution_time",
                    MetricValue.timer(execution_time_ms, timestamp=now),
                    MetricCategory.PERFORMANCE,
                    ("workflow", "performance"),
                )
            )
        if actions_executed is not None:
            metrics.append(
                workflow_metric(
                    "workflow_actions_executed",
                    MetricValue.counter(actions_executed, timestamp=now),
                    MetricCategory.BUSINESS,
                    ("workflow", "actions"),
                )
            )
        if not succeeded:
            metrics.append(
                workflow_metric(
                    "workflow_errors",
                    MetricValue.counter(1, timestamp=now),
                    MetricCategory.ERROR,
                    ("workflow", "error"),
                )
            )
        return await self.record_batch(metrics)

    async def record_api_metrics(
        self,
        endpoint: str,
        method: str,
        status_code: int,
        response_time_ms: float,
        user_id: str | None = None,
    ) -> list[Metric]:
        """Record a request count and response time; 4xx/5xx also count an error."""
        now = self._clock()
        dimensions = DimensionSet(
            [
                Dimension.of(DimensionType.SOURCE, endpoint),
                Dimension.of(DimensionType.CATEGORY, method),
                Dimension.of(DimensionType.STATUS, str(status_code)),
            ]
        )
        if user_id:
            dimensions = dimensions.with_dimension(Dimension.user(user_id))

        metrics = [
            Metric(
                "api_requests",
                MetricValue.counter(1, timestamp=now),
                source=API_GATEWAY_SOURCE,
                category=MetricCategory.USAGE,
                dimensions=dimensions,
                tags=("api", "request", method.lower()),
            ),
            Metric(
                "api_response_time",
                MetricValue.timer(response_time_ms, timestamp=now),
                source=API_GATEWAY_SOURCE,
                category=MetricCategory.PERFORMANCE,
                dimensions=dimensions,
                tags=("api", "performance"),
            ),
        ]
        if status_code >= 400:
            metrics.append(
                Metric(
                    "api_errors",
                    MetricValue.counter(1, timestamp=now),
                    source=API_GATEWAY_SOURCE,
                    category=MetricCategory.ERROR,
                    dimensions=dimensions,
                    tags=("api", "error", f"status-{status_code // 100}xx"),
                )
            )
        return await self.record_batch(metrics)

    async def record_user_metrics(
        self, user_id: str, action: str, source: str = "web"
    ) -> Metric:
        dimensions = DimensionSet(
            [
                Dimension.user(user_id),
                Dimension.of(DimensionType.SOURCE, source),
                Dimension.of(DimensionType.CATEGORY, action),
            ]
        )
        return await self.record_metric(
            "user_actions",
            MetricValue.counter(1, timestamp=self._clock()),
            category=MetricCategory.USAGE,
            source=USER_SERVICE_SOURCE,
            dimensions=dimensions,
            tags=("user", "action", action),
        )
