"""Alert orchestration: evaluation, lifecycle commands and event dispatch."""

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass

from vigilpy.core.alerts import Alert, AlertConfiguration, AlertStatus, Clock
from vigilpy.core.dimensions import DimensionSet
from vigilpy.core.errors import AlertNotFoundError
from vigilpy.core.models import MetricValue
from vigilpy.core.ports import AlertRepositoryPort, EventPublisherPort, MetricStorePort
from vigilpy.core.thresholds import Threshold
from vigilpy.services.dispatch import publish_pending

logger = logging.getLogger(__name__)

# Recent-sample window used by evaluate_all_active_alerts.
RECENT_METRIC_MINUTES = 5


@dataclass(frozen=True)
class AlertsSummary:
    total: int
    active: int
    triggered: int
    resolved: int
    suppressed: int
    disabled: int


class AlertService:
    """Runs alerts against incoming measurements and publishes their events.

    Each alert is saved before its events are published, so a publish
    failure never undoes a state transition; unpublished events stay on the
    alert for a later drain. Work on a single alert is serialized with a
    per-id lock.

    Args:
        repository: Alert repository.
        metric_store: Source of recent samples for periodic evaluation.
        publisher: Destination for AlertTriggered/AlertResolved events.
        clock: Clock handed to alerts created through this service.
    """

    def __init__(
        self,
        repository: AlertRepositoryPort,
        metric_store: MetricStorePort,
        publisher: EventPublisherPort,
        clock: Clock | None = None,
    ) -> None:
        self._repository = repository
        self._metrics = metric_store
        self._publisher = publisher
        self._clock = clock
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def create_alert(
        self,
        name: str,
        metric_name: str,
        threshold: Threshold,
        configuration: AlertConfiguration | None = None,
        dimensions: DimensionSet | None = None,
        description: str | None = None,
    ) -> Alert:
        alert = Alert(
            name=name,
            metric_name=metric_name,
            threshold=threshold,
            configuration=configuration or AlertConfiguration(),
            dimensions=dimensions or DimensionSet(),
            description=description,
            clock=self._clock,
        )
        await self._repository.save(alert)
        logger.info("Created alert %s (%s on %s)", alert.alert_id, name, metric_name)
        return alert

    async def _commit(self, alert: Alert) -> None:
        await self._repository.save(alert)
        await publish_pending(alert, self._publisher)

    async def _evaluate(self, alert: Alert, value: MetricValue) -> bool:
        async with self._locks[alert.alert_id]:
            before = alert.status
            fired = alert.evaluate(value)
            if fired or alert.uncommitted_events():
                if alert.status is not before:
                    logger.info(
                        "Alert %s moved from %s to %s", alert.alert_id, before, alert.status
                    )
                await self._commit(alert)
            return fired

    async def evaluate_metric(self, metric_name: str, value: MetricValue) -> list[Alert]:
        """Evaluate every alert watching ``metric_name``.

        Returns:
            The alerts that fired on this value.
        """
        fired = []
        for alert in await self._repository.find_by_metric_name(metric_name):
            if await self._evaluate(alert, value):
                fired.append(alert)
        return fired

    async def evaluate_all_active_alerts(self) -> list[Alert]:
        """Evaluate each live alert against its newest recent sample.

        Alerts with no sample in the last few minutes are skipped.
        """
        fired = []
        for alert in await self._repository.find_active():
            recent = await self._metrics.find_recent_metrics(
                alert.metric_name, RECENT_METRIC_MINUTES, now=self._now()
            )
            if not recent:
                continue
            if await self._evaluate(alert, recent[0].value):
                fired.append(alert)
        return fired

    async def resolve_stale_alerts(self) -> list[Alert]:
        """Resolve triggered alerts past their ``auto_resolve_after_minutes``."""
        resolved = []
        for alert in await self._repository.find_by_status(AlertStatus.TRIGGERED):
            async with self._locks[alert.alert_id]:
                if alert.resolve_if_stale():
                    logger.info("Alert %s auto-resolved after timeout", alert.alert_id)
                    await self._commit(alert)
                    resolved.append(alert)
        return resolved

    async def _require(self, alert_id: str) -> Alert:
        alert = await self._repository.get(alert_id)
        if alert is None:
            raise AlertNotFoundError(alert_id)
        return alert

    async def resolve_alert(self, alert_id: str, auto_resolved: bool = False) -> Alert:
        alert = await self._require(alert_id)
        async with self._locks[alert_id]:
            alert.resolve(auto_resolved)
            await self._commit(alert)
        return alert

    async def suppress_alert(self, alert_id: str) -> Alert:
        alert = await self._require(alert_id)
        async with self._locks[alert_id]:
            alert.suppress()
            await self._repository.save(alert)
        logger.info("Alert %s suppressed", alert_id)
        return alert

    async def enable_alert(self, alert_id: str) -> Alert:
        alert = await self._require(alert_id)
        async with self._locks[alert_id]:
            alert.enable()
            await self._repository.save(alert)
        return alert

    async def disable_alert(self, alert_id: str) -> Alert:
        alert = await self._require(alert_id)
        async with self._locks[alert_id]:
            alert.disable()
            await self._repository.save(alert)
        logger.info("Alert %s disabled", alert_id)
        return alert

    async def alerts_by_status(self, status: AlertStatus) -> list[Alert]:
        return await self._repository.find_by_status(status)

    async def active_alerts(self) -> list[Alert]:
        return await self._repository.find_active()

    async def alerts_summary(self) -> AlertsSummary:
        total, *by_status = await asyncio.gather(
            self._repository.count(),
            *(self._repository.count_by_status(s) for s in AlertStatus),
        )
        counts = dict(zip(AlertStatus, by_status))
        return AlertsSummary(
            total=total,
            active=counts[AlertStatus.ACTIVE],
            triggered=counts[AlertStatus.TRIGGERED],
            resolved=counts[AlertStatus.RESOLVED],
            suppressed=counts[AlertStatus.SUPPRESSED],
            disabled=counts[AlertStatus.DISABLED],
        )

    async def create_system_health_alerts(self) -> list[Alert]:
        """Register the stock CPU, workflow failure and API latency alerts."""
        alerts = [
            Alert.high_cpu_usage(85, clock=self._clock),
            Alert.workflow_failure_rate(10, clock=self._clock),
            Alert.api_response_time(3000, clock=self._clock),
        ]
        for alert in alerts:
            await self._repository.save(alert)
        return alerts

    def _now(self) -> float | None:
        return self._clock() if self._clock is not None else None
