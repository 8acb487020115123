"""Tests for the alerting and health application services."""

import asyncio

import pytest

from vigilpy.adapters.publishing import InMemoryEventPublisher
from vigilpy.adapters.storage import InMemoryAlertRepository, InMemoryMetricStore
from vigilpy.core.alerts import AlertConfiguration, AlertStatus
from vigilpy.core.errors import AlertNotFoundError
from vigilpy.core.events import AlertResolved, AlertTriggered, CriticalAlert, HealthChanged
from vigilpy.core.health import HealthStatus, SystemHealth, SystemMetrics
from vigilpy.core.models import Metric, MetricValue
from vigilpy.core.thresholds import Threshold
from vigilpy.services.alerting import AlertService
from vigilpy.services.health import HealthMonitor

pytestmark = [pytest.mark.services, pytest.mark.tier(1)]


class FailingPublisher:
    """Raises until ``healthy`` is set."""

    def __init__(self) -> None:
        self.healthy = False
        self.events: list = []

    async def publish(self, event) -> None:
        if not self.healthy:
            raise ConnectionError("bus down")
        self.events.append(event)


@pytest.fixture
def repository() -> InMemoryAlertRepository:
    return InMemoryAlertRepository()


@pytest.fixture
def metric_store() -> InMemoryMetricStore:
    return InMemoryMetricStore()


@pytest.fixture
def publisher() -> InMemoryEventPublisher:
    return InMemoryEventPublisher()


@pytest.fixture
def service(repository, metric_store, publisher, clock) -> AlertService:
    return AlertService(repository, metric_store, publisher, clock=clock)


class TestAlertServiceEvaluation:
    """Evaluating alerts through the service."""

    async def test_evaluate_metric_fires_and_publishes(self, service, publisher) -> None:
        alert = await service.create_alert("High CPU", "cpu_usage", Threshold.greater_than(80))

        fired = await service.evaluate_metric("cpu_usage", MetricValue.percentage(91))

        assert fired == [alert]
        assert [type(e) for e in publisher.events] == [AlertTriggered]
        assert alert.uncommitted_events() == []

    async def test_evaluate_metric_ignores_other_metrics(self, service, publisher) -> None:
        await service.create_alert("High CPU", "cpu_usage", Threshold.greater_than(80))

        assert await service.evaluate_metric("memory_usage", MetricValue.percentage(99)) == []
        assert publisher.events == []

    async def test_auto_resolve_is_published(self, service, publisher) -> None:
        await service.create_alert(
            "High CPU",
            "cpu_usage",
            Threshold.greater_than(80),
            AlertConfiguration(auto_resolve=True),
        )
        await service.evaluate_metric("cpu_usage", MetricValue.percentage(91))

        fired = await service.evaluate_metric("cpu_usage", MetricValue.percentage(10))

        assert fired == []
        assert [type(e) for e in publisher.events] == [AlertTriggered, AlertResolved]

    async def test_publish_failure_keeps_transition_and_pending_event(
        self, repository, metric_store
    ) -> None:
        publisher = FailingPublisher()
        service = AlertService(repository, metric_store, publisher)
        alert = await service.create_alert("High CPU", "cpu_usage", Threshold.greater_than(80))

        with pytest.raises(ConnectionError):
            await service.evaluate_metric("cpu_usage", MetricValue.percentage(91))

        stored = await repository.get(alert.alert_id)
        assert stored.status is AlertStatus.TRIGGERED
        assert len(stored.uncommitted_events()) == 1

        publisher.healthy = True
        await service.resolve_alert(alert.alert_id)
        assert [type(e) for e in publisher.events] == [AlertTriggered, AlertResolved]
        assert stored.uncommitted_events() == []

    async def test_concurrent_evaluations_respect_cooldown(self, service) -> None:
        alert = await service.create_alert(
            "High CPU",
            "cpu_usage",
            Threshold.greater_than(80),
            AlertConfiguration(cooldown_minutes=5, max_triggers_per_hour=10),
        )

        results = await asyncio.gather(
            *(service.evaluate_metric("cpu_usage", MetricValue.percentage(95)) for _ in range(5))
        )

        assert sum(len(r) for r in results) == 1
        assert alert.trigger_count == 1

    async def test_evaluate_all_active_alerts_uses_newest_recent_sample(
        self, service, metric_store, clock
    ) -> None:
        alert = await service.create_alert("High CPU", "cpu_usage", Threshold.greater_than(80))
        await service.create_alert("Slow API", "api_response_time", Threshold.greater_than(2000))
        now = clock.now
        await metric_store.save(Metric("cpu_usage", MetricValue.percentage(50, timestamp=now - 240)))
        await metric_store.save(Metric("cpu_usage", MetricValue.percentage(95, timestamp=now - 30)))
        await metric_store.save(Metric("api_response_time", MetricValue.timer(9000, timestamp=now - 600)))

        fired = await service.evaluate_all_active_alerts()

        assert fired == [alert]

    async def test_resolve_stale_alerts(self, service, publisher, clock) -> None:
        alert = await service.create_alert(
            "High CPU",
            "cpu_usage",
            Threshold.greater_than(80),
            AlertConfiguration(auto_resolve=True, auto_resolve_after_minutes=30),
        )
        await service.evaluate_metric("cpu_usage", MetricValue.percentage(91))

        clock.advance(minutes=31)
        resolved = await service.resolve_stale_alerts()

        assert resolved == [alert]
        assert publisher.of_type(AlertResolved)[0].auto_resolved is True


class TestAlertServiceCommands:
    """Lifecycle commands and queries."""

    @pytest.mark.parametrize(
        "command", ["resolve_alert", "suppress_alert", "enable_alert", "disable_alert"]
    )
    async def test_unknown_id_raises(self, service, command: str) -> None:
        with pytest.raises(AlertNotFoundError) as excinfo:
            await getattr(service, command)("alert-missing")
        assert excinfo.value.alert_id == "alert-missing"

    async def test_suppressed_alert_does_not_fire(self, service) -> None:
        alert = await service.create_alert("High CPU", "cpu_usage", Threshold.greater_than(80))
        await service.suppress_alert(alert.alert_id)

        assert await service.evaluate_metric("cpu_usage", MetricValue.percentage(99)) == []
        assert alert.trigger_count == 0

    async def test_disable_then_enable(self, service) -> None:
        alert = await service.create_alert("High CPU", "cpu_usage", Threshold.greater_than(80))
        await service.disable_alert(alert.alert_id)
        assert await service.alerts_by_status(AlertStatus.DISABLED) == [alert]
        await service.enable_alert(alert.alert_id)
        assert await service.active_alerts() == [alert]

    async def test_alerts_summary(self, service) -> None:
        cpu = await service.create_alert("High CPU", "cpu_usage", Threshold.greater_than(80))
        await service.create_alert("Idle", "throughput", Threshold.less_than(1))
        disabled = await service.create_alert("Disk", "disk_usage", Threshold.greater_than(90))
        await service.evaluate_metric("cpu_usage", MetricValue.percentage(85))
        await service.disable_alert(disabled.alert_id)

        summary = await service.alerts_summary()

        assert cpu.status is AlertStatus.TRIGGERED
        assert (summary.total, summary.active, summary.triggered, summary.disabled) == (3, 1, 1, 1)
        assert summary.resolved == summary.suppressed == 0

    async def test_create_system_health_alerts(self, service, repository) -> None:
        alerts = await service.create_system_health_alerts()

        assert [a.metric_name for a in alerts] == [
            "cpu_usage",
            "workflow_failure_rate",
            "api_response_time",
        ]
        assert [a.threshold.value for a in alerts] == [85, 10, 3000]
        assert await repository.count() == 3


class TestHealthMonitor:
    """Tracking and publishing component health."""

    @staticmethod
    def metrics(**overrides: float) -> SystemMetrics:
        values = {"cpu": 20, "memory": 30, "disk": 40, "error_rate": 0,
                  "response_time": 120, "throughput": 50}
        return SystemMetrics.from_values(**{**values, **overrides})

    async def test_register_publishes_initial_classification(self, publisher, clock) -> None:
        monitor = HealthMonitor(publisher)
        component = SystemHealth.database("Orders", self.metrics(), clock=clock)

        await monitor.register(component)

        [event] = publisher.events
        assert isinstance(event, HealthChanged)
        assert monitor.get("db-orders") is component
        assert len(monitor) == 1

    async def test_update_publishes_changes_only(self, publisher, clock) -> None:
        monitor = HealthMonitor(publisher)
        await monitor.register(SystemHealth.database("Orders", self.metrics(), clock=clock))
        publisher.clear()

        await monitor.update("db-orders", self.metrics(cpu=96))
        await monitor.update("db-orders", self.metrics(cpu=97))

        assert [type(e) for e in publisher.events] == [HealthChanged, CriticalAlert]
        assert monitor.get("db-orders").status is HealthStatus.CRITICAL

    async def test_update_unknown_component_raises(self, publisher) -> None:
        with pytest.raises(KeyError):
            await HealthMonitor(publisher).update("nope", self.metrics())

    async def test_summaries(self, publisher, clock) -> None:
        monitor = HealthMonitor(publisher)
        await monitor.register(SystemHealth.database("Orders", self.metrics(cpu=80), clock=clock))
        assert monitor.summaries()["db-orders"].score == 80
