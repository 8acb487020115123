"""Tests for MetricCollectionService."""

import pytest

from vigilpy.adapters.publishing import InMemoryEventPublisher
from vigilpy.adapters.storage import InMemoryAlertRepository, InMemoryMetricStore
from vigilpy.core.dimensions import DimensionSet, DimensionType
from vigilpy.core.models import Metric, MetricCategory, MetricType, MetricValue
from vigilpy.core.time_range import TimeRange
from vigilpy.services.alerting import AlertService
from vigilpy.services.collection import MetricCollectionService

pytestmark = [pytest.mark.services, pytest.mark.tier(1)]


@pytest.fixture
def metric_store() -> InMemoryMetricStore:
    return InMemoryMetricStore()


@pytest.fixture
def collector(metric_store, clock) -> MetricCollectionService:
    return MetricCollectionService(metric_store, clock=clock)


async def stored(store: InMemoryMetricStore, at: float, filters=None) -> list[Metric]:
    return await store.find_by_query(TimeRange.create(at - 60, at + 60), filters)


class TestRecordMetric:
    async def test_saves_a_single_metric(self, collector, metric_store, clock) -> None:
        metric = await collector.record_metric(
            "queue_depth",
            MetricValue.gauge(12, timestamp=clock.now),
            category=MetricCategory.PERFORMANCE,
            source="worker",
            tags=["queue"],
        )

        assert await stored(metric_store, clock.now) == [metric]
        assert metric.source == "worker"
        assert metric.tags == ("queue",)
        assert metric.dimensions == DimensionSet()

    async def test_record_batch_keeps_order(self, collector, metric_store) -> None:
        metrics = [
            Metric("a", MetricValue.counter(1, timestamp=10.0)),
            Metric("b", MetricValue.counter(2, timestamp=10.0)),
        ]

        saved = await collector.record_batch(metrics)

        assert saved == metrics
        assert await metric_store.count() == 2


class TestRecordSystemMetrics:
    async def test_records_every_supplied_reading(self, collector, metric_store, clock) -> None:
        metrics = await collector.record_system_metrics(
            "orders-db",
            cpu_usage=91.5,
            memory_usage=40,
            disk_usage=70,
            network_in=2048,
            network_out=512,
        )

        assert [m.name for m in metrics] == [
            "cpu_usage",
            "memory_usage",
            "disk_usage",
            "network_in",
            "network_out",
        ]
        assert {m.source for m in metrics} == {"system-monitor"}
        assert {m.category for m in metrics} == {MetricCategory.SYSTEM}
        assert {m.at for m in metrics} == {clock.now}
        assert all(m.dimensions.get(DimensionType.SOURCE).value == "orders-db" for m in metrics)
        assert metrics[0].value.type is MetricType.PERCENTAGE
        assert metrics[3].value.display_value == "2.0KB"
        assert metrics[3].tags == ("system", "network", "inbound")
        assert await metric_store.count() == 5

    async def test_omitted_readings_are_skipped(self, collector, metric_store) -> None:
        metrics = await collector.record_system_metrics("api", cpu_usage=12)

        assert [m.name for m in metrics] == ["cpu_usage"]
        assert metrics[0].tags == ("system", "cpu")
        assert await metric_store.count() == 1

    async def test_recorded_cpu_feeds_alert_evaluation(self, collector, metric_store, clock) -> None:
        publisher = InMemoryEventPublisher()
        alerts = AlertService(InMemoryAlertRepository(), metric_store, publisher, clock=clock)
        await alerts.create_system_health_alerts()

        await collector.record_system_metrics("api", cpu_usage=95)
        fired = await alerts.evaluate_all_active_alerts()

        assert [a.name for a in fired] == ["High CPU Usage"]
        assert len(publisher.events) == 1


class TestRecordWorkflowMetrics:
    async def test_successful_run(self, collector, metric_store, clock) -> None:
        metrics = await collector.record_workflow_metrics(
            "wf-1", "u1", succeeded=True, execution_time_ms=1500, actions_executed=3
        )

        assert [m.name for m in metrics] == [
            "workflow_executions",
            "workflow_execution_time",
            "workflow_actions_executed",
        ]
        assert metrics[0].tags == ("workflow", "execution", "success")
        assert metrics[0].dimensions.to_filters() == {
            "workflow": "wf-1",
            "user": "u1",
            "status": "success",
        }
        assert metrics[1].value.display_value == "1.5s"
        filtered = await stored(metric_store, clock.now, {"workflow": "wf-1"})
        assert len(filtered) == 3

    async def test_failed_run_counts_an_error(self, collector) -> None:
        metrics = await collector.record_workflow_metrics("wf-1", "u1", succeeded=False)

        assert [m.name for m in metrics] == ["workflow_executions", "workflow_errors"]
        assert metrics[1].category is MetricCategory.ERROR
        assert metrics[1].dimensions.get(DimensionType.STATUS).value == "error"


class TestRecordApiMetrics:
    async def test_successful_request(self, collector) -> None:
        metrics = await collector.record_api_metrics("/orders", "GET", 200, 120, user_id="u1")

        assert [m.name for m in metrics] == ["api_requests", "api_response_time"]
        assert metrics[0].tags == ("api", "request", "get")
        assert metrics[0].dimensions.to_filters() == {
            "source": "/orders",
            "category": "GET",
            "status": "200",
            "user": "u1",
        }

    async def test_server_error_counts_an_error(self, collector) -> None:
        metrics = await collector.record_api_metrics("/orders", "POST", 503, 4000)

        [error] = [m for m in metrics if m.name == "api_errors"]
        assert error.tags == ("api", "error", "status-5xx")
        assert DimensionType.USER not in error.dimensions


class TestRecordUserMetrics:
    async def test_user_action(self, collector) -> None:
        metric = await collector.record_user_metrics("u1", "checkout")

        assert metric.name == "user_actions"
        assert metric.source == "user-service"
        assert metric.category is MetricCategory.USAGE
        assert metric.tags == ("user", "action", "checkout")
        assert metric.dimensions.to_filters() == {
            "user": "u1",
            "source": "web",
            "category": "checkout",
        }
