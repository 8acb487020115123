"""BDD step definitions for alerting and component health features."""

import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest
from pytest_bdd import given, parsers, then, when

from vigilpy.adapters.publishing import InMemoryEventPublisher
from vigilpy.core.alerts import Alert, AlertConfiguration
from vigilpy.core.events import CriticalAlert, HealthChanged
from vigilpy.core.health import SystemHealth, SystemMetrics
from vigilpy.core.models import MetricValue
from vigilpy.core.thresholds import Threshold
from vigilpy.services.dispatch import publish_pending

NOMINAL = {
    "cpu": 20,
    "memory": 30,
    "disk": 40,
    "error_rate": 0,
    "response_time": 120,
    "throughput": 50,
}


def run_async(coro: Any) -> Any:
    """Run a coroutine in a new event loop (for sync step definitions)."""
    return asyncio.run(coro)


@dataclass
class AlertingScenarioContext:
    """Mutable state shared between the steps of one scenario."""

    publisher: InMemoryEventPublisher = field(default_factory=InMemoryEventPublisher)
    alert: Alert | None = None
    component: SystemHealth | None = None


@pytest.fixture
def ctx() -> AlertingScenarioContext:
    """Fresh scenario context for each test."""
    return AlertingScenarioContext()


def _publish(ctx: AlertingScenarioContext, aggregate: Any) -> None:
    run_async(publish_pending(aggregate, ctx.publisher))


# === Alert steps ===
def _create_alert(
    ctx: AlertingScenarioContext,
    clock,
    metric: str,
    threshold: int,
    cooldown: int,
    cap: int,
    auto_resolve: bool,
) -> None:
    ctx.alert = Alert(
        name=f"{metric} above {threshold}",
        metric_name=metric,
        threshold=Threshold.greater_than(threshold),
        configuration=AlertConfiguration(
            cooldown_minutes=cooldown,
            max_triggers_per_hour=cap,
            auto_resolve=auto_resolve,
        ),
        clock=clock,
    )


@given(
    parsers.parse(
        'an alert on "{metric}" greater than {threshold:d} with cooldown {cooldown:d} '
        "minutes and at most {cap:d} triggers per hour"
    )
)
def given_alert(ctx, clock, metric: str, threshold: int, cooldown: int, cap: int) -> None:
    _create_alert(ctx, clock, metric, threshold, cooldown, cap, auto_resolve=False)


@given(
    parsers.parse(
        'an auto-resolving alert on "{metric}" greater than {threshold:d} with cooldown '
        "{cooldown:d} minutes and at most {cap:d} triggers per hour"
    )
)
def given_auto_resolving_alert(
    ctx, clock, metric: str, threshold: int, cooldown: int, cap: int
) -> None:
    _create_alert(ctx, clock, metric, threshold, cooldown, cap, auto_resolve=True)


@given("the alert is suppressed")
def given_suppressed(ctx: AlertingScenarioContext) -> None:
    ctx.alert.suppress()


@when(parsers.parse("the value {value:g} arrives"))
def when_value_arrives(ctx: AlertingScenarioContext, value: float) -> None:
    ctx.alert.evaluate(MetricValue.percentage(value))
    _publish(ctx, ctx.alert)


@when(parsers.parse("the values {values} arrive {gap:d} minutes apart"))
def when_values_arrive(ctx: AlertingScenarioContext, clock, values: str, gap: int) -> None:
    for raw in values.split(","):
        ctx.alert.evaluate(MetricValue.percentage(float(raw)))
        _publish(ctx, ctx.alert)
        clock.advance(minutes=gap)


@when(parsers.parse("the clock advances {minutes:d} minutes"))
def when_clock_advances(clock, minutes: int) -> None:
    clock.advance(minutes=minutes)


@then(parsers.parse("the alert has triggered {count:d} times"))
def then_trigger_count(ctx: AlertingScenarioContext, count: int) -> None:
    assert ctx.alert.trigger_count == count


@then(parsers.parse('the alert status is "{status}"'))
def then_alert_status(ctx: AlertingScenarioContext, status: str) -> None:
    assert ctx.alert.status == status


@then(parsers.parse("{count:d} events were published"))
def then_event_count(ctx: AlertingScenarioContext, count: int) -> None:
    assert len(ctx.publisher.events) == count


@then("no events were published")
def then_no_events(ctx: AlertingScenarioContext) -> None:
    assert ctx.publisher.events == []


@then(parsers.parse('the published events are "{names}"'))
def then_event_names(ctx: AlertingScenarioContext, names: str) -> None:
    expected = [name.strip() for name in names.split(",")]
    assert [e.event_type for e in ctx.publisher.events] == expected


# === Health steps ===
def _metrics(**overrides: float) -> SystemMetrics:
    return SystemMetrics.from_values(**{**NOMINAL, **overrides})


@given(parsers.parse('a database component "{name}" with nominal metrics'))
def given_component(ctx: AlertingScenarioContext, clock, name: str) -> None:
    ctx.component = SystemHealth.database(name, _metrics(), clock=clock)
    _publish(ctx, ctx.component)
    ctx.publisher.clear()


@when(parsers.parse("its CPU rises to {cpu:d} percent"))
def when_cpu_rises(ctx: AlertingScenarioContext, cpu: int) -> None:
    ctx.component.update_health(_metrics(cpu=cpu))
    _publish(ctx, ctx.component)


@when("it stops responding")
def when_stops_responding(ctx: AlertingScenarioContext) -> None:
    ctx.component.update_health(_metrics(response_time=0, throughput=0))
    _publish(ctx, ctx.component)


@then(parsers.parse('its status is "{status}"'))
def then_component_status(ctx: AlertingScenarioContext, status: str) -> None:
    assert ctx.component.status == status


@then(parsers.parse('a "{alert_type}" alert with severity "{severity}" was published'))
def then_critical_alert(ctx: AlertingScenarioContext, alert_type: str, severity: str) -> None:
    [alert] = ctx.publisher.of_type(CriticalAlert)
    assert alert.alert_type == alert_type
    assert alert.severity == severity


@then(parsers.parse("{count:d} status change was published"))
def then_status_changes(ctx: AlertingScenarioContext, count: int) -> None:
    assert len(ctx.publisher.of_type(HealthChanged)) == count
