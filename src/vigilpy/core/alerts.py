"""Alert aggregate: threshold evaluation with cooldown and hourly rate limiting.

An ``Alert`` is a single-writer aggregate. ``evaluate`` performs
check-then-mutate on its counters and must not be called concurrently on
the same instance; callers serialize per alert id.
"""

import time
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from vigilpy.core.dimensions import DimensionSet
from vigilpy.core.errors import ValidationError
from vigilpy.core.events import AlertResolved, AlertTriggered, DomainEvent, EventOutbox
from vigilpy.core.models import MetricValue
from vigilpy.core.thresholds import Threshold, ThresholdSeverity, threshold_from_dict

Clock = Callable[[], float]

_MINUTE = 60.0
_HOUR = 60 * _MINUTE


class AlertStatus(StrEnum):
    ACTIVE = "active"
    TRIGGERED = "triggered"
    RESOLVED = "resolved"
    SUPPRESSED = "suppressed"
    DISABLED = "disabled"


class AlertChannel(StrEnum):
    EMAIL = "email"
    SLACK = "slack"
    WEBHOOK = "webhook"
    IN_APP = "in_app"
    SMS = "sms"


@dataclass(frozen=True)
class AlertConfiguration:
    """Delivery and rate-limiting settings for an alert.

    Attributes:
        channels: Channels notified when the alert fires.
        cooldown_minutes: Minimum minutes between two triggers.
        max_triggers_per_hour: Trigger cap within one hourly window.
        auto_resolve: Resolve automatically once the condition clears.
        auto_resolve_after_minutes: Resolve a still-triggered alert after
            this many minutes (see ``Alert.resolve_if_stale``).
    """

    channels: tuple[AlertChannel, ...] = ()
    cooldown_minutes: float = 0
    max_triggers_per_hour: int = 1
    auto_resolve: bool = False
    auto_resolve_after_minutes: float | None = None

    def __post_init__(self) -> None:
        if self.cooldown_minutes < 0:
            raise ValidationError("Cooldown minutes cannot be negative")
        if self.max_triggers_per_hour < 1:
            raise ValidationError("Max triggers per hour must be at least 1")
        if self.auto_resolve_after_minutes is not None and self.auto_resolve_after_minutes < 0:
            raise ValidationError("Auto-resolve minutes cannot be negative")
        object.__setattr__(
            self, "channels", tuple(AlertChannel(c) for c in self.channels)
        )


@dataclass
class HourlyTriggerWindow:
    """Truncating one-hour trigger counter.

    The count resets to zero only when more than an hour has passed since
    the last reset, so a burst straddling a reset can exceed the cap within
    any sliding 60-minute span.
    """

    window_start: float
    count: int = 0

    def roll(self, now: float) -> None:
        if now - self.window_start > _HOUR:
            self.count = 0
            self.window_start = now

    def is_exhausted(self, now: float, limit: int) -> bool:
        self.roll(now)
        return self.count >= limit

    def record(self, now: float) -> None:
        self.roll(now)
        self.count += 1


@dataclass
class Alert:
    """Per-alert lifecycle.

    Created Active. A crossing value outside cooldown and under the hourly
    cap moves it to Triggered; a clearing value on a Triggered alert with
    ``auto_resolve`` moves it to Resolved. ``suppress`` and ``disable`` work
    from any state; ``enable`` only from Disabled.
    """

    name: str
    metric_name: str
    threshold: Threshold
    configuration: AlertConfiguration = field(default_factory=AlertConfiguration)
    dimensions: DimensionSet = field(default_factory=DimensionSet)
    description: str | None = None
    alert_id: str = field(default_factory=lambda: f"alert-{uuid.uuid4().hex[:12]}")
    clock: Clock | None = field(default=None, repr=False, compare=False)

    status: AlertStatus = field(default=AlertStatus.ACTIVE, init=False)
    last_triggered: float | None = field(default=None, init=False)
    trigger_count: int = field(default=0, init=False)
    created_at: float = field(init=False)
    updated_at: float = field(init=False)
    _hourly: HourlyTriggerWindow = field(init=False, repr=False, compare=False)
    _outbox: EventOutbox = field(
        default_factory=EventOutbox, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if not self.alert_id or not self.alert_id.strip():
            raise ValidationError("Alert id cannot be empty")
        if not self.name or not self.name.strip():
            raise ValidationError("Alert name cannot be empty")
        if not self.metric_name or not self.metric_name.strip():
            raise ValidationError("Metric name cannot be empty")
        now = self._now()
        self.created_at = now
        self.updated_at = now
        self._hourly = HourlyTriggerWindow(window_start=now)

    # --- factories -------------------------------------------------------

    @classmethod
    def high_cpu_usage(cls, threshold: float = 80, clock: Clock | None = None) -> "Alert":
        return cls(
            name="High CPU Usage",
            metric_name="cpu_usage",
            threshold=Threshold.greater_than(threshold, ThresholdSeverity.CRITICAL),
            configuration=AlertConfiguration(
                channels=(AlertChannel.EMAIL, AlertChannel.SLACK),
                cooldown_minutes=15,
                max_triggers_per_hour=4,
                auto_resolve=True,
                auto_resolve_after_minutes=30,
            ),
            description=f"CPU usage exceeds {threshold:g}%",
            clock=clock,
        )

    @classmethod
    def workflow_failure_rate(
        cls, threshold: float = 5, clock: Clock | None = None
    ) -> "Alert":
        return cls(
            name="High Workflow Failure Rate",
            metric_name="workflow_failure_rate",
            threshold=Threshold.greater_than(threshold, ThresholdSeverity.WARNING),
            configuration=AlertConfiguration(
                channels=(AlertChannel.EMAIL, AlertChannel.IN_APP),
                cooldown_minutes=10,
                max_triggers_per_hour=6,
                auto_resolve=False,
            ),
            description=f"Workflow failure rate exceeds {threshold:g}%",
            clock=clock,
        )

    @classmethod
    def api_response_time(
        cls, threshold: float = 2000, clock: Clock | None = None
    ) -> "Alert":
        return cls(
            name="Slow API Response Time",
            metric_name="api_response_time",
            threshold=Threshold.greater_than(threshold, ThresholdSeverity.WARNING),
            configuration=AlertConfiguration(
                channels=(AlertChannel.SLACK, AlertChannel.WEBHOOK),
                cooldown_minutes=5,
                max_triggers_per_hour=12,
                auto_resolve=True,
                auto_resolve_after_minutes=15,
            ),
            description=f"API response time exceeds {threshold:g}ms",
            clock=clock,
        )

    @classmethod
    def from_config(cls, config: Mapping[str, Any], clock: Clock | None = None) -> "Alert":
        """Build an alert from its configuration surface.

        Expected keys: ``name``, ``metric_name``, ``threshold`` (see
        ``threshold_from_dict``), and optionally ``channels``,
        ``cooldown_minutes``, ``max_triggers_per_hour``, ``auto_resolve``,
        ``auto_resolve_after_minutes``, ``description``, ``alert_id``.
        """
        configuration = AlertConfiguration(
            channels=tuple(config.get("channels", ())),
            cooldown_minutes=config.get("cooldown_minutes", 0),
            max_triggers_per_hour=config.get("max_triggers_per_hour", 1),
            auto_resolve=bool(config.get("auto_resolve", False)),
            auto_resolve_after_minutes=config.get("auto_resolve_after_minutes"),
        )
        extra = {"alert_id": config["alert_id"]} if "alert_id" in config else {}
        return cls(
            name=config.get("name", ""),
            metric_name=config.get("metric_name", ""),
            threshold=threshold_from_dict(config["threshold"]),
            configuration=configuration,
            description=config.get("description"),
            clock=clock,
            **extra,
        )

    # --- state machine ---------------------------------------------------

    def _now(self) -> float:
        return self.clock() if self.clock is not None else time.time()

    @property
    def triggers_this_hour(self) -> int:
        return self._hourly.count

    @property
    def last_hour_reset(self) -> float:
        return self._hourly.window_start

    def in_cooldown(self, now: float | None = None) -> bool:
        if self.last_triggered is None:
            return False
        now = self._now() if now is None else now
        return now - self.last_triggered < self.configuration.cooldown_minutes * _MINUTE

    def evaluate(self, metric_value: MetricValue) -> bool:
        """Evaluate a measurement; return True only if the alert fired now.

        Suppressed, Disabled and Resolved alerts return False without
        touching any counter.
        """
        if self.status not in (AlertStatus.ACTIVE, AlertStatus.TRIGGERED):
            return False
        now = self._now()
        self._hourly.roll(now)
        if not self.threshold.evaluate(metric_value.value):
            if self.status is AlertStatus.TRIGGERED and self.configuration.auto_resolve:
                self._resolve(now, auto_resolved=True)
            return False
        if self.in_cooldown(now):
            return False
        if self._hourly.is_exhausted(now, self.configuration.max_triggers_per_hour):
            return False
        self._trigger(metric_value, now)
        return True

    def _trigger(self, metric_value: MetricValue, now: float) -> None:
        self.status = AlertStatus.TRIGGERED
        self.last_triggered = now
        self.trigger_count += 1
        self._hourly.record(now)
        self.updated_at = now
        self._outbox.append(
            AlertTriggered(
                self.alert_id,
                alert_name=self.name,
                metric_name=self.metric_name,
                current_value=metric_value.value,
                threshold_description=self.threshold.describe(),
                severity=str(self.threshold.severity),
                occurred_at=now,
            )
        )

    def _resolve(self, now: float, auto_resolved: bool) -> None:
        self.status = AlertStatus.RESOLVED
        self.updated_at = now
        self._outbox.append(
            AlertResolved(
                self.alert_id,
                alert_name=self.name,
                resolved_at=now,
                auto_resolved=auto_resolved,
                occurred_at=now,
            )
        )

    def resolve(self, auto_resolved: bool = False) -> None:
        """Resolve a Triggered alert. No-op in any other state."""
        if self.status is AlertStatus.TRIGGERED:
            self._resolve(self._now(), auto_resolved)

    def resolve_if_stale(self) -> bool:
        """Auto-resolve once ``auto_resolve_after_minutes`` have passed since the trigger.

        Returns:
            True if the alert was resolved by this call.
        """
        limit = self.configuration.auto_resolve_after_minutes
        if (
            self.status is not AlertStatus.TRIGGERED
            or not self.configuration.auto_resolve
            or limit is None
            or self.last_triggered is None
        ):
            return False
        now = self._now()
        if now - self.last_triggered < limit * _MINUTE:
            return False
        self._resolve(now, auto_resolved=True)
        return True

    def suppress(self) -> None:
        self.status = AlertStatus.SUPPRESSED
        self.updated_at = self._now()

    def enable(self) -> None:
        """Re-activate a Disabled alert. No-op in any other state."""
        if self.status is AlertStatus.DISABLED:
            self.status = AlertStatus.ACTIVE
            self.updated_at = self._now()

    def disable(self) -> None:
        self.status = AlertStatus.DISABLED
        self.updated_at = self._now()

    # --- outbox ----------------------------------------------------------

    def uncommitted_events(self) -> list[DomainEvent]:
        return self._outbox.pending()

    def mark_events_committed(self, events: list[DomainEvent] | None = None) -> None:
        self._outbox.commit(events)

    def __str__(self) -> str:
        return f"{self.name} [{self.status}]: {self.threshold}"
