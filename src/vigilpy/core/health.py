"""Component health classification.

``classify_health`` maps a fixed bundle of metrics to a status using
tiered thresholds. ``SystemHealth.health_summary`` is a separate scoring
function whose cut points intentionally differ from the classifier's: the
classifier uses inclusive tiers while the summary penalizes strictly above
the warning tier, so a component at 75% CPU is Warning with a full score.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from vigilpy.core.errors import ValidationError
from vigilpy.core.events import CriticalAlert, DomainEvent, EventOutbox, HealthChanged
from vigilpy.core.models import MetricValue

Clock = Callable[[], float]


class HealthStatus(StrEnum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    DOWN = "down"
    UNKNOWN = "unknown"


class ComponentType(StrEnum):
    DATABASE = "database"
    API_GATEWAY = "api_gateway"
    WORKFLOW_ENGINE = "workflow_engine"
    AUTH_SERVICE = "auth_service"
    NOTIFICATION_SERVICE = "notification_service"
    ANALYTICS_SERVICE = "analytics_service"
    INTEGRATION_SERVICE = "integration_service"
    EXTERNAL_API = "external_api"
    LOAD_BALANCER = "load_balancer"
    CACHE = "cache"


@dataclass(frozen=True)
class SystemMetrics:
    """The eight metrics sampled for every component."""

    cpu: MetricValue
    memory: MetricValue
    disk: MetricValue
    network_in: MetricValue
    network_out: MetricValue
    response_time: MetricValue
    error_rate: MetricValue
    throughput: MetricValue

    @classmethod
    def from_values(
        cls,
        *,
        cpu: float = 0.0,
        memory: float = 0.0,
        disk: float = 0.0,
        network_in: float = 0.0,
        network_out: float = 0.0,
        response_time: float = 0.0,
        error_rate: float = 0.0,
        throughput: float = 0.0,
        timestamp: float | None = None,
    ) -> "SystemMetrics":
        """Build a bundle from raw numbers.

        cpu, memory, disk and error_rate are percentages; response_time is
        in milliseconds; network figures are bytes; throughput is a gauge
        of requests per second.
        """
        return cls(
            cpu=MetricValue.percentage(cpu, timestamp=timestamp),
            memory=MetricValue.percentage(memory, timestamp=timestamp),
            disk=MetricValue.percentage(disk, timestamp=timestamp),
            network_in=MetricValue.bytes(network_in, timestamp=timestamp),
            network_out=MetricValue.bytes(network_out, timestamp=timestamp),
            response_time=MetricValue.timer(response_time, timestamp=timestamp),
            error_rate=MetricValue.percentage(error_rate, timestamp=timestamp),
            throughput=MetricValue.gauge(throughput, "requests/s", timestamp=timestamp),
        )

    def as_dict(self) -> dict[str, float]:
        return {
            "cpu": self.cpu.value,
            "memory": self.memory.value,
            "disk": self.disk.value,
            "network_in": self.network_in.value,
            "network_out": self.network_out.value,
            "response_time": self.response_time.value,
            "error_rate": self.error_rate.value,
            "throughput": self.throughput.value,
        }


@dataclass(frozen=True)
class HealthTier:
    critical: float
    warning: float

    def __post_init__(self) -> None:
        if self.warning > self.critical:
            raise ValidationError("Warning tier cannot exceed critical tier")


@dataclass(frozen=True)
class HealthThresholds:
    """Critical/warning tiers per metric. A value at or above a tier is in it."""

    cpu: HealthTier = HealthTier(critical=90, warning=75)
    memory: HealthTier = HealthTier(critical=90, warning=75)
    disk: HealthTier = HealthTier(critical=95, warning=85)
    error_rate: HealthTier = HealthTier(critical=10, warning=5)
    response_time: HealthTier = HealthTier(critical=5000, warning=2000)

    def tiers(self, metrics: SystemMetrics) -> list[tuple[float, HealthTier]]:
        return [
            (metrics.cpu.value, self.cpu),
            (metrics.memory.value, self.memory),
            (metrics.disk.value, self.disk),
            (metrics.error_rate.value, self.error_rate),
            (metrics.response_time.value, self.response_time),
        ]


DEFAULT_THRESHOLDS = HealthThresholds()


def classify_health(
    metrics: SystemMetrics, thresholds: HealthThresholds = DEFAULT_THRESHOLDS
) -> HealthStatus:
    """Classify a metric bundle.

    Critical if any metric reaches its critical tier, else Warning if any
    reaches its warning tier, else Down when the component neither responds
    nor serves traffic, else Healthy.
    """
    tiers = thresholds.tiers(metrics)
    if any(value >= tier.critical for value, tier in tiers):
        return HealthStatus.CRITICAL
    if any(value >= tier.warning for value, tier in tiers):
        return HealthStatus.WARNING
    if metrics.response_time.value == 0 and metrics.throughput.value == 0:
        return HealthStatus.DOWN
    return HealthStatus.HEALTHY


@dataclass(frozen=True)
class HealthSummary:
    status: HealthStatus
    score: int
    issues: tuple[str, ...]
    recommendations: tuple[str, ...]


@dataclass
class SystemHealth:
    """Health aggregate for one component.

    Construction runs an initial classification from Unknown, so a new
    component always carries one HealthChanged event.
    """

    component_id: str
    name: str
    type: ComponentType
    metrics: SystemMetrics
    version: str | None = None
    description: str | None = None
    thresholds: HealthThresholds = field(default=DEFAULT_THRESHOLDS, repr=False)
    clock: Clock | None = field(default=None, repr=False, compare=False)

    status: HealthStatus = field(default=HealthStatus.UNKNOWN, init=False)
    previous_status: HealthStatus = field(default=HealthStatus.UNKNOWN, init=False)
    last_checked: float = field(init=False)
    _outbox: EventOutbox = field(
        default_factory=EventOutbox, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if not self.component_id or not self.component_id.strip():
            raise ValidationError("Component id cannot be empty")
        if not self.name or not self.name.strip():
            raise ValidationError("Component name cannot be empty")
        self.last_checked = self._now()
        self.update_health(self.metrics)

    @classmethod
    def database(cls, name: str, metrics: SystemMetrics, **kwargs) -> "SystemHealth":
        return cls(
            f"db-{name.lower()}",
            name,
            ComponentType.DATABASE,
            metrics,
            description="Database component health monitoring",
            **kwargs,
        )

    @classmethod
    def api_gateway(cls, metrics: SystemMetrics, **kwargs) -> "SystemHealth":
        return cls(
            "api-gateway",
            "API Gateway",
            ComponentType.API_GATEWAY,
            metrics,
            description="API Gateway health and performance monitoring",
            **kwargs,
        )

    @classmethod
    def workflow_engine(cls, metrics: SystemMetrics, **kwargs) -> "SystemHealth":
        return cls(
            "workflow-engine",
            "Workflow Engine",
            ComponentType.WORKFLOW_ENGINE,
            metrics,
            description="Workflow execution engine health monitoring",
            **kwargs,
        )

    @classmethod
    def auth_service(cls, metrics: SystemMetrics, **kwargs) -> "SystemHealth":
        return cls(
            "auth-service",
            "Authentication Service",
            ComponentType.AUTH_SERVICE,
            metrics,
            description="Authentication service health monitoring",
            **kwargs,
        )

    @classmethod
    def external_api(
        cls, service_name: str, metrics: SystemMetrics, **kwargs
    ) -> "SystemHealth":
        return cls(
            f"external-{service_name.lower()}",
            f"{service_name} API",
            ComponentType.EXTERNAL_API,
            metrics,
            description=f"External {service_name} API health monitoring",
            **kwargs,
        )

    def _now(self) -> float:
        return self.clock() if self.clock is not None else time.time()

    def update_health(self, metrics: SystemMetrics) -> HealthStatus:
        """Reclassify with fresh metrics.

        Emits HealthChanged only when the status differs from before, plus a
        CriticalAlert when the new status is Critical or Down.
        """
        now = self._now()
        self.previous_status = self.status
        self.metrics = metrics
        self.last_checked = now
        new_status = classify_health(metrics, self.thresholds)
        if new_status is self.status:
            return self.status
        self.status = new_status
        self._outbox.append(
            HealthChanged(
                self.component_id,
                component_name=self.name,
                status=str(self.status),
                previous_status=str(self.previous_status),
                metrics=metrics.as_dict(),
                occurred_at=now,
            )
        )
        if self.status in (HealthStatus.CRITICAL, HealthStatus.DOWN):
            self._outbox.append(self._critical_alert(now))
        return self.status

    def _critical_alert(self, now: float) -> CriticalAlert:
        m = self.metrics
        if self.status is HealthStatus.DOWN:
            alert_type, message = "availability", "Component is not responding"
        elif m.cpu.value >= 90:
            alert_type, message = "high_cpu", f"High CPU usage: {m.cpu.display_value}"
        elif m.memory.value >= 90:
            alert_type, message = "high_memory", f"High memory usage: {m.memory.display_value}"
        elif m.error_rate.value >= 10:
            alert_type, message = "high_error_rate", f"High error rate: {m.error_rate.display_value}"
        elif m.response_time.value >= 5000:
            alert_type, message = (
                "slow_response",
                f"Slow response time: {m.response_time.display_value}",
            )
        else:
            alert_type, message = "performance", "System performance degraded"
        return CriticalAlert(
            self.component_id,
            component_name=self.name,
            alert_type=alert_type,
            severity="critical" if self.status is HealthStatus.CRITICAL else "warning",
            message=message,
            metrics=m.as_dict(),
            occurred_at=now,
        )

    def health_summary(self) -> HealthSummary:
        """Score the component from 100 down, listing issues and fixes."""
        m = self.metrics
        issues: list[str] = []
        recommendations: list[str] = []
        score = 100
        if m.cpu.value > 75:
            issues.append(f"High CPU usage: {m.cpu.display_value}")
            recommendations.append("Consider scaling up or optimizing CPU-intensive operations")
            score -= 20
        if m.memory.value > 75:
            issues.append(f"High memory usage: {m.memory.display_value}")
            recommendations.append(
                "Check for memory leaks or consider increasing memory allocation"
            )
            score -= 20
        if m.error_rate.value > 5:
            issues.append(f"High error rate: {m.error_rate.display_value}")
            recommendations.append("Investigate error logs and fix underlying issues")
            score -= 30
        if m.response_time.value > 2000:
            issues.append(f"Slow response time: {m.response_time.display_value}")
            recommendations.append("Optimize queries and consider caching strategies")
            score -= 25
        return HealthSummary(
            status=self.status,
            score=max(0, score),
            issues=tuple(issues),
            recommendations=tuple(recommendations),
        )

    @property
    def is_healthy(self) -> bool:
        return self.status is HealthStatus.HEALTHY

    @property
    def is_critical(self) -> bool:
        return self.status is HealthStatus.CRITICAL

    @property
    def is_down(self) -> bool:
        return self.status is HealthStatus.DOWN

    def uncommitted_events(self) -> list[DomainEvent]:
        return self._outbox.pending()

    def mark_events_committed(self, events: list[DomainEvent] | None = None) -> None:
        self._outbox.commit(events)

    def __str__(self) -> str:
        return f"{self.name} [{self.type}]: {self.status}"
