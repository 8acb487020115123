"""vigilpy: threshold alerting, component health and incident correlation."""

from vigilpy.adapters.logging import VigilLogHandler
from vigilpy.adapters.publishing import (
    FanOutEventPublisher,
    InMemoryEventPublisher,
    LoggingEventPublisher,
)
from vigilpy.adapters.storage import (
    InMemoryAlertRepository,
    InMemoryLogStore,
    InMemoryMetricStore,
    RingBufferLogStore,
    SQLiteLogStore,
    SQLiteMetricStore,
)
from vigilpy.core import logs
from vigilpy.core.alerts import Alert, AlertChannel, AlertConfiguration, AlertStatus
from vigilpy.core.dimensions import Dimension, DimensionSet, DimensionType
from vigilpy.core.errors import AlertNotFoundError, PublishError, ValidationError
from vigilpy.core.events import (
    AlertResolved,
    AlertTriggered,
    CriticalAlert,
    DomainEvent,
    HealthChanged,
)
from vigilpy.core.health import (
    ComponentType,
    HealthStatus,
    HealthThresholds,
    SystemHealth,
    SystemMetrics,
    classify_health,
)
from vigilpy.core.incidents import IncidentCorrelationEngine, IncidentReport, IncidentWindows
from vigilpy.core.models import (
    LogCategory,
    LogContext,
    LogEntry,
    LogFilters,
    LogLevel,
    Metric,
    MetricCategory,
    MetricType,
    MetricValue,
)
from vigilpy.core.ports import (
    AlertRepositoryPort,
    EventPublisherPort,
    LogStorePort,
    MetricStorePort,
)
from vigilpy.core.thresholds import Threshold, ThresholdOperator, ThresholdSeverity
from vigilpy.core.time_range import TimeRange
from vigilpy.services.alerting import AlertService
from vigilpy.services.collection import MetricCollectionService
from vigilpy.services.dispatch import publish_pending
from vigilpy.services.health import HealthMonitor

__all__ = [
    "Alert",
    "AlertChannel",
    "AlertConfiguration",
    "AlertNotFoundError",
    "AlertRepositoryPort",
    "AlertResolved",
    "AlertService",
    "AlertStatus",
    "AlertTriggered",
    "ComponentType",
    "CriticalAlert",
    "Dimension",
    "DimensionSet",
    "DimensionType",
    "DomainEvent",
    "EventPublisherPort",
    "FanOutEventPublisher",
    "HealthChanged",
    "HealthMonitor",
    "HealthStatus",
    "HealthThresholds",
    "InMemoryAlertRepository",
    "InMemoryEventPublisher",
    "InMemoryLogStore",
    "InMemoryMetricStore",
    "IncidentCorrelationEngine",
    "IncidentReport",
    "IncidentWindows",
    "LogCategory",
    "LogContext",
    "LogEntry",
    "LogFilters",
    "LogLevel",
    "LogStorePort",
    "LoggingEventPublisher",
    "Metric",
    "MetricCategory",
    "MetricCollectionService",
    "MetricStorePort",
    "MetricType",
    "MetricValue",
    "PublishError",
    "RingBufferLogStore",
    "SQLiteLogStore",
    "SQLiteMetricStore",
    "SystemHealth",
    "SystemMetrics",
    "Threshold",
    "ThresholdOperator",
    "ThresholdSeverity",
    "TimeRange",
    "ValidationError",
    "VigilLogHandler",
    "classify_health",
    "logs",
    "publish_pending",
]
