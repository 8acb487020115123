"""Domain events emitted by alert and health aggregates."""

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, ClassVar


@dataclass(frozen=True)
class DomainEvent:
    """Base class for events buffered on an aggregate.

    Attributes:
        aggregate_id: Id of the alert or component that emitted the event.
        occurred_at: Unix timestamp in seconds.
        event_id: Unique id, stable across redelivery.
    """

    event_type: ClassVar[str] = "DomainEvent"

    aggregate_id: str
    occurred_at: float = field(default_factory=time.time, kw_only=True)
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex, kw_only=True)

    def payload(self) -> dict[str, Any]:
        """Event-specific fields, as sent to publishers."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "aggregate_id": self.aggregate_id,
            "occurred_at": self.occurred_at,
            "payload": self.payload(),
        }


@dataclass(frozen=True)
class AlertTriggered(DomainEvent):
    event_type: ClassVar[str] = "AlertTriggered"

    alert_name: str
    metric_name: str
    current_value: float
    threshold_description: str
    severity: str

    def payload(self) -> dict[str, Any]:
        return {
            "alert_name": self.alert_name,
            "metric_name": self.metric_name,
            "current_value": self.current_value,
            "threshold_description": self.threshold_description,
            "severity": self.severity,
        }


@dataclass(frozen=True)
class AlertResolved(DomainEvent):
    event_type: ClassVar[str] = "AlertResolved"

    alert_name: str
    resolved_at: float
    auto_resolved: bool

    def payload(self) -> dict[str, Any]:
        return {
            "alert_name": self.alert_name,
            "resolved_at": self.resolved_at,
            "auto_resolved": self.auto_resolved,
        }


@dataclass(frozen=True)
class HealthChanged(DomainEvent):
    event_type: ClassVar[str] = "HealthChanged"

    component_name: str
    status: str
    previous_status: str
    metrics: dict[str, float]

    def payload(self) -> dict[str, Any]:
        return {
            "component_name": self.component_name,
            "status": self.status,
            "previous_status": self.previous_status,
            "metrics": dict(self.metrics),
        }


@dataclass(frozen=True)
class CriticalAlert(DomainEvent):
    event_type: ClassVar[str] = "CriticalAlert"

    component_name: str
    alert_type: str
    severity: str
    message: str
    metrics: dict[str, float]

    def payload(self) -> dict[str, Any]:
        return {
            "component_name": self.component_name,
            "alert_type": self.alert_type,
            "severity": self.severity,
            "message": self.message,
            "metrics": dict(self.metrics),
        }
