"""Domain events and the per-aggregate outbox."""

from vigilpy.core.events.models import (
    AlertResolved,
    AlertTriggered,
    CriticalAlert,
    DomainEvent,
    HealthChanged,
)
from vigilpy.core.events.outbox import EventOutbox

__all__ = [
    "AlertResolved",
    "AlertTriggered",
    "CriticalAlert",
    "DomainEvent",
    "EventOutbox",
    "HealthChanged",
]
