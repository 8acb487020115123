"""Draining aggregate outboxes into an event publisher."""

import logging
from typing import Protocol

from vigilpy.core.events import DomainEvent
from vigilpy.core.ports import EventPublisherPort

logger = logging.getLogger(__name__)


class OutboxAggregate(Protocol):
    """Any aggregate that buffers domain events (Alert, SystemHealth)."""

    def uncommitted_events(self) -> list[DomainEvent]: ...

    def mark_events_committed(self, events: list[DomainEvent] | None = None) -> None: ...


async def publish_pending(
    aggregate: OutboxAggregate, publisher: EventPublisherPort
) -> int:
    """Publish an aggregate's pending events in order.

    Each event is committed only after its own publish succeeds. On failure
    the exception propagates and the failed event, with everything after
    it, stays pending for a later drain. Aggregate state is left as is.

    Returns:
        Number of events published by this call.
    """
    published = 0
    for event in aggregate.uncommitted_events():
        try:
            await publisher.publish(event)
        except Exception:
            logger.exception(
                "Failed to publish %s for %s", event.event_type, event.aggregate_id
            )
            raise
        aggregate.mark_events_committed([event])
        published += 1
    return published
