"""Per-aggregate buffer of domain events awaiting publication."""

from collections.abc import Iterable

from vigilpy.core.events.models import DomainEvent


class EventOutbox:
    """Ordered list of events not yet handed to a publisher.

    Each aggregate owns its own outbox. Mutating calls on the aggregate
    append; a separate drain step reads ``pending()`` and commits what was
    actually published.
    """

    def __init__(self) -> None:
        self._events: list[DomainEvent] = []

    def append(self, event: DomainEvent) -> None:
        self._events.append(event)

    def pending(self) -> list[DomainEvent]:
        """Return a copy of the buffered events, oldest first."""
        return list(self._events)

    def commit(self, events: Iterable[DomainEvent] | None = None) -> None:
        """Drop committed events.

        Args:
            events: Events to drop. ``None`` drops everything.
        """
        if events is None:
            self._events.clear()
            return
        done = {e.event_id for e in events}
        self._events = [e for e in self._events if e.event_id not in done]

    def __len__(self) -> int:
        return len(self._events)
