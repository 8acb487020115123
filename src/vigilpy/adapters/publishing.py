"""Event publisher adapters."""

import asyncio
import logging
from collections.abc import Mapping

from vigilpy.core.errors import PublishError
from vigilpy.core.events import DomainEvent
from vigilpy.core.ports import EventPublisherPort

logger = logging.getLogger(__name__)


class InMemoryEventPublisher:
    """Collects published events in a list. Useful in tests."""

    def __init__(self) -> None:
        self.events: list[DomainEvent] = []

    async def publish(self, event: DomainEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: type[DomainEvent]) -> list[DomainEvent]:
        return [e for e in self.events if isinstance(e, event_type)]

    def clear(self) -> None:
        self.events.clear()


class LoggingEventPublisher:
    """Writes each event to a stdlib logger.

    Args:
        logger_name: Logger to write to.
        level: Level used for every event.
    """

    def __init__(self, logger_name: str = "vigilpy.events", level: int = logging.INFO) -> None:
        self._logger = logging.getLogger(logger_name)
        self._level = level

    async def publish(self, event: DomainEvent) -> None:
        self._logger.log(
            self._level,
            "%s %s",
            event.event_type,
            event.aggregate_id,
            extra={"event": event.to_dict()},
        )


class FanOutEventPublisher:
    """Publishes every event to several named channels concurrently.

    All channels are attempted even when some fail. Failures are collected
    and raised together as a PublishError once every channel has finished.

    Args:
        channels: Channel name to publisher.
    """

    def __init__(self, channels: Mapping[str, EventPublisherPort]) -> None:
        self._channels = dict(channels)

    @property
    def channel_names(self) -> list[str]:
        return list(self._channels)

    async def publish(self, event: DomainEvent) -> None:
        names = list(self._channels)
        results = await asyncio.gather(
            *(self._channels[name].publish(event) for name in names),
            return_exceptions=True,
        )
        for result in results:
            # Cancellation and interpreter exits are not channel failures.
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
        failures = {
            name: result
            for name, result in zip(names, results)
            if isinstance(result, Exception)
        }
        if failures:
            for name, exc in failures.items():
                logger.error(
                    "Channel %s failed to publish %s: %s", name, event.event_type, exc
                )
            raise PublishError(failures)
