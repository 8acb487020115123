"""Keeping track of component health and publishing its changes."""

import asyncio
import logging
from collections import defaultdict

from vigilpy.core.health import HealthSummary, SystemHealth, SystemMetrics
from vigilpy.core.ports import EventPublisherPort
from vigilpy.services.dispatch import publish_pending

logger = logging.getLogger(__name__)


class HealthMonitor:
    """Registry of SystemHealth aggregates keyed by component id.

    Args:
        publisher: Destination for HealthChanged/CriticalAlert events.
    """

    def __init__(self, publisher: EventPublisherPort) -> None:
        self._publisher = publisher
        self._components: dict[str, SystemHealth] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def register(self, component: SystemHealth) -> SystemHealth:
        """Track a component and publish its initial classification."""
        self._components[component.component_id] = component
        logger.info("Registered %s as %s", component.component_id, component.status)
        async with self._locks[component.component_id]:
            await publish_pending(component, self._publisher)
        return component

    def get(self, component_id: str) -> SystemHealth | None:
        return self._components.get(component_id)

    async def update(self, component_id: str, metrics: SystemMetrics) -> SystemHealth:
        """Reclassify a registered component and publish any resulting events.

        Raises:
            KeyError: If no component with this id is registered.
        """
        component = self._components[component_id]
        async with self._locks[component_id]:
            before = component.status
            component.update_health(metrics)
            if component.status is not before:
                logger.info(
                    "Component %s health changed from %s to %s",
                    component_id,
                    before,
                    component.status,
                )
            await publish_pending(component, self._publisher)
        return component

    def summaries(self) -> dict[str, HealthSummary]:
        return {cid: c.health_summary() for cid, c in self._components.items()}

    def __len__(self) -> int:
        return len(self._components)
