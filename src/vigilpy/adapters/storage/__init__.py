"""Storage adapters implementing core ports."""

from vigilpy.adapters.storage.in_memory import (
    InMemoryAlertRepository,
    InMemoryLogStore,
    InMemoryMetricStore,
)
from vigilpy.adapters.storage.ring_buffer import RingBufferLogStore
from vigilpy.adapters.storage.sqlite_logs import SQLiteLogStore
from vigilpy.adapters.storage.sqlite_metrics import SQLiteMetricStore

__all__ = [
    "InMemoryAlertRepository",
    "InMemoryLogStore",
    "InMemoryMetricStore",
    "RingBufferLogStore",
    "SQLiteLogStore",
    "SQLiteMetricStore",
]
