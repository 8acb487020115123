"""Ring buffer log store.

Bounded in-memory storage that evicts the oldest entries when full.
Useful for services that need predictable memory usage.
"""

from collections import deque
from collections.abc import AsyncIterable

from vigilpy.adapters.storage.in_memory import select_logs
from vigilpy.core.models import LogEntry, LogFilters
from vigilpy.core.time_range import TimeRange


class RingBufferLogStore:
    """Ring buffer implementation of LogStorePort.

    Args:
        max_size: Maximum number of entries to keep.
    """

    def __init__(self, max_size: int) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._buffer: deque[LogEntry] = deque(maxlen=max_size)

    @property
    def max_size(self) -> int:
        return self._buffer.maxlen or 0

    async def write(self, entry: LogEntry) -> None:
        self._buffer.append(entry)

    async def query(
        self, time_range: TimeRange, filters: LogFilters | None = None
    ) -> AsyncIterable[LogEntry]:
        # Iterate a snapshot; writers may append between yields.
        for entry in select_logs(list(self._buffer), time_range, filters):
            yield entry

    async def count(self) -> int:
        return len(self._buffer)
