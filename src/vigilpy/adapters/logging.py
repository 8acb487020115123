"""Python logging handler that feeds a LogStorePort.

Bridges the standard library ``logging`` module to vigilpy log stores so
application logs become available to the incident correlation engine.
"""

import asyncio
import logging
import traceback

from vigilpy.core.logs import log
from vigilpy.core.models import LogCategory, LogContext, LogEntry, LogLevel
from vigilpy.core.ports import LogStorePort

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)

_CONTEXT_KEYS = ("user_id", "workflow_id", "request_id", "session_id", "correlation_id")

# Extra keys naming LogEntry fields; these never become attributes.
_ENTRY_FIELDS = frozenset({"level", "message", "source", "context", "timestamp"})

_LEVELS = {
    logging.DEBUG: LogLevel.DEBUG,
    logging.INFO: LogLevel.INFO,
    logging.WARNING: LogLevel.WARN,
    logging.ERROR: LogLevel.ERROR,
    logging.CRITICAL: LogLevel.FATAL,
}


def level_for(levelno: int) -> LogLevel:
    """Map a stdlib level number to the nearest LogLevel at or below it."""
    for threshold in sorted(_LEVELS, reverse=True):
        if levelno >= threshold:
            return _LEVELS[threshold]
    return LogLevel.DEBUG


class VigilLogHandler(logging.Handler):
    """Logging handler that writes log records to a LogStorePort.

    Correlation ids and the category are read from ``extra``::

        logger.error(
            "DatabaseError: pool exhausted",
            extra={"user_id": "u-1", "category": "system"},
        )

    Other primitive ``extra`` values become entry attributes. Inside a
    running event loop the write is scheduled on that loop; otherwise it
    runs to completion before ``emit`` returns.
    """

    def __init__(self, store: LogStorePort, source: str | None = None) -> None:
        """Initialize the handler with a log store.

        Args:
            store: Store implementing LogStorePort.
            source: Source recorded on entries. Defaults to the logger name.
        """
        super().__init__()
        self._store = store
        self._source = source
        self._pending: set[asyncio.Task[None]] = set()

    def to_entry(self, record: logging.LogRecord) -> LogEntry:
        context: dict[str, str] = {}
        attributes: dict[str, str | int | float | bool] = {
            "module": record.module,
            "funcName": record.funcName or "",
            "lineno": record.lineno,
        }
        category = LogCategory.APPLICATION
        for key, value in record.__dict__.items():
            if key in _STANDARD_LOGRECORD_ATTRS or key in _ENTRY_FIELDS:
                continue
            if key in _CONTEXT_KEYS and value is not None:
                context[key] = str(value)
            elif key == "category":
                category = LogCategory(str(value).lower())
            elif isinstance(value, (str, int, float, bool)):
                attributes[key] = value

        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            if exc_type is not None:
                attributes["exc_type"] = exc_type.__name__
            if exc_value is not None:
                attributes["exc_message"] = str(exc_value)
            if exc_tb is not None:
                attributes["exc_traceback"] = "".join(
                    traceback.format_exception(exc_type, exc_value, exc_tb)
                )

        return log(
            level_for(record.levelno),
            record.getMessage(),
            source=self._source or record.name,
            category=category,
            context=LogContext(**context),
            timestamp=record.created,
            **attributes,
        )

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = self.to_entry(record)
        except Exception:
            self.handleError(record)
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._store.write(entry))
            return
        task = loop.create_task(self._store.write(entry))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for writes scheduled from inside an event loop."""
        if self._pending:
            await asyncio.gather(*self._pending)
