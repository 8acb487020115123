"""Helper functions for creating LogEntry objects."""

import time

from vigilpy.core.models import LogCategory, LogContext, LogEntry, LogLevel

Attribute = str | int | float | bool


def log(
    level: LogLevel | str,
    message: str,
    *,
    source: str = "application",
    category: LogCategory = LogCategory.APPLICATION,
    context: LogContext | None = None,
    timestamp: float | None = None,
    **attributes: Attribute,
) -> LogEntry:
    """Create a log entry, stamped now unless ``timestamp`` is given.

    Args:
        level: Log level (e.g. "INFO", LogLevel.ERROR).
        message: The log message.
        source: Component emitting the entry.
        category: Functional category.
        context: Correlation identifiers.
        timestamp: Unix timestamp in seconds.
        **attributes: Additional structured fields.

    Returns:
        The new LogEntry.
    """
    return LogEntry(
        timestamp=time.time() if timestamp is None else timestamp,
        level=level,
        message=message,
        category=category,
        source=source,
        context=context or LogContext(),
        attributes=dict(attributes),
    )


def debug(message: str, **kwargs) -> LogEntry:
    return log(LogLevel.DEBUG, message, **kwargs)


def info(message: str, **kwargs) -> LogEntry:
    return log(LogLevel.INFO, message, **kwargs)


def warn(message: str, **kwargs) -> LogEntry:
    return log(LogLevel.WARN, message, **kwargs)


def error(message: str, exc: BaseException | None = None, **kwargs) -> LogEntry:
    """Create an ERROR entry, recording ``exc`` type and message if given."""
    if exc is not None:
        kwargs.setdefault("exc_type", type(exc).__name__)
        kwargs.setdefault("exc_message", str(exc))
    return log(LogLevel.ERROR, message, **kwargs)


def fatal(message: str, exc: BaseException | None = None, **kwargs) -> LogEntry:
    if exc is not None:
        kwargs.setdefault("exc_type", type(exc).__name__)
        kwargs.setdefault("exc_message", str(exc))
    return log(LogLevel.FATAL, message, **kwargs)


def user_action(user_id: str, action: str, **details: Attribute) -> LogEntry:
    return log(
        LogLevel.INFO,
        f"User action: {action}",
        source="user-service",
        category=LogCategory.AUDIT,
        context=LogContext(user_id=user_id),
        action=action,
        **details,
    )


def workflow_execution(
    workflow_id: str,
    user_id: str,
    status: str,
    execution_time: float | None = None,
) -> LogEntry:
    """Workflow lifecycle entry; ``failed`` is logged at ERROR, else INFO.

    Args:
        workflow_id: Workflow being executed.
        user_id: User who started it.
        status: One of ``started``, ``completed``, ``failed``.
        execution_time: Duration in milliseconds, when known.
    """
    extra: dict[str, Attribute] = {"workflow_id": workflow_id, "status": status}
    if execution_time is not None:
        extra["execution_time"] = execution_time
    return log(
        LogLevel.ERROR if status == "failed" else LogLevel.INFO,
        f"Workflow {status}: {workflow_id}",
        source="workflow-engine",
        category=LogCategory.BUSINESS,
        context=LogContext(user_id=user_id, workflow_id=workflow_id),
        **extra,
    )


def security_event(
    event_type: str, user_id: str, ip_address: str, **details: Attribute
) -> LogEntry:
    return log(
        LogLevel.WARN,
        f"Security event: {event_type}",
        source="security-service",
        category=LogCategory.SECURITY,
        context=LogContext(user_id=user_id),
        event_type=event_type,
        ip_address=ip_address,
        **details,
    )


def api_request(
    method: str,
    endpoint: str,
    status_code: int,
    response_time: float,
    context: LogContext | None = None,
) -> LogEntry:
    """API access entry; 5xx is ERROR, 4xx is WARN, anything else INFO."""
    if status_code >= 500:
        level = LogLevel.ERROR
    elif status_code >= 400:
        level = LogLevel.WARN
    else:
        level = LogLevel.INFO
    return log(
        level,
        f"{method} {endpoint} - {status_code} ({response_time:g}ms)",
        source="api-gateway",
        category=LogCategory.APPLICATION,
        context=context,
        method=method,
        endpoint=endpoint,
        status_code=status_code,
        response_time=response_time,
    )
