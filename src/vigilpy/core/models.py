"""Core domain models for measurements and log entries."""

import math
import time
import uuid
from dataclasses import dataclass, field
from enum import StrEnum

from vigilpy.core.dimensions import DimensionSet
from vigilpy.core.errors import ValidationError


class MetricType(StrEnum):
    COUNTER = "counter"
    GAUGE = "gauge"
    TIMER = "timer"
    PERCENTAGE = "percentage"
    BYTES = "bytes"


_KB = 1024
_MB = 1024 * _KB
_GB = 1024 * _MB


def _plain(number: float) -> str:
    """Render a number without a trailing ``.0`` for whole values."""
    return f"{number:g}"


@dataclass(frozen=True)
class MetricValue:
    """A typed numeric measurement.

    Attributes:
        value: The measured number.
        type: Kind of measurement; drives validation and display.
        unit: Free-form unit name (e.g. "milliseconds").
        precision: Decimal places used by ``formatted_value``.
        timestamp: Unix timestamp in seconds when the value was taken.
    """

    value: float
    type: MetricType
    unit: str
    precision: int = 0
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        if not isinstance(self.type, MetricType):
            object.__setattr__(self, "type", MetricType(str(self.type).lower()))
        if self.value < 0 and self.type is not MetricType.GAUGE:
            raise ValidationError(f"{self.type} values cannot be negative")
        if self.type is MetricType.PERCENTAGE and self.value > 100:
            raise ValidationError("Percentage values must be between 0 and 100")
        if self.precision < 0:
            raise ValidationError("Precision cannot be negative")

    @classmethod
    def counter(
        cls, value: float, unit: str = "count", timestamp: float | None = None
    ) -> "MetricValue":
        if value < 0:
            raise ValidationError("Counter values cannot be negative")
        return cls._build(math.floor(value), MetricType.COUNTER, unit, 0, timestamp)

    @classmethod
    def gauge(
        cls,
        value: float,
        unit: str = "units",
        precision: int = 1,
        timestamp: float | None = None,
    ) -> "MetricValue":
        return cls._build(value, MetricType.GAUGE, unit, precision, timestamp)

    @classmethod
    def timer(cls, milliseconds: float, timestamp: float | None = None) -> "MetricValue":
        return cls._build(milliseconds, MetricType.TIMER, "milliseconds", 0, timestamp)

    @classmethod
    def percentage(
        cls, value: float, precision: int = 1, timestamp: float | None = None
    ) -> "MetricValue":
        return cls._build(value, MetricType.PERCENTAGE, "percentage", precision, timestamp)

    @classmethod
    def bytes(cls, value: float, timestamp: float | None = None) -> "MetricValue":
        return cls._build(value, MetricType.BYTES, "bytes", 0, timestamp)

    @classmethod
    def _build(
        cls,
        value: float,
        type: MetricType,
        unit: str,
        precision: int,
        timestamp: float | None,
    ) -> "MetricValue":
        if timestamp is None:
            return cls(value, type, unit, precision)
        return cls(value, type, unit, precision, timestamp)

    @property
    def formatted_value(self) -> str:
        return f"{self.value:.{self.precision}f}"

    @property
    def display_value(self) -> str:
        """Unit-aware rendering, e.g. ``85.0%``, ``1.5s`` or ``2.0MB``."""
        if self.type is MetricType.PERCENTAGE:
            return f"{self.formatted_value}%"
        if self.type is MetricType.TIMER:
            return _format_duration(self.value)
        if self.type is MetricType.BYTES:
            return _format_bytes(self.value)
        return self.formatted_value

    def is_greater_than(self, threshold: float) -> bool:
        return self.value > threshold

    def is_less_than(self, threshold: float) -> bool:
        return self.value < threshold

    def is_between(self, low: float, high: float) -> bool:
        return low <= self.value <= high


def _format_duration(ms: float) -> str:
    if ms < 1000:
        return f"{_plain(ms)}ms"
    if ms < 60_000:
        return f"{ms / 1000:.1f}s"
    if ms < 3_600_000:
        return f"{ms / 60_000:.1f}m"
    return f"{ms / 3_600_000:.1f}h"


def _format_bytes(size: float) -> str:
    if size < _KB:
        return f"{_plain(size)}B"
    if size < _MB:
        return f"{size / _KB:.1f}KB"
    if size < _GB:
        return f"{size / _MB:.1f}MB"
    return f"{size / _GB:.1f}GB"


class MetricCategory(StrEnum):
    PERFORMANCE = "performance"
    USAGE = "usage"
    ERROR = "error"
    BUSINESS = "business"
    SYSTEM = "system"
    SECURITY = "security"


@dataclass(frozen=True)
class Metric:
    """A named measurement as held by a metric store.

    Attributes:
        name: Metric name (e.g. "cpu_usage").
        value: The typed measurement.
        source: Component that produced the measurement.
        category: Broad grouping of the metric.
        dimensions: Slicing dimensions (user, workflow, region...).
        tags: Free-form tags.
        timestamp: Unix timestamp in seconds; defaults to the value's timestamp.
        metric_id: Unique identifier.
    """

    name: str
    value: MetricValue
    source: str = "system"
    category: MetricCategory = MetricCategory.SYSTEM
    dimensions: DimensionSet = field(default_factory=DimensionSet)
    tags: tuple[str, ...] = ()
    timestamp: float | None = None
    metric_id: str = field(default_factory=lambda: f"metric-{uuid.uuid4().hex[:12]}")

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("Metric name cannot be empty")
        if not self.source or not self.source.strip():
            raise ValidationError("Metric source cannot be empty")
        if not isinstance(self.category, MetricCategory):
            object.__setattr__(self, "category", MetricCategory(str(self.category).lower()))
        if self.timestamp is None:
            object.__setattr__(self, "timestamp", self.value.timestamp)

    @property
    def at(self) -> float:
        """Timestamp as a plain float."""
        return self.value.timestamp if self.timestamp is None else self.timestamp


class LogLevel(StrEnum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    FATAL = "FATAL"

    @property
    def rank(self) -> int:
        return _LEVEL_ORDER.index(self)

    @property
    def is_error(self) -> bool:
        """True for ERROR and FATAL."""
        return self in (LogLevel.ERROR, LogLevel.FATAL)


_LEVEL_ORDER = (LogLevel.DEBUG, LogLevel.INFO, LogLevel.WARN, LogLevel.ERROR, LogLevel.FATAL)


class LogCategory(StrEnum):
    APPLICATION = "application"
    SECURITY = "security"
    PERFORMANCE = "performance"
    AUDIT = "audit"
    SYSTEM = "system"
    BUSINESS = "business"
    INTEGRATION = "integration"


@dataclass(frozen=True)
class LogContext:
    """Correlation identifiers attached to a log entry."""

    user_id: str | None = None
    workflow_id: str | None = None
    request_id: str | None = None
    session_id: str | None = None
    correlation_id: str | None = None

    def as_dict(self) -> dict[str, str]:
        return {k: v for k, v in self.__dict__.items() if v is not None}


@dataclass(frozen=True)
class LogEntry:
    """A structured log entry.

    Attributes:
        timestamp: Unix timestamp in seconds.
        level: Severity level.
        message: The log message.
        category: Functional category of the entry.
        source: Component that emitted the entry.
        context: Correlation identifiers (user, workflow, request).
        attributes: Additional structured fields.
    """

    timestamp: float
    level: LogLevel
    message: str
    category: LogCategory = LogCategory.APPLICATION
    source: str = "application"
    context: LogContext = field(default_factory=LogContext)
    attributes: dict[str, str | int | float | bool] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Accept plain strings ("ERROR", "security") from adapters.
        if not isinstance(self.level, LogLevel):
            object.__setattr__(self, "level", LogLevel(str(self.level).upper()))
        if not isinstance(self.category, LogCategory):
            object.__setattr__(self, "category", LogCategory(str(self.category).lower()))

    def matches_level(self, level: LogLevel) -> bool:
        """True if this entry is at least as severe as ``level``."""
        return self.level.rank >= level.rank

    def to_log_string(self) -> str:
        stamp = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(self.timestamp))
        line = f"{stamp} {self.level:<5} [{self.source}] {self.message}"
        if self.attributes:
            line += f" | Data: {self.attributes}"
        return line


@dataclass(frozen=True)
class LogFilters:
    """Optional filters for log range queries.

    Attributes:
        user_id: Match ``context.user_id``.
        workflow_id: Match ``context.workflow_id``.
        request_id: Match ``context.request_id``.
        component: Match the entry ``source``.
        level: Match the exact level.
    """

    user_id: str | None = None
    workflow_id: str | None = None
    request_id: str | None = None
    component: str | None = None
    level: LogLevel | None = None

    def matches(self, entry: LogEntry) -> bool:
        if self.user_id is not None and entry.context.user_id != self.user_id:
            return False
        if self.workflow_id is not None and entry.context.workflow_id != self.workflow_id:
            return False
        if self.request_id is not None and entry.context.request_id != self.request_id:
            return False
        if self.component is not None and entry.source != self.component:
            return False
        if self.level is not None and entry.level != self.level:
            return False
        return True
