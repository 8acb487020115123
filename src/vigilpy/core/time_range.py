"""Time range value object.

All timestamps are Unix timestamps in seconds.
"""

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import StrEnum

from vigilpy.core.errors import ValidationError

MINUTE = 60.0
HOUR = 60 * MINUTE
DAY = 24 * HOUR


class TimeRangeType(StrEnum):
    LAST_HOUR = "last_hour"
    LAST_24_HOURS = "last_24_hours"
    LAST_7_DAYS = "last_7_days"
    LAST_30_DAYS = "last_30_days"
    CUSTOM = "custom"


class TimeGranularity(StrEnum):
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True)
class TimeRange:
    """A closed interval ``[start, end]`` of Unix timestamps.

    Attributes:
        start: Inclusive lower bound.
        end: Inclusive upper bound. Must not precede ``start``.
        type: How the range was built.
    """

    start: float
    end: float
    type: TimeRangeType = TimeRangeType.CUSTOM

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValidationError("Start must not be after end")

    @classmethod
    def create(cls, start: float, end: float) -> "TimeRange":
        return cls(start, end, TimeRangeType.CUSTOM)

    @classmethod
    def around(cls, center: float, minutes: float) -> "TimeRange":
        """Symmetric range ``[center - minutes, center + minutes]``."""
        if minutes < 0:
            raise ValidationError("Window minutes cannot be negative")
        return cls(center - minutes * MINUTE, center + minutes * MINUTE)

    @classmethod
    def _ending_now(
        cls, span: float, type: TimeRangeType, now: float | None
    ) -> "TimeRange":
        end = time.time() if now is None else now
        return cls(end - span, end, type)

    @classmethod
    def last_hour(cls, now: float | None = None) -> "TimeRange":
        return cls._ending_now(HOUR, TimeRangeType.LAST_HOUR, now)

    @classmethod
    def last_24_hours(cls, now: float | None = None) -> "TimeRange":
        return cls._ending_now(DAY, TimeRangeType.LAST_24_HOURS, now)

    @classmethod
    def last_7_days(cls, now: float | None = None) -> "TimeRange":
        return cls._ending_now(7 * DAY, TimeRangeType.LAST_7_DAYS, now)

    @classmethod
    def last_30_days(cls, now: float | None = None) -> "TimeRange":
        return cls._ending_now(30 * DAY, TimeRangeType.LAST_30_DAYS, now)

    @property
    def duration_seconds(self) -> float:
        return self.end - self.start

    @property
    def duration_hours(self) -> float:
        return self.duration_seconds / HOUR

    @property
    def duration_days(self) -> float:
        return self.duration_seconds / DAY

    def optimal_granularity(self) -> TimeGranularity:
        """Pick an aggregation granularity suited to the range length."""
        hours = self.duration_hours
        if hours <= 2:
            return TimeGranularity.MINUTE
        if hours <= 48:
            return TimeGranularity.HOUR
        if hours <= 168:
            return TimeGranularity.DAY
        if hours <= 720:
            return TimeGranularity.WEEK
        return TimeGranularity.MONTH

    def contains(self, timestamp: float) -> bool:
        return self.start <= timestamp <= self.end

    def overlaps(self, other: "TimeRange") -> bool:
        return self.start < other.end and self.end > other.start

    def __str__(self) -> str:
        if self.type is not TimeRangeType.CUSTOM:
            return self.type.replace("_", " ")
        start = datetime.fromtimestamp(self.start, tz=timezone.utc).date()
        end = datetime.fromtimestamp(self.end, tz=timezone.utc).date()
        return f"{start.isoformat()} to {end.isoformat()}"
