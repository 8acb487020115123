"""Result types produced by the incident correlation engine.

All results are plain values computed on demand; nothing here is persisted.
"""

from dataclasses import dataclass, field
from enum import StrEnum

from vigilpy.core.errors import ValidationError
from vigilpy.core.models import LogEntry, Metric


@dataclass(frozen=True)
class IncidentWindows:
    """Window lengths, in minutes, used when building an incident report.

    Attributes:
        timeline_minutes: Symmetric window for the primary log timeline.
        error_lookback_minutes: Lookback for error pattern analysis.
        journey_lookback_minutes: Lookback for per-user journeys.
        correlation_minutes: Symmetric window for metric correlation.
        related_log_minutes: Distance from a metric sample within which a
            log counts as related to it.
        bucket_minutes: Width of one error progression bucket.
    """

    timeline_minutes: float = 60
    error_lookback_minutes: float = 60
    journey_lookback_minutes: float = 120
    correlation_minutes: float = 30
    related_log_minutes: float = 5
    bucket_minutes: float = 5

    def __post_init__(self) -> None:
        if self.bucket_minutes <= 0:
            raise ValidationError("Bucket minutes must be positive")
        if min(
            self.timeline_minutes,
            self.error_lookback_minutes,
            self.journey_lookback_minutes,
            self.correlation_minutes,
            self.related_log_minutes,
        ) < 0:
            raise ValidationError("Window minutes cannot be negative")


@dataclass(frozen=True)
class ErrorBucket:
    start: float
    error_count: int


@dataclass(frozen=True)
class ErrorAnalysis:
    """Error/Fatal activity in ``(incident_time - lookback, incident_time]``.

    Attributes:
        error_count: Number of error entries in the window.
        error_types: Histogram of extracted error types.
        affected_users: Distinct user ids seen on error entries.
        critical_errors: Fatal entries, and errors mentioning database,
            timeout or crash.
        progression: Fixed-width buckets spanning the lookback window,
            oldest first; their counts sum to ``error_count``.
    """

    error_count: int
    error_types: dict[str, int]
    affected_users: frozenset[str]
    critical_errors: tuple[LogEntry, ...]
    progression: tuple[ErrorBucket, ...]


@dataclass(frozen=True)
class UserJourney:
    user_id: str
    timeline: tuple[LogEntry, ...]
    actions_performed: tuple[str, ...]
    last_successful_action: LogEntry | None
    first_error: LogEntry | None
    workflows_attempted: frozenset[str]


class CorrelationStrength(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class MetricCorrelation:
    metric: Metric
    related_logs: tuple[LogEntry, ...]
    strength: CorrelationStrength


@dataclass(frozen=True)
class CorrelationAnalysis:
    logs: tuple[LogEntry, ...]
    metrics: tuple[Metric, ...]
    correlations: tuple[MetricCorrelation, ...]


@dataclass(frozen=True)
class IncidentReport:
    """Everything known about an incident at the time of analysis."""

    incident_time: float
    description: str
    summary: str
    timeline: tuple[LogEntry, ...]
    error_analysis: ErrorAnalysis
    user_journeys: tuple[UserJourney, ...]
    correlation: CorrelationAnalysis
    root_cause_hypotheses: tuple[str, ...]
    recommended_actions: tuple[str, ...]
    affected_workflows: tuple[str, ...] = field(default=())
