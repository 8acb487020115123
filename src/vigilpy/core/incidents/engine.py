"""Incident correlation over a log store and a metric store.

Every method is a read over the injected stores and returns fresh values,
so one engine can serve concurrent investigations. Store failures
propagate unchanged; the engine applies no retry or timeout of its own.
"""

import asyncio
import logging
import math
from collections import Counter
from collections.abc import Sequence
from datetime import datetime, timezone

from vigilpy.core.errors import ValidationError
from vigilpy.core.incidents.models import (
    CorrelationAnalysis,
    CorrelationStrength,
    ErrorAnalysis,
    ErrorBucket,
    IncidentReport,
    IncidentWindows,
    MetricCorrelation,
    UserJourney,
)
from vigilpy.core.incidents.rules import (
    DEFAULT_RULES,
    ErrorTypeExtractor,
    Evidence,
    HypothesisRule,
    derive_hypotheses,
    prefix_error_type,
    recommend_actions,
)
from vigilpy.core.models import (
    LogCategory,
    LogEntry,
    LogFilters,
    LogLevel,
    Metric,
    MetricType,
)
from vigilpy.core.ports import LogStorePort, MetricStorePort
from vigilpy.core.time_range import MINUTE, TimeRange

logger = logging.getLogger(__name__)

_CRITICAL_KEYWORDS = ("database", "timeout", "crash")


def is_critical_error(entry: LogEntry) -> bool:
    """Fatal entries, and error text mentioning database, timeout or crash."""
    if entry.level is LogLevel.FATAL:
        return True
    message = entry.message.lower()
    return any(word in message for word in _CRITICAL_KEYWORDS)


def classify_correlation(
    metric: Metric, related_logs: Sequence[LogEntry]
) -> CorrelationStrength:
    value = metric.value
    if value.type is MetricType.COUNTER and value.value > 100:
        return CorrelationStrength.HIGH
    if any(entry.level.is_error for entry in related_logs):
        return CorrelationStrength.HIGH
    if value.type is MetricType.GAUGE and value.value > 80:
        return CorrelationStrength.MEDIUM
    return CorrelationStrength.LOW


class IncidentCorrelationEngine:
    """Reconstructs what happened around an incident time.

    Args:
        log_store: Store implementing LogStorePort.
        metric_store: Store implementing MetricStorePort.
        windows: Window lengths used by ``generate_incident_report``.
        error_type_extractor: Maps an error message to its error type.
        rules: Hypothesis rule table, evaluated in order.
    """

    def __init__(
        self,
        log_store: LogStorePort,
        metric_store: MetricStorePort,
        windows: IncidentWindows | None = None,
        error_type_extractor: ErrorTypeExtractor = prefix_error_type,
        rules: Sequence[HypothesisRule] = DEFAULT_RULES,
    ) -> None:
        self._logs = log_store
        self._metrics = metric_store
        self._windows = windows or IncidentWindows()
        self._extract_error_type = error_type_extractor
        self._rules = tuple(rules)

    @property
    def windows(self) -> IncidentWindows:
        return self._windows

    async def _lookback(
        self,
        incident_time: float,
        lookback_minutes: float,
        filters: LogFilters | None = None,
    ) -> list[LogEntry]:
        """Entries in ``(incident_time - lookback, incident_time]``, ascending."""
        start = incident_time - lookback_minutes * MINUTE
        window = TimeRange.create(start, incident_time)
        entries = [e async for e in self._logs.query(window, filters) if e.timestamp > start]
        entries.sort(key=lambda e: e.timestamp)
        return entries

    async def collect_incident_logs(
        self,
        incident_time: float,
        window_minutes: float = 30,
        filters: LogFilters | None = None,
    ) -> list[LogEntry]:
        """Logs within ``window_minutes`` either side of the incident, ascending."""
        window = TimeRange.around(incident_time, window_minutes)
        entries = [e async for e in self._logs.query(window, filters)]
        entries.sort(key=lambda e: e.timestamp)
        return entries

    async def analyze_error_pattern(
        self, incident_time: float, lookback_minutes: float = 60
    ) -> ErrorAnalysis:
        """Summarize Error/Fatal entries leading up to the incident.

        The progression covers the lookback window with fixed-width buckets
        starting at ``incident_time - lookback``. Every error lands in
        exactly one bucket.
        """
        if lookback_minutes < 0:
            raise ValidationError("Lookback minutes cannot be negative")
        errors = [
            e
            for e in await self._lookback(incident_time, lookback_minutes)
            if e.level.is_error
        ]
        start = incident_time - lookback_minutes * MINUTE
        bucket_seconds = self._windows.bucket_minutes * MINUTE
        bucket_count = math.floor(lookback_minutes * MINUTE / bucket_seconds) + 1
        counts = [0] * bucket_count
        for entry in errors:
            index = int((entry.timestamp - start) // bucket_seconds)
            counts[min(index, bucket_count - 1)] += 1

        types = Counter(self._extract_error_type(e.message) for e in errors)
        return ErrorAnalysis(
            error_count=len(errors),
            error_types=dict(types),
            affected_users=frozenset(
                e.context.user_id for e in errors if e.context.user_id
            ),
            critical_errors=tuple(e for e in errors if is_critical_error(e)),
            progression=tuple(
                ErrorBucket(start + i * bucket_seconds, n) for i, n in enumerate(counts)
            ),
        )

    async def trace_user_journey(
        self, user_id: str, incident_time: float, lookback_minutes: float = 120
    ) -> UserJourney:
        """Replay one user's activity before the incident."""
        timeline = await self._lookback(
            incident_time, lookback_minutes, LogFilters(user_id=user_id)
        )
        successes = [
            e
            for e in timeline
            if e.level is LogLevel.INFO and e.category is LogCategory.APPLICATION
        ]
        first_error = next((e for e in timeline if e.level.is_error), None)
        return UserJourney(
            user_id=user_id,
            timeline=tuple(timeline),
            actions_performed=tuple(e.message for e in successes),
            last_successful_action=successes[-1] if successes else None,
            first_error=first_error,
            workflows_attempted=frozenset(
                e.context.workflow_id for e in timeline if e.context.workflow_id
            ),
        )

    async def correlate_with_metrics(
        self, incident_time: float, window_minutes: float = 15
    ) -> CorrelationAnalysis:
        """Relate each metric sample to the logs emitted close to it.

        Samples with no related log are left out of ``correlations``.
        """
        window = TimeRange.around(incident_time, window_minutes)
        logs = await self.collect_incident_logs(incident_time, window_minutes)
        metrics = await self._metrics.find_by_query(window)
        reach = self._windows.related_log_minutes * MINUTE

        correlations = []
        for metric in metrics:
            related = tuple(e for e in logs if abs(e.timestamp - metric.at) <= reach)
            if not related:
                continue
            correlations.append(
                MetricCorrelation(metric, related, classify_correlation(metric, related))
            )
        return CorrelationAnalysis(
            logs=tuple(logs), metrics=tuple(metrics), correlations=tuple(correlations)
        )

    async def generate_incident_report(
        self,
        incident_time: float,
        description: str,
        affected_users: Sequence[str] | None = None,
        affected_workflows: Sequence[str] | None = None,
    ) -> IncidentReport:
        """Run every analysis with the configured windows and derive hypotheses."""
        w = self._windows
        logger.info("Generating incident report for %r at %s", description, incident_time)
        timeline = await self.collect_incident_logs(incident_time, w.timeline_minutes)
        errors = await self.analyze_error_pattern(incident_time, w.error_lookback_minutes)
        journeys = await asyncio.gather(
            *(
                self.trace_user_journey(user, incident_time, w.journey_lookback_minutes)
                for user in affected_users or ()
            )
        )
        correlation = await self.correlate_with_metrics(
            incident_time, w.correlation_minutes
        )

        hypotheses = derive_hypotheses(Evidence(errors, correlation, timeline), self._rules)
        workflows = tuple(affected_workflows or ())
        return IncidentReport(
            incident_time=incident_time,
            description=description,
            summary=_summary(
                incident_time, description, w, affected_users, workflows, errors
            ),
            timeline=tuple(timeline),
            error_analysis=errors,
            user_journeys=tuple(journeys),
            correlation=correlation,
            root_cause_hypotheses=tuple(h.description for h in hypotheses),
            recommended_actions=tuple(recommend_actions(hypotheses)),
            affected_workflows=workflows,
        )


def _summary(
    incident_time: float,
    description: str,
    windows: IncidentWindows,
    affected_users: Sequence[str] | None,
    affected_workflows: Sequence[str],
    errors: ErrorAnalysis,
) -> str:
    when = datetime.fromtimestamp(incident_time, tz=timezone.utc).isoformat()
    users = len(affected_users) if affected_users else "Unknown"
    workflows = ", ".join(affected_workflows) if affected_workflows else "Unknown"
    return "\n".join(
        [
            f"Incident: {description}",
            f"Time: {when}",
            f"Duration: Analyzed {windows.timeline_minutes:g} minutes around incident",
            f"Affected Users: {users}",
            f"Affected Workflows: {workflows}",
            f"Error Count: {errors.error_count}",
            f"Critical Errors: {len(errors.critical_errors)}",
        ]
    )
