"""JSON encoding for incident analysis results."""

import json
from typing import Any

from vigilpy.core.encoding.ndjson import log_to_dict
from vigilpy.core.incidents import (
    CorrelationAnalysis,
    ErrorAnalysis,
    IncidentReport,
    UserJourney,
)
from vigilpy.core.models import LogEntry, Metric


def _optional_log(entry: LogEntry | None) -> dict[str, Any] | None:
    return None if entry is None else log_to_dict(entry)


def metric_to_dict(metric: Metric) -> dict[str, Any]:
    return {
        "metric_id": metric.metric_id,
        "name": metric.name,
        "value": metric.value.value,
        "type": str(metric.value.type),
        "unit": metric.value.unit,
        "display_value": metric.value.display_value,
        "source": metric.source,
        "category": str(metric.category),
        "dimensions": metric.dimensions.to_filters(),
        "tags": list(metric.tags),
        "timestamp": metric.at,
    }


def error_analysis_to_dict(analysis: ErrorAnalysis) -> dict[str, Any]:
    return {
        "error_count": analysis.error_count,
        "error_types": dict(analysis.error_types),
        "affected_users": sorted(analysis.affected_users),
        "critical_errors": [log_to_dict(e) for e in analysis.critical_errors],
        "progression": [
            {"start": b.start, "error_count": b.error_count}
            for b in analysis.progression
        ],
    }


def journey_to_dict(journey: UserJourney) -> dict[str, Any]:
    return {
        "user_id": journey.user_id,
        "timeline": [log_to_dict(e) for e in journey.timeline],
        "actions_performed": list(journey.actions_performed),
        "last_successful_action": _optional_log(journey.last_successful_action),
        "first_error": _optional_log(journey.first_error),
        "workflows_attempted": sorted(journey.workflows_attempted),
    }


def correlation_to_dict(analysis: CorrelationAnalysis) -> dict[str, Any]:
    return {
        "log_count": len(analysis.logs),
        "metric_count": len(analysis.metrics),
        "correlations": [
            {
                "metric": metric_to_dict(c.metric),
                "related_log_count": len(c.related_logs),
                "strength": str(c.strength),
            }
            for c in analysis.correlations
        ],
    }


def report_to_dict(report: IncidentReport) -> dict[str, Any]:
    return {
        "incident_time": report.incident_time,
        "description": report.description,
        "summary": report.summary,
        "timeline": [log_to_dict(e) for e in report.timeline],
        "error_analysis": error_analysis_to_dict(report.error_analysis),
        "user_journeys": [journey_to_dict(j) for j in report.user_journeys],
        "correlation": correlation_to_dict(report.correlation),
        "root_cause_hypotheses": list(report.root_cause_hypotheses),
        "recommended_actions": list(report.recommended_actions),
        "affected_workflows": list(report.affected_workflows),
    }


def encode_report(report: IncidentReport) -> str:
    """Serialize an incident report to a JSON document."""
    return json.dumps(report_to_dict(report))
