"""Incident correlation: windowed log, journey and metric analysis."""

from vigilpy.core.incidents.engine import (
    IncidentCorrelationEngine,
    classify_correlation,
    is_critical_error,
)
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
    Evidence,
    HypothesisRule,
    HypothesisTag,
    RootCauseHypothesis,
    derive_hypotheses,
    prefix_error_type,
    recommend_actions,
)

__all__ = [
    "DEFAULT_RULES",
    "CorrelationAnalysis",
    "CorrelationStrength",
    "ErrorAnalysis",
    "ErrorBucket",
    "Evidence",
    "HypothesisRule",
    "HypothesisTag",
    "IncidentCorrelationEngine",
    "IncidentReport",
    "IncidentWindows",
    "MetricCorrelation",
    "RootCauseHypothesis",
    "UserJourney",
    "classify_correlation",
    "derive_hypotheses",
    "is_critical_error",
    "prefix_error_type",
    "recommend_actions",
]
