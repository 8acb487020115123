"""Error-type extraction and root-cause hypothesis rules.

Hypotheses come from a small rule table. Each rule pairs a predicate over
the gathered evidence with a tag, a description and the actions it
recommends, so callers can swap or extend the table in tests.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum

from vigilpy.core.incidents.models import (
    CorrelationAnalysis,
    CorrelationStrength,
    ErrorAnalysis,
)
from vigilpy.core.models import LogCategory, LogEntry

ErrorTypeExtractor = Callable[[str], str]

UNKNOWN_ERROR_TYPE = "Unknown"


def prefix_error_type(message: str) -> str:
    """Error type is the stripped text before the first ``:``, or the whole message."""
    return message.split(":", 1)[0].strip() or UNKNOWN_ERROR_TYPE


class HypothesisTag(StrEnum):
    DATABASE = "database"
    OVERLOAD = "overload"
    RESOURCE_EXHAUSTION = "resource_exhaustion"
    AUTHENTICATION = "authentication"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Evidence:
    """Inputs every hypothesis rule is evaluated against."""

    error_analysis: ErrorAnalysis
    correlation: CorrelationAnalysis
    timeline: Sequence[LogEntry]


@dataclass(frozen=True)
class RootCauseHypothesis:
    tag: HypothesisTag
    description: str
    actions: tuple[str, ...]


@dataclass(frozen=True)
class HypothesisRule:
    tag: HypothesisTag
    description: str
    predicate: Callable[[Evidence], bool]
    actions: tuple[str, ...]

    def apply(self, evidence: Evidence) -> RootCauseHypothesis | None:
        if not self.predicate(evidence):
            return None
        return RootCauseHypothesis(self.tag, self.description, self.actions)


def _database_errors(evidence: Evidence) -> bool:
    return any(
        "database" in kind.lower() or "connection" in kind.lower()
        for kind in evidence.error_analysis.error_types
    )


def _error_storm(evidence: Evidence) -> bool:
    return evidence.error_analysis.error_count > 50


def _resource_pressure(evidence: Evidence) -> bool:
    return any(
        c.strength is CorrelationStrength.HIGH
        and ("cpu" in c.metric.name or "memory" in c.metric.name)
        for c in evidence.correlation.correlations
    )


def _auth_trouble(evidence: Evidence) -> bool:
    return any(
        entry.category is LogCategory.SECURITY and "auth" in entry.message.lower()
        for entry in evidence.timeline
    )


DEFAULT_RULES: tuple[HypothesisRule, ...] = (
    HypothesisRule(
        HypothesisTag.DATABASE,
        "Database connectivity or performance issue",
        _database_errors,
        (
            "Check database connection pool and query performance",
            "Review recent database schema changes",
        ),
    ),
    HypothesisRule(
        HypothesisTag.OVERLOAD,
        "System overload or cascading failure",
        _error_storm,
        (
            "Implement rate limiting and circuit breakers",
            "Scale horizontally or increase resource allocation",
        ),
    ),
    HypothesisRule(
        HypothesisTag.RESOURCE_EXHAUSTION,
        "Resource exhaustion (CPU/Memory)",
        _resource_pressure,
        (
            "Investigate memory leaks and optimize resource usage",
            "Add resource monitoring alerts",
        ),
    ),
    HypothesisRule(
        HypothesisTag.AUTHENTICATION,
        "Authentication service degradation",
        _auth_trouble,
        (
            "Check authentication service health and dependencies",
            "Review authentication token expiration settings",
        ),
    ),
)

UNKNOWN_HYPOTHESIS = RootCauseHypothesis(
    HypothesisTag.UNKNOWN, "Unknown - requires further investigation", ()
)

GENERAL_ACTIONS = (
    "Implement additional monitoring for early detection",
    "Create runbook for similar incidents",
)


def derive_hypotheses(
    evidence: Evidence, rules: Sequence[HypothesisRule] = DEFAULT_RULES
) -> list[RootCauseHypothesis]:
    """Apply every rule in order; fall back to the unknown hypothesis."""
    found = [h for rule in rules if (h := rule.apply(evidence)) is not None]
    return found or [UNKNOWN_HYPOTHESIS]


def recommend_actions(hypotheses: Sequence[RootCauseHypothesis]) -> list[str]:
    """Rule actions in order, then the general actions, without duplicates."""
    actions = [a for h in hypotheses for a in h.actions]
    actions.extend(GENERAL_ACTIONS)
    return list(dict.fromkeys(actions))
