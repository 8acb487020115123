"""Tests for error-type extraction and hypothesis rules."""

import pytest

from vigilpy.core.incidents import (
    CorrelationAnalysis,
    ErrorAnalysis,
    Evidence,
    HypothesisRule,
    HypothesisTag,
    derive_hypotheses,
    prefix_error_type,
    recommend_actions,
)
from vigilpy.core.incidents.rules import GENERAL_ACTIONS, UNKNOWN_HYPOTHESIS

pytestmark = [pytest.mark.core, pytest.mark.tier(0)]

NO_CORRELATION = CorrelationAnalysis(logs=(), metrics=(), correlations=())


def evidence(error_types: dict[str, int] | None = None, error_count: int = 0) -> Evidence:
    errors = ErrorAnalysis(
        error_count=error_count,
        error_types=error_types or {},
        affected_users=frozenset(),
        critical_errors=(),
        progression=(),
    )
    return Evidence(errors, NO_CORRELATION, timeline=())


class TestPrefixErrorType:
    @pytest.mark.parametrize(
        ("message", "expected"),
        [
            ("TimeoutError: upstream took 30s", "TimeoutError"),
            ("a: b: c", "a"),
            ("no colon at all", "no colon at all"),
            ("  DatabaseError : pool exhausted", "DatabaseError"),
            ("   : blank prefix", "Unknown"),
            (": leading colon", "Unknown"),
            ("", "Unknown"),
        ],
    )
    def test_prefix(self, message: str, expected: str) -> None:
        assert prefix_error_type(message) == expected


class TestDeriveHypotheses:
    """Rule table evaluation."""

    def test_keyword_match_is_case_insensitive(self) -> None:
        [hypothesis] = derive_hypotheses(evidence({"DATABASE_DOWN": 1}, 1))
        assert hypothesis.tag is HypothesisTag.DATABASE

    def test_fifty_errors_is_not_an_overload(self) -> None:
        assert derive_hypotheses(evidence(error_count=50)) == [UNKNOWN_HYPOTHESIS]

    def test_more_than_fifty_errors_is_an_overload(self) -> None:
        [hypothesis] = derive_hypotheses(evidence(error_count=51))
        assert hypothesis.tag is HypothesisTag.OVERLOAD

    def test_custom_rules(self) -> None:
        rule = HypothesisRule(
            HypothesisTag.OVERLOAD,
            "Anything at all",
            lambda _: True,
            ("Page someone",),
        )
        hypotheses = derive_hypotheses(evidence(), [rule])
        assert [h.description for h in hypotheses] == ["Anything at all"]
        assert recommend_actions(hypotheses) == ["Page someone", *GENERAL_ACTIONS]


class TestRecommendActions:
    def test_duplicates_keep_first_position(self) -> None:
        shared = HypothesisRule(
            HypothesisTag.DATABASE, "a", lambda _: True, ("Create runbook for similar incidents",)
        )
        hypotheses = derive_hypotheses(evidence(), [shared])
        assert recommend_actions(hypotheses) == [
            "Create runbook for similar incidents",
            "Implement additional monitoring for early detection",
        ]

    def test_unknown_hypothesis_gets_general_actions_only(self) -> None:
        assert recommend_actions([UNKNOWN_HYPOTHESIS]) == list(GENERAL_ACTIONS)
