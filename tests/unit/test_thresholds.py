"""Tests for threshold conditions."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from vigilpy.core.errors import ValidationError
from vigilpy.core.thresholds import (
    Threshold,
    ThresholdOperator,
    ThresholdSeverity,
    threshold_from_dict,
)

pytestmark = [pytest.mark.core, pytest.mark.tier(0)]


class TestThresholdEvaluate:
    """Operator semantics."""

    @pytest.mark.parametrize(
        ("threshold", "value", "expected"),
        [
            (Threshold.greater_than(80), 80.1, True),
            (Threshold.greater_than(80), 80, False),
            (Threshold.less_than(10), 9.9, True),
            (Threshold.less_than(10), 10, False),
            (Threshold.equals(5), 5, True),
            (Threshold.equals(5), 5.5, False),
            (Threshold.not_equals(5), 4, True),
            (Threshold.not_equals(5), 5, False),
            (Threshold.greater_than_or_equal(50), 50, True),
            (Threshold.greater_than_or_equal(50), 49.9, False),
            (Threshold.less_than_or_equal(50), 50, True),
            (Threshold.less_than_or_equal(50), 50.1, False),
            (Threshold.not_between(10, 90), 9, True),
            (Threshold.not_between(10, 90), 91, True),
            (Threshold.not_between(10, 90), 10, False),
            (Threshold.not_between(10, 90), 90, False),
        ],
    )
    def test_operator_table(self, threshold: Threshold, value: float, expected: bool) -> None:
        """Each operator compares exactly as documented."""
        assert threshold.evaluate(value) is expected

    def test_between_bounds_are_inclusive(self) -> None:
        """between(10, 90) accepts both bounds and rejects just outside."""
        threshold = Threshold.between(10, 90)
        assert threshold.evaluate(10) is True
        assert threshold.evaluate(90) is True
        assert threshold.evaluate(9) is False
        assert threshold.evaluate(91) is False

    @given(st.floats(min_value=-1e6, max_value=1e6, allow_nan=False))
    def test_between_and_not_between_are_complements(self, value: float) -> None:
        """Every value is in exactly one of between / not_between."""
        inside = Threshold.between(10, 90).evaluate(value)
        outside = Threshold.not_between(10, 90).evaluate(value)
        assert inside != outside


class TestThresholdConstruction:
    """Construction-time validation."""

    @pytest.mark.parametrize(
        "operator", [ThresholdOperator.BETWEEN, ThresholdOperator.NOT_BETWEEN]
    )
    def test_range_operator_requires_second_value(self, operator: ThresholdOperator) -> None:
        """Range operators without an upper bound are rejected."""
        with pytest.raises(ValidationError):
            Threshold(operator, 10)

    @pytest.mark.parametrize(("low", "high"), [(90, 10), (50, 50)])
    def test_range_operator_requires_increasing_bounds(self, low: float, high: float) -> None:
        """The lower bound must be strictly below the upper bound."""
        with pytest.raises(ValidationError):
            Threshold.between(low, high)

    def test_validation_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            Threshold.not_between(5, 1)

    def test_plain_strings_are_coerced(self) -> None:
        between = Threshold("between", 10, severity="critical", second_value=90)
        above = Threshold("greater_than", 80)

        assert between.operator is ThresholdOperator.BETWEEN
        assert between.severity is ThresholdSeverity.CRITICAL
        assert between.evaluate(50) is True
        assert between.evaluate(95) is False
        assert above.evaluate(90) is True
        assert str(above) == "WARNING: greater than 80"

    def test_unknown_operator_string_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Threshold("above", 80)

    def test_default_severities(self) -> None:
        assert Threshold.greater_than(1).severity is ThresholdSeverity.WARNING
        assert Threshold.equals(1).severity is ThresholdSeverity.INFO
        assert Threshold.between(1, 2).severity is ThresholdSeverity.INFO


class TestThresholdDescribe:
    """Human readable rendering."""

    def test_describe_range(self) -> None:
        assert Threshold.between(10, 90).describe() == "between 10 and 90"
        assert Threshold.not_between(0.5, 2).describe() == "not between 0.5 and 2"

    def test_describe_comparison(self) -> None:
        assert Threshold.greater_than_or_equal(75).describe() == "greater than or equal to 75"

    def test_str_includes_severity(self) -> None:
        threshold = Threshold.greater_than(80, ThresholdSeverity.CRITICAL)
        assert str(threshold) == "CRITICAL: greater than 80"


class TestThresholdFromDict:
    """Building thresholds from configuration."""

    def test_accepts_operator_name(self) -> None:
        threshold = threshold_from_dict({"operator": "GT", "value": 80})
        assert threshold == Threshold.greater_than(80)

    def test_accepts_operator_value_and_camel_case_second_value(self) -> None:
        threshold = threshold_from_dict(
            {"operator": "between", "value": 1, "secondValue": 5, "severity": "critical"}
        )
        assert threshold.operator is ThresholdOperator.BETWEEN
        assert threshold.second_value == 5
        assert threshold.severity is ThresholdSeverity.CRITICAL

    def test_unknown_operator_raises_validation_error(self) -> None:
        with pytest.raises(ValidationError, match="Unknown threshold operator"):
            threshold_from_dict({"operator": "roughly", "value": 1})

    def test_malformed_range_raises_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            threshold_from_dict({"operator": "NOT_BETWEEN", "value": 1})
