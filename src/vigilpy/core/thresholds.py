"""Threshold conditions evaluated against metric values."""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from vigilpy.core.errors import ValidationError


class ThresholdOperator(StrEnum):
    GT = "greater_than"
    LT = "less_than"
    EQ = "equals"
    NEQ = "not_equals"
    GTE = "greater_than_or_equal"
    LTE = "less_than_or_equal"
    BETWEEN = "between"
    NOT_BETWEEN = "not_between"


class ThresholdSeverity(StrEnum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


_RANGE_OPERATORS = frozenset({ThresholdOperator.BETWEEN, ThresholdOperator.NOT_BETWEEN})


@dataclass(frozen=True)
class Threshold:
    """A condition such as ``> 80`` or ``between 10 and 90``.

    Range operators (BETWEEN, NOT_BETWEEN) require ``second_value`` and
    ``value < second_value``; both bounds are inclusive for BETWEEN.

    Attributes:
        operator: Comparison operator.
        value: Threshold value, or the lower bound for range operators.
        severity: Severity reported when the condition holds.
        second_value: Upper bound for range operators.
    """

    operator: ThresholdOperator
    value: float
    severity: ThresholdSeverity = ThresholdSeverity.WARNING
    second_value: float | None = None

    def __post_init__(self) -> None:
        # Accept plain strings ("between", "critical") from configuration.
        try:
            object.__setattr__(self, "operator", ThresholdOperator(self.operator))
            object.__setattr__(self, "severity", ThresholdSeverity(self.severity))
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        if self.operator in _RANGE_OPERATORS:
            if self.second_value is None:
                raise ValidationError("Between operators require a second value")
            if self.value >= self.second_value:
                raise ValidationError(
                    "First value must be less than second value for range operators"
                )

    @classmethod
    def greater_than(
        cls, value: float, severity: ThresholdSeverity = ThresholdSeverity.WARNING
    ) -> "Threshold":
        return cls(ThresholdOperator.GT, value, severity)

    @classmethod
    def less_than(
        cls, value: float, severity: ThresholdSeverity = ThresholdSeverity.WARNING
    ) -> "Threshold":
        return cls(ThresholdOperator.LT, value, severity)

    @classmethod
    def equals(
        cls, value: float, severity: ThresholdSeverity = ThresholdSeverity.INFO
    ) -> "Threshold":
        return cls(ThresholdOperator.EQ, value, severity)

    @classmethod
    def not_equals(
        cls, value: float, severity: ThresholdSeverity = ThresholdSeverity.WARNING
    ) -> "Threshold":
        return cls(ThresholdOperator.NEQ, value, severity)

    @classmethod
    def greater_than_or_equal(
        cls, value: float, severity: ThresholdSeverity = ThresholdSeverity.WARNING
    ) -> "Threshold":
        return cls(ThresholdOperator.GTE, value, severity)

    @classmethod
    def less_than_or_equal(
        cls, value: float, severity: ThresholdSeverity = ThresholdSeverity.WARNING
    ) -> "Threshold":
        return cls(ThresholdOperator.LTE, value, severity)

    @classmethod
    def between(
        cls, low: float, high: float, severity: ThresholdSeverity = ThresholdSeverity.INFO
    ) -> "Threshold":
        return cls(ThresholdOperator.BETWEEN, low, severity, high)

    @classmethod
    def not_between(
        cls, low: float, high: float, severity: ThresholdSeverity = ThresholdSeverity.WARNING
    ) -> "Threshold":
        return cls(ThresholdOperator.NOT_BETWEEN, low, severity, high)

    def evaluate(self, value: float) -> bool:
        """Return True if ``value`` satisfies the condition."""
        op = self.operator
        if op == ThresholdOperator.GT:
            return value > self.value
        if op == ThresholdOperator.LT:
            return value < self.value
        if op == ThresholdOperator.EQ:
            return value == self.value
        if op == ThresholdOperator.NEQ:
            return value != self.value
        if op == ThresholdOperator.GTE:
            return value >= self.value
        if op == ThresholdOperator.LTE:
            return value <= self.value
        # Range operators always carry second_value after __post_init__.
        if op == ThresholdOperator.BETWEEN:
            return self.value <= value <= self.second_value
        return value < self.value or value > self.second_value

    def describe(self) -> str:
        """Human readable condition, e.g. ``between 10 and 90``."""
        if self.operator in _RANGE_OPERATORS:
            prefix = "between" if self.operator == ThresholdOperator.BETWEEN else "not between"
            return f"{prefix} {_fmt(self.value)} and {_fmt(self.second_value)}"
        return f"{_PHRASES[self.operator]} {_fmt(self.value)}"

    def __str__(self) -> str:
        return f"{self.severity.upper()}: {self.describe()}"


_PHRASES = {
    ThresholdOperator.GT: "greater than",
    ThresholdOperator.LT: "less than",
    ThresholdOperator.EQ: "equals",
    ThresholdOperator.NEQ: "not equals",
    ThresholdOperator.GTE: "greater than or equal to",
    ThresholdOperator.LTE: "less than or equal to",
}


def _fmt(number: float | None) -> str:
    return f"{number:g}"


def threshold_from_dict(data: Mapping[str, Any]) -> Threshold:
    """Build a threshold from ``{operator, value, second_value?, severity?}``.

    ``operator`` accepts either the member name (``"GT"``) or its value
    (``"greater_than"``); ``secondValue`` is accepted as an alias.
    """
    raw_op = str(data["operator"])
    try:
        operator = ThresholdOperator[raw_op.upper()]
    except KeyError:
        try:
            operator = ThresholdOperator(raw_op.lower())
        except ValueError:
            raise ValidationError(f"Unknown threshold operator: {raw_op}") from None
    second = data.get("second_value", data.get("secondValue"))
    return Threshold(
        operator=operator,
        value=float(data["value"]),
        severity=ThresholdSeverity(data.get("severity", ThresholdSeverity.WARNING)),
        second_value=None if second is None else float(second),
    )
