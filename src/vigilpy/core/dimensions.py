"""Dimension value objects used to slice metrics and scope alerts."""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import StrEnum

from vigilpy.core.errors import ValidationError


class DimensionType(StrEnum):
    USER = "user"
    WORKFLOW = "workflow"
    APP = "app"
    STATUS = "status"
    TIMEFRAME = "timeframe"
    REGION = "region"
    PLATFORM = "platform"
    DEVICE = "device"
    SOURCE = "source"
    CATEGORY = "category"


@dataclass(frozen=True)
class Dimension:
    """A single typed dimension such as ``user:u-42``.

    Attributes:
        type: Kind of dimension.
        value: Non-empty dimension value.
        label: Human readable label; defaults to the value.
    """

    type: DimensionType
    value: str
    label: str = ""

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValidationError("Dimension value cannot be empty")
        if not self.label:
            object.__setattr__(self, "label", self.value)

    @classmethod
    def user(cls, user_id: str, label: str = "") -> "Dimension":
        return cls(DimensionType.USER, user_id, label or f"User {user_id}")

    @classmethod
    def workflow(cls, workflow_id: str, label: str = "") -> "Dimension":
        return cls(DimensionType.WORKFLOW, workflow_id, label or f"Workflow {workflow_id}")

    @classmethod
    def of(cls, type: DimensionType | str, value: str, label: str = "") -> "Dimension":
        return cls(DimensionType(type), value, label)

    def __str__(self) -> str:
        return f"{self.type}:{self.value}"

    def to_filter_string(self) -> str:
        return f"{self.type}={self.value}"


class DimensionSet:
    """Immutable collection holding at most one dimension per type.

    Adding a dimension whose type is already present replaces it in the
    returned copy; the original set is never mutated.
    """

    __slots__ = ("_dimensions",)

    def __init__(self, dimensions: Iterable[Dimension] = ()) -> None:
        items: dict[DimensionType, Dimension] = {}
        for dimension in dimensions:
            items[dimension.type] = dimension
        self._dimensions = items

    def with_dimension(self, dimension: Dimension) -> "DimensionSet":
        return DimensionSet([*self._dimensions.values(), dimension])

    def without(self, type: DimensionType) -> "DimensionSet":
        return DimensionSet(d for t, d in self._dimensions.items() if t != type)

    def merge(self, other: "DimensionSet") -> "DimensionSet":
        return DimensionSet([*self, *other])

    def get(self, type: DimensionType) -> Dimension | None:
        return self._dimensions.get(type)

    def __contains__(self, type: object) -> bool:
        return type in self._dimensions

    def __iter__(self) -> Iterator[Dimension]:
        return iter(self._dimensions.values())

    def __len__(self) -> int:
        return len(self._dimensions)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DimensionSet):
            return NotImplemented
        return self._dimensions == other._dimensions

    def __hash__(self) -> int:
        return hash(frozenset(self._dimensions.items()))

    def __repr__(self) -> str:
        return f"DimensionSet({list(self._dimensions.values())!r})"

    def __str__(self) -> str:
        return ",".join(str(d) for d in self)

    def to_filters(self) -> dict[str, str]:
        """Return the set as a ``{type: value}`` mapping."""
        return {str(t): d.value for t, d in self._dimensions.items()}

    def matches(self, filters: Mapping[str, str] | None) -> bool:
        """Return True if every filter key is present with the same value."""
        if not filters:
            return True
        own = self.to_filters()
        return all(own.get(key) == value for key, value in filters.items())
