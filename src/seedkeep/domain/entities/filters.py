"""Filter conditions and filter state.

A filter state maps a field name to one condition, or to an ordered list of
numeric/string conditions that must all hold. A field missing from the state
imposes no constraint.
"""

from dataclasses import dataclass
from typing import Literal, Union

NumericOperator = Literal["<", "<=", ">", ">=", "=", "range"]
StringOperator = Literal["<", "<=", ">", ">=", "=", "range"]

NUMERIC_OPERATORS: frozenset[str] = frozenset({"<", "<=", ">", ">=", "=", "range"})
STRING_OPERATORS: frozenset[str] = frozenset({"<", "<=", ">", ">=", "=", "range"})


@dataclass(frozen=True)
class MultiFilter:
    """Pass when the stringified value is one of ``values``."""

    values: frozenset[str]
    kind: Literal["multi"] = "multi"

    def __post_init__(self) -> None:
        # services import this module at load time
        from seedkeep.domain.services.values import stringify

        object.__setattr__(self, "values", frozenset(stringify(v) for v in self.values))


@dataclass(frozen=True)
class NumericFilter:
    """Compare the value coerced to a number against ``value`` (and ``value2`` for ranges)."""

    operator: NumericOperator
    value: float
    value2: float | None = None
    kind: Literal["numeric"] = "numeric"

    def __post_init__(self) -> None:
        if self.operator not in NUMERIC_OPERATORS:
            raise ValueError(f"Unknown numeric operator: {self.operator!r}")
        if self.operator == "range" and self.value2 is None:
            raise ValueError("A range filter needs both value and value2")


@dataclass(frozen=True)
class TextFilter:
    """Case-insensitive substring match; an empty needle matches everything."""

    needle: str
    kind: Literal["text"] = "text"


@dataclass(frozen=True)
class StringFilter:
    """Ordering comparison for text fields that hold numbers, such as a year."""

    operator: StringOperator
    value: str
    value2: str | None = None
    kind: Literal["string"] = "string"

    def __post_init__(self) -> None:
        if self.operator not in STRING_OPERATORS:
            raise ValueError(f"Unknown string operator: {self.operator!r}")
        if self.operator == "range" and self.value2 is None:
            raise ValueError("A range filter needs both value and value2")


FilterCondition = Union[MultiFilter, NumericFilter, TextFilter, StringFilter]
FilterEntry = Union[FilterCondition, list[FilterCondition]]
FilterState = dict[str, FilterEntry]


def as_condition_list(entry: FilterEntry) -> list[FilterCondition]:
    """Normalize a filter state entry to a list of conditions."""
    if isinstance(entry, list):
        return entry
    return [entry]


def update_filter_state(
    prev: FilterState,
    field_name: str,
    value: FilterEntry | None,
) -> FilterState:
    """Return a new filter state with ``field_name`` set, replaced or removed.

    ``None``, an empty list and an empty multi selection all remove the key.
    Lists may only hold numeric or string conditions.
    """
    new_state = dict(prev)
    if value is None or (isinstance(value, MultiFilter) and not value.values):
        new_state.pop(field_name, None)
        return new_state
    if isinstance(value, list):
        if not value:
            new_state.pop(field_name, None)
            return new_state
        for condition in value:
            if not isinstance(condition, (NumericFilter, StringFilter)):
                raise ValueError(
                    f"Only numeric and string conditions can be combined on '{field_name}'"
                )
        new_state[field_name] = list(value)
    else:
        new_state[field_name] = value
    return new_state
