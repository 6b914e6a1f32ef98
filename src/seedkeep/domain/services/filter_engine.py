"""Filter predicate engine.

Evaluates a declarative filter state against a record. Every field entry must
hold (AND across fields) and every condition in a field's list must hold
(AND within a field). Evaluation is pure.
"""

import operator
from typing import Any, Callable, Iterable

from seedkeep.domain.entities.filters import (
    FilterCondition,
    FilterState,
    MultiFilter,
    NumericFilter,
    StringFilter,
    TextFilter,
    as_condition_list,
)
from seedkeep.domain.entities.grid import Record
from seedkeep.domain.entities.inventory import ENUM_OPTIONS
from seedkeep.domain.services.values import is_blank, stringify, to_number

_COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "=": operator.eq,
}


def _compare(left: Any, op: str, right: Any, right2: Any = None) -> bool:
    if op == "range":
        return right <= left <= right2
    return _COMPARATORS[op](left, right)


def _matches_multi(value: Any, condition: MultiFilter) -> bool:
    return stringify(value) in condition.values


def _matches_numeric(value: Any, condition: NumericFilter) -> bool:
    number = to_number(value)
    if number is None:
        return False
    return _compare(number, condition.operator, condition.value, condition.value2)


def _matches_text(value: Any, condition: TextFilter) -> bool:
    if not condition.needle:
        return True
    return condition.needle.casefold() in stringify(value).casefold()


def _matches_string(value: Any, condition: StringFilter) -> bool:
    if is_blank(value):
        return False

    number = to_number(value)
    bound = to_number(condition.value)
    bound2 = to_number(condition.value2) if condition.value2 is not None else None
    numeric_bounds = bound is not None and (condition.operator != "range" or bound2 is not None)
    if number is not None and numeric_bounds:
        return _compare(number, condition.operator, bound, bound2)

    text = stringify(value).casefold()
    upper = condition.value2.casefold() if condition.value2 is not None else None
    return _compare(text, condition.operator, condition.value.casefold(), upper)


_MATCHERS: dict[type, Callable[[Any, Any], bool]] = {
    MultiFilter: _matches_multi,
    NumericFilter: _matches_numeric,
    TextFilter: _matches_text,
    StringFilter: _matches_string,
}


def matches_condition(value: Any, condition: FilterCondition) -> bool:
    """Evaluate a single condition against a field value."""
    matcher = _MATCHERS.get(type(condition))
    if matcher is None:
        raise TypeError(f"Unsupported filter condition: {type(condition).__name__}")
    return matcher(value, condition)


def matches(record: Record, filter_state: FilterState) -> bool:
    """Return True iff ``record`` satisfies every condition in ``filter_state``."""
    for field_name, entry in filter_state.items():
        value = record.get(field_name)
        for condition in as_condition_list(entry):
            if not matches_condition(value, condition):
                return False
    return True


def filter_records(records: Iterable[Record], filter_state: FilterState) -> list[Record]:
    """Records matching the filter state, in their original order."""
    if not filter_state:
        return list(records)
    return [record for record in records if matches(record, filter_state)]


def distinct_values(records: Iterable[Record], field_name: str) -> list[str]:
    """Options for a multi-select filter on ``field_name``.

    Enumerated inventory fields offer their fixed option list; other fields
    offer the sorted distinct non-empty values present in the data.
    """
    if field_name in ENUM_OPTIONS:
        return list(ENUM_OPTIONS[field_name])
    seen = {stringify(record.get(field_name)) for record in records}
    seen.discard("")
    return sorted(seen)
