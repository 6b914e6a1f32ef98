"""Unit tests for the filter predicate engine."""

import itertools

import pytest

from seedkeep.domain.entities.filters import (
    MultiFilter,
    NumericFilter,
    StringFilter,
    TextFilter,
)
from seedkeep.domain.services.filter_engine import (
    distinct_values,
    filter_records,
    matches,
)


def test_weight_greater_than_ten_keeps_only_numeric_match():
    records = [{"weight": 5}, {"weight": 15}, {"weight": "abc"}]
    result = filter_records(records, {"weight": NumericFilter(">", 10)})
    assert result == [{"weight": 15}]


@pytest.mark.parametrize("op", ["<", "<=", ">", ">=", "="])
@pytest.mark.parametrize("value", ["abc", None, "", "   ", float("nan")])
def test_numeric_filter_excludes_non_numeric_values(op, value):
    assert not matches({"weight": value}, {"weight": NumericFilter(op, 0)})
    assert not matches({"weight": value}, {"weight": NumericFilter("range", -1e9, 1e9)})


def test_numeric_filter_coerces_numeric_strings():
    assert matches({"weight": "11"}, {"weight": NumericFilter(">", 10)})
    assert matches({"weight": True}, {"weight": NumericFilter("=", 1)})


def test_range_is_inclusive():
    condition = {"weight": NumericFilter("range", 5, 10)}
    assert matches({"weight": 5}, condition)
    assert matches({"weight": 10}, condition)
    assert not matches({"weight": 10.01}, condition)


def test_multi_filter_uses_stringified_values():
    state = {"box_number": MultiFilter({"1", "3"})}
    assert matches({"box_number": 1}, state)
    assert matches({"box_number": 3.0}, state)
    assert not matches({"box_number": 2}, state)


def test_multi_filter_built_from_non_string_values():
    assert matches({"weight": 5.0}, {"weight": MultiFilter(frozenset({5.0}))})
    assert matches({"viable": True}, {"viable": MultiFilter(frozenset({True}))})
    assert not matches({"viable": False}, {"viable": MultiFilter(frozenset({True}))})


def test_text_filter_is_case_insensitive_substring():
    assert matches({"location": "Cold Room B"}, {"location": TextFilter("cold room")})
    assert not matches({"location": None}, {"location": TextFilter("cold")})
    assert matches({"location": None}, {"location": TextFilter("")})


def test_string_filter_compares_numeric_years_numerically():
    state = {"year": StringFilter(">=", "2020")}
    assert matches({"year": "2021"}, state)
    assert not matches({"year": "999"}, state)
    assert not matches({"year": None}, state)


def test_string_filter_falls_back_to_lexical_order():
    assert matches({"year": "2021-2022"}, {"year": StringFilter(">", "2021")})
    assert matches({"season": "Dry"}, {"season": StringFilter("=", "dry")})


def test_conditions_within_a_field_are_and_combined():
    state = {"weight": [NumericFilter(">", 1), NumericFilter("<", 10)]}
    assert matches({"weight": 5}, state)
    assert not matches({"weight": 12}, state)


def test_filter_without_conditions_keeps_everything(sample_records):
    assert filter_records(sample_records, {}) == sample_records


def test_removing_a_field_never_shrinks_the_result(sample_records):
    full_state = {
        "type": MultiFilter({"white", "yellow"}),
        "weight": NumericFilter(">", 3),
        "year": StringFilter("<=", "2021"),
        "location": TextFilter("cold"),
    }
    full = filter_records(sample_records, full_state)
    for size in range(len(full_state)):
        for kept in itertools.combinations(full_state, size):
            weaker = filter_records(sample_records, {k: full_state[k] for k in kept})
            ids = {r["id"] for r in weaker}
            assert {r["id"] for r in full} <= ids


def test_distinct_values(sample_records):
    assert distinct_values(sample_records, "type") == ["white", "yellow", "sorghum", "special maize"]
    assert distinct_values(sample_records, "box_number") == ["1", "2", "3", "5"]
