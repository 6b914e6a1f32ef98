"""Unit tests for inventory statistics."""

import math

import pytest

from seedkeep.domain.services.inventory_stats import (
    Comparison,
    GroupTotal,
    LowStockSort,
    breakdown,
    compare,
    growth,
    low_stock,
    positive_weights,
    summarize,
    total_weight,
    weight_histogram,
    weight_stats,
)


def _lot(box_number, weight, **fields):
    return {"box_number": box_number, "weight": weight, **fields}


class TestTotalWeight:
    """Test suite for total_weight."""

    def test_sums_weights_of_any_shape(self):
        records = [_lot(1, 2.5), _lot(2, "1.25"), _lot(3, 4)]
        assert total_weight(records) == 7.75

    def test_missing_and_unparsable_weights_count_as_zero(self):
        records = [_lot(1, None), _lot(2, "heavy"), {"box_number": 3}, _lot(4, 1)]
        assert total_weight(records) == 1

    def test_empty(self):
        assert total_weight([]) == 0


class TestLowStock:
    """Test suite for the low-stock list."""

    @pytest.fixture
    def records(self):
        return [
            _lot(4, 1.5),
            _lot(1, 0.4),
            _lot(2, 0),
            _lot(3, 2.0),
            _lot(5, None),
            _lot(6, 1.9),
        ]

    def test_below_threshold_excludes_empty_lots(self, records):
        low = low_stock(records, threshold=2)
        assert [r["box_number"] for r in low] == [1, 4, 6]

    def test_threshold_is_exclusive(self, records):
        assert all(r["weight"] != 2.0 for r in low_stock(records, threshold=2))

    def test_zero_threshold_lists_only_empty_lots(self, records):
        low = low_stock(records, threshold=0)
        assert sorted(r["box_number"] for r in low) == [2, 5]

    def test_sort_by_box_number(self, records):
        low = low_stock(records, threshold=2, sort_by=LowStockSort.BOX_NUMBER)
        assert [r["box_number"] for r in low] == [1, 4, 6]
        low = low_stock(records, threshold=1, sort_by="box_number")
        assert [r["box_number"] for r in low] == [1]

    def test_negative_threshold_rejected(self, records):
        with pytest.raises(ValueError):
            low_stock(records, threshold=-1)


class TestWeightDistribution:
    """Test suite for weight statistics and the histogram."""

    def test_statistics(self):
        stats = weight_stats([4.0, 1.0, 3.0, 2.0])
        assert stats.count == 4
        assert stats.min == 1.0
        assert stats.max == 4.0
        assert stats.mean == 2.5
        assert stats.median == 3.0
        assert stats.range == 3.0
        assert math.isclose(stats.std_dev, math.sqrt(1.25))

    def test_no_weights(self):
        assert weight_stats([]) is None
        assert weight_histogram([]) == []

    def test_positive_weights_by_type(self):
        records = [_lot(1, 2, type="white"), _lot(2, 0, type="white"), _lot(3, 5, type="yellow")]
        assert positive_weights(records) == [2, 5]
        assert positive_weights(records, "white") == [2]

    def test_histogram_last_bin_includes_maximum(self):
        bins = weight_histogram([1.0, 1.5, 2.0, 3.0], bin_size=1)
        assert [(b.start, b.end, b.count) for b in bins] == [(1.0, 2.0, 2), (2.0, 3.0, 2)]
        assert [b.percentage for b in bins] == [50.0, 50.0]
        assert bins[0].label == "1.0-2.0"

    def test_equal_weights_get_one_bin(self):
        bins = weight_histogram([2.0, 2.0], bin_size=0.5)
        assert len(bins) == 1
        assert bins[0].count == 2

    def test_bin_size_must_be_positive(self):
        with pytest.raises(ValueError):
            weight_histogram([1.0], bin_size=0)


class TestBreakdowns:
    """Test suite for grouped totals."""

    @pytest.fixture
    def records(self):
        return [
            _lot(1, 2, type="white", year="2021", season="wet"),
            _lot(2, 3, type="yellow", year="2021", season="dry"),
            _lot(3, 5, type="white", year="2022", season="wet"),
            _lot(4, 1, type="", year="2020", season=None),
        ]

    def test_breakdown_by_type(self, records):
        totals = breakdown(records, "type")
        assert totals == [
            GroupTotal(key="Unknown", count=1, weight=1, avg_weight=1),
            GroupTotal(key="white", count=2, weight=7, avg_weight=3.5),
            GroupTotal(key="yellow", count=1, weight=3, avg_weight=3),
        ]

    def test_yearly_comparison_is_in_year_order(self, records):
        assert [t.key for t in compare(records, Comparison.YEARLY)] == ["2020", "2021", "2022"]

    def test_seasonal_keys(self, records):
        keys = [t.key for t in compare(records, Comparison.SEASONAL)]
        assert keys == ["2020-unknown", "2021-dry", "2021-wet", "2022-wet"]

    def test_growth_against_previous_period(self, records):
        rows = growth(compare(records, Comparison.YEARLY))
        assert (rows[0].count_growth, rows[0].weight_growth) == (0.0, 0.0)
        assert rows[1].count_growth == 100.0
        assert rows[1].weight_growth == 400.0
        assert rows[2].count_growth == -50.0
        assert rows[2].weight_growth == 0.0


def test_summarize(sample_records):
    stats = summarize(sample_records, threshold=5, comparison="type")

    assert stats.total_rows == 5
    assert stats.total_weight == 47.5
    assert [r["id"] for r in stats.low_stock] == ["r2"]
    assert stats.weight_stats.count == 4
    assert stats.comparison == Comparison.TYPE
    assert [t.key for t in stats.comparison_totals] == ["sorghum", "special maize", "white", "yellow"]
    assert stats.growth == []
    assert set(stats.breakdowns) >= {"type", "year", "season"}
