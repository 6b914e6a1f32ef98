"""Aggregate statistics over inventory records.

These are the numbers behind the inventory dashboard: total stored weight,
lots running low, the spread of lot weights and per-group totals. Every
function takes the already filtered records, so the figures always describe
what the grid is showing. A missing or unparsable weight counts as 0 kg.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Sequence

from seedkeep.domain.entities.grid import Record
from seedkeep.domain.entities.inventory import InventoryField
from seedkeep.domain.services.values import stringify, to_number

DEFAULT_LOW_STOCK_THRESHOLD = 2.0
DEFAULT_BIN_SIZE = 1.0
UNKNOWN_GROUP = "Unknown"

# Fields offered by the per-value breakdown charts
BREAKDOWN_FIELDS: tuple[str, ...] = (
    InventoryField.TYPE.value,
    InventoryField.AREA_PLANTED.value,
    InventoryField.YEAR.value,
    InventoryField.SEASON.value,
    InventoryField.LOCATION.value,
    InventoryField.DESCRIPTION.value,
    InventoryField.PEDIGREE.value,
)


class LowStockSort(str, Enum):
    WEIGHT = "weight"
    BOX_NUMBER = "box_number"


class Comparison(str, Enum):
    """Grouping used by the comparative breakdown."""

    YEARLY = "yearly"
    SEASONAL = "seasonal"
    TYPE = "type"
    LOCATION = "location"


@dataclass(frozen=True)
class WeightStats:
    count: int
    min: float
    max: float
    mean: float
    median: float
    std_dev: float
    range: float


@dataclass(frozen=True)
class WeightBin:
    """One histogram bucket; the last bucket includes its upper bound."""

    start: float
    end: float
    count: int
    percentage: float

    @property
    def label(self) -> str:
        return f"{self.start:.1f}-{self.end:.1f}"


@dataclass(frozen=True)
class GroupTotal:
    key: str
    count: int
    weight: float
    avg_weight: float


@dataclass(frozen=True)
class PeriodGrowth:
    """Change of a period's totals against the period before it, in percent."""

    key: str
    count: int
    weight: float
    count_growth: float
    weight_growth: float


@dataclass
class InventoryStats:
    """Everything the dashboard shows for one set of records."""

    total_rows: int
    total_weight: float
    low_stock_threshold: float
    low_stock: list[Record] = field(default_factory=list)
    weight_stats: WeightStats | None = None
    histogram: list[WeightBin] = field(default_factory=list)
    breakdowns: dict[str, list[GroupTotal]] = field(default_factory=dict)
    comparison: Comparison = Comparison.YEARLY
    comparison_totals: list[GroupTotal] = field(default_factory=list)
    growth: list[PeriodGrowth] = field(default_factory=list)


def record_weight(record: Record) -> float:
    weight = to_number(record.get(InventoryField.WEIGHT.value))
    return weight if weight is not None and math.isfinite(weight) else 0.0


def total_weight(records: Sequence[Record]) -> float:
    """Sum of all weights, rounded to grams."""
    return round(sum(record_weight(r) for r in records), 3)


def low_stock(
    records: Sequence[Record],
    threshold: float = DEFAULT_LOW_STOCK_THRESHOLD,
    sort_by: LowStockSort = LowStockSort.WEIGHT,
) -> list[Record]:
    """Lots below ``threshold`` kg, lightest (or lowest box) first.

    Empty lots are excluded unless the threshold is 0, in which case only
    empty lots (weight <= 0) are listed.
    """
    if threshold < 0:
        raise ValueError("threshold must not be negative")

    def is_low(record: Record) -> bool:
        weight = record_weight(record)
        if threshold == 0:
            return weight <= 0
        return 0 < weight < threshold

    if LowStockSort(sort_by) == LowStockSort.BOX_NUMBER:
        def sort_key(record: Record) -> float:
            return to_number(record.get(InventoryField.BOX_NUMBER.value)) or 0.0
    else:
        sort_key = record_weight
    return sorted((r for r in records if is_low(r)), key=sort_key)


def positive_weights(records: Sequence[Record], lot_type: str | None = None) -> list[float]:
    """Weights above zero, optionally for one seed type only."""
    weights = []
    for record in records:
        if lot_type is not None and record.get(InventoryField.TYPE.value) != lot_type:
            continue
        weight = record_weight(record)
        if weight > 0:
            weights.append(weight)
    return weights


def weight_stats(weights: Sequence[float]) -> WeightStats | None:
    """Descriptive statistics of ``weights``; ``None`` when there are none.

    The median of an even-sized sample is its upper middle value and the
    standard deviation is the population one.
    """
    if not weights:
        return None
    ordered = sorted(weights)
    count = len(ordered)
    mean = sum(ordered) / count
    variance = sum((w - mean) ** 2 for w in ordered) / count
    return WeightStats(
        count=count,
        min=ordered[0],
        max=ordered[-1],
        mean=mean,
        median=ordered[count // 2],
        std_dev=math.sqrt(variance),
        range=ordered[-1] - ordered[0],
    )


def weight_histogram(weights: Sequence[float], bin_size: float = DEFAULT_BIN_SIZE) -> list[WeightBin]:
    """Bucket ``weights`` into ``bin_size`` kg bins starting at the lightest lot.

    A sample whose weights are all equal gets a single bin.
    """
    if bin_size <= 0:
        raise ValueError("bin_size must be positive")
    if not weights:
        return []
    low, high = min(weights), max(weights)
    bin_count = max(1, math.ceil((high - low) / bin_size))
    bins = []
    for index in range(bin_count):
        start = low + index * bin_size
        end = start + bin_size
        last = index == bin_count - 1
        count = sum(1 for w in weights if w >= start and (last or w < end))
        bins.append(WeightBin(
            start=start,
            end=end,
            count=count,
            percentage=round(count / len(weights) * 100, 1),
        ))
    return bins


def _group_key(field_name: str) -> Callable[[Record], str]:
    def key(record: Record) -> str:
        return stringify(record.get(field_name)) or UNKNOWN_GROUP
    return key


def _seasonal_key(record: Record) -> str:
    year = stringify(record.get(InventoryField.YEAR.value)) or UNKNOWN_GROUP
    season = stringify(record.get(InventoryField.SEASON.value)) or "unknown"
    return f"{year}-{season}"


_COMPARISON_KEYS: dict[Comparison, Callable[[Record], str]] = {
    Comparison.YEARLY: _group_key(InventoryField.YEAR.value),
    Comparison.SEASONAL: _seasonal_key,
    Comparison.TYPE: _group_key(InventoryField.TYPE.value),
    Comparison.LOCATION: _group_key(InventoryField.AREA_PLANTED.value),
}


def group_totals(records: Sequence[Record], key: Callable[[Record], str]) -> list[GroupTotal]:
    """Lot count and weight per group, groups in ascending key order."""
    counts: dict[str, int] = {}
    weights: dict[str, float] = {}
    for record in records:
        group = key(record)
        counts[group] = counts.get(group, 0) + 1
        weights[group] = weights.get(group, 0.0) + record_weight(record)
    return [
        GroupTotal(
            key=group,
            count=counts[group],
            weight=round(weights[group], 2),
            avg_weight=round(weights[group] / counts[group], 2),
        )
        for group in sorted(counts)
    ]


def breakdown(records: Sequence[Record], field_name: str) -> list[GroupTotal]:
    """Totals per distinct value of one field; blank values group as ``Unknown``."""
    return group_totals(records, _group_key(field_name))


def compare(records: Sequence[Record], comparison: Comparison = Comparison.YEARLY) -> list[GroupTotal]:
    return group_totals(records, _COMPARISON_KEYS[Comparison(comparison)])


def _percent_change(current: float, previous: float) -> float:
    if previous <= 0:
        return 0.0
    return round((current - previous) / previous * 100, 1)


def growth(totals: Sequence[GroupTotal]) -> list[PeriodGrowth]:
    """Period-over-period change; the first period has no growth."""
    result = []
    for index, current in enumerate(totals):
        previous = totals[index - 1] if index else None
        result.append(PeriodGrowth(
            key=current.key,
            count=current.count,
            weight=current.weight,
            count_growth=_percent_change(current.count, previous.count) if previous else 0.0,
            weight_growth=_percent_change(current.weight, previous.weight) if previous else 0.0,
        ))
    return result


def summarize(
    records: Sequence[Record],
    threshold: float = DEFAULT_LOW_STOCK_THRESHOLD,
    low_stock_sort: LowStockSort = LowStockSort.WEIGHT,
    bin_size: float = DEFAULT_BIN_SIZE,
    lot_type: str | None = None,
    comparison: Comparison = Comparison.YEARLY,
) -> InventoryStats:
    """Compute every dashboard figure for ``records``.

    Args:
        records: The filtered inventory records.
        threshold: Low-stock threshold in kg.
        low_stock_sort: Order of the low-stock list.
        bin_size: Histogram bucket width in kg.
        lot_type: Restrict the weight distribution to one seed type.
        comparison: Grouping of the comparative breakdown.

    Raises:
        ValueError: If ``threshold`` is negative or ``bin_size`` is not positive.
    """
    comparison = Comparison(comparison)
    weights = positive_weights(records, lot_type)
    totals = compare(records, comparison)
    time_based = comparison in (Comparison.YEARLY, Comparison.SEASONAL)
    return InventoryStats(
        total_rows=len(records),
        total_weight=total_weight(records),
        low_stock_threshold=threshold,
        low_stock=low_stock(records, threshold, low_stock_sort),
        weight_stats=weight_stats(weights),
        histogram=weight_histogram(weights, bin_size),
        breakdowns={name: breakdown(records, name) for name in BREAKDOWN_FIELDS},
        comparison=comparison,
        comparison_totals=totals,
        growth=growth(totals) if time_based else [],
    )
