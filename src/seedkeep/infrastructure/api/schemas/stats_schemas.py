"""Pydantic schemas for inventory statistics."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from seedkeep.domain.services.inventory_stats import Comparison


class WeightStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    count: int = Field(..., description="Lots with a positive weight")
    min: float
    max: float
    mean: float
    median: float
    std_dev: float
    range: float


class WeightBinResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    label: str = Field(..., description="Bucket range in kg, e.g. '1.0-2.0'")
    start: float
    end: float
    count: int
    percentage: float


class GroupTotalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    count: int
    weight: float = Field(..., description="Total weight in kg")
    avg_weight: float


class PeriodGrowthResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    count: int
    weight: float
    count_growth: float = Field(..., description="Percent change in lot count")
    weight_growth: float = Field(..., description="Percent change in weight")


class InventoryStatsResponse(BaseModel):
    """Dashboard figures for the filtered inventory."""

    model_config = ConfigDict(from_attributes=True)

    total_rows: int
    total_weight: float = Field(..., description="Total weight in kg")
    low_stock_threshold: float
    low_stock: list[dict[str, Any]]
    weight_stats: Optional[WeightStatsResponse] = None
    histogram: list[WeightBinResponse]
    breakdowns: dict[str, list[GroupTotalResponse]]
    comparison: Comparison
    comparison_totals: list[GroupTotalResponse]
    growth: list[PeriodGrowthResponse] = Field(..., description="Only for yearly and seasonal comparisons")
