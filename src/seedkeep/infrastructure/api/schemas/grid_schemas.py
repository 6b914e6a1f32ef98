"""Pydantic schemas for grid queries and grid views.

Filter conditions arrive as JSON tagged by ``kind`` and are converted to the
domain's frozen filter dataclasses.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from seedkeep.domain.entities.filters import (
    FilterCondition,
    FilterState,
    MultiFilter,
    NumericFilter,
    StringFilter,
    TextFilter,
)
from seedkeep.domain.entities.grid import SortDirection, SortKey, SortState
from seedkeep.domain.services.export_encoder import ExportFormat

ComparisonOperator = Literal["<", "<=", ">", ">=", "=", "range"]


class _RangeChecked(BaseModel):
    @model_validator(mode="after")
    def check_range(self):
        if getattr(self, "operator", None) == "range" and getattr(self, "value2", None) is None:
            raise ValueError("A range filter needs both value and value2")
        return self


class MultiFilterSchema(BaseModel):
    kind: Literal["multi"]
    values: list[str] = Field(..., description="Allowed values")

    def to_domain(self) -> MultiFilter:
        return MultiFilter(frozenset(self.values))


class NumericFilterSchema(_RangeChecked):
    kind: Literal["numeric"]
    operator: ComparisonOperator
    value: float
    value2: Optional[float] = Field(None, description="Upper bound for range")

    def to_domain(self) -> NumericFilter:
        return NumericFilter(self.operator, self.value, self.value2)


class TextFilterSchema(BaseModel):
    kind: Literal["text"]
    needle: str = Field(..., description="Case-insensitive substring")

    def to_domain(self) -> TextFilter:
        return TextFilter(self.needle)


class StringFilterSchema(_RangeChecked):
    kind: Literal["string"]
    operator: ComparisonOperator
    value: str
    value2: Optional[str] = Field(None, description="Upper bound for range")

    def to_domain(self) -> StringFilter:
        return StringFilter(self.operator, self.value, self.value2)


FilterConditionSchema = Annotated[
    Union[MultiFilterSchema, NumericFilterSchema, TextFilterSchema, StringFilterSchema],
    Field(discriminator="kind"),
]
FilterEntrySchema = Union[FilterConditionSchema, list[FilterConditionSchema]]

filters_adapter = TypeAdapter(dict[str, FilterEntrySchema])


def filters_to_domain(filters: dict[str, Any]) -> FilterState:
    """Convert validated filter schemas into a domain filter state."""
    state: FilterState = {}
    for field_name, entry in filters.items():
        if isinstance(entry, list):
            conditions: list[FilterCondition] = [c.to_domain() for c in entry]
            state[field_name] = conditions
        else:
            state[field_name] = entry.to_domain()
    return state


class SortKeySchema(BaseModel):
    field: str
    direction: SortDirection = SortDirection.ASC


def sort_to_domain(sort: list[SortKeySchema]) -> SortState:
    return [SortKey(s.field, s.direction) for s in sort]


class ExportRequest(BaseModel):
    """Body of an export request: the grid's filters and sort plus a format."""

    filters: dict[str, FilterEntrySchema] = Field(default_factory=dict)
    sort: list[SortKeySchema] = Field(default_factory=list)
    format: ExportFormat = Field(ExportFormat.CSV, description="Export format")


class HeaderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    header: str
    sortable: bool
    sort_direction: Optional[SortDirection] = None


class RowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    cells: dict[str, str]
    editable: bool
    record: dict[str, Any]


class PageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    page_index: int = Field(..., description="Zero-based page index")
    page_size: int
    page_count: int
    total_rows: int = Field(..., description="Rows matching the filters")
    can_previous: bool
    can_next: bool


class GridViewResponse(BaseModel):
    """One rendered grid page."""

    model_config = ConfigDict(from_attributes=True)

    headers: list[HeaderResponse]
    rows: list[RowResponse]
    page: PageResponse
    loading: bool
    placeholder: Optional[str] = Field(None, description="Text shown instead of rows")
    show_actions: bool
    filter_count: int
