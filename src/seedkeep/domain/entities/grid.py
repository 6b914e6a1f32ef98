"""Grid entities: column definitions, sort and pagination state, view models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from seedkeep.core.config import PAGE_SIZE_OPTIONS

Record = dict[str, Any]


class SortDirection(str, Enum):
    """Sort direction for a single sort key."""

    ASC = "asc"
    DESC = "desc"


@dataclass
class ColumnDef:
    """Definition of one grid column.

    Attributes:
        accessor_key: Record key the column reads.
        header: Literal header text. ``None`` falls back to the accessor key.
        id: Column identifier; defaults to the accessor key.
        cell: Optional renderer turning a cell value into display text.
        editable: Whether the row editor exposes this field.
        sortable: Whether header clicks toggle sorting on this column.
    """

    accessor_key: str | None = None
    header: str | None = None
    id: str | None = None
    cell: Callable[[Any], str] | None = None
    editable: bool = True
    sortable: bool = True

    def __post_init__(self) -> None:
        if self.accessor_key is None and self.id is None:
            raise ValueError("A column needs an accessor_key or an id")
        if self.id is None:
            self.id = self.accessor_key

    @property
    def key(self) -> str:
        """Record key used to read cell values."""
        return self.accessor_key or self.id or "unknown"


@dataclass(frozen=True)
class SortKey:
    field: str
    direction: SortDirection = SortDirection.ASC


SortState = list[SortKey]


@dataclass
class PaginationState:
    """Zero-based page index plus a page size from the offered options."""

    page_index: int = 0
    page_size: int = 10

    def __post_init__(self) -> None:
        if self.page_size not in PAGE_SIZE_OPTIONS:
            raise ValueError(f"Page size must be one of {PAGE_SIZE_OPTIONS}, got {self.page_size}")
        if self.page_index < 0:
            self.page_index = 0


@dataclass
class Page:
    """One page of a sorted, filtered record set."""

    rows: list[Record]
    page_index: int
    page_size: int
    page_count: int
    total_rows: int

    @property
    def can_previous(self) -> bool:
        return self.page_index > 0

    @property
    def can_next(self) -> bool:
        return self.page_index < self.page_count - 1


@dataclass
class HeaderView:
    id: str
    header: str
    sortable: bool
    sort_direction: SortDirection | None = None


@dataclass
class RowView:
    id: str
    cells: dict[str, str]
    editable: bool
    record: Record = field(repr=False, default_factory=dict)


@dataclass
class GridView:
    """Everything a front end needs to draw the grid once."""

    headers: list[HeaderView]
    rows: list[RowView]
    page: Page
    loading: bool = False
    placeholder: str | None = None
    show_actions: bool = False
    filter_count: int = 0
