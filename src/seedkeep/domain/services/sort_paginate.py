"""Sort/paginate engine.

Orders a filtered record set by an ordered list of sort keys and slices it
into pages. Sorting is stable; pagination clamps instead of failing when the
requested page no longer exists.
"""

import math
from typing import Any, Sequence

from seedkeep.domain.entities.grid import (
    Page,
    PaginationState,
    Record,
    SortDirection,
    SortKey,
    SortState,
)
from seedkeep.domain.services.values import is_blank, stringify, to_number


def _sort_value(value: Any) -> tuple[int, float, str]:
    # Numbers (including numeric strings such as a year) sort before text
    number = to_number(value)
    if number is not None:
        return (0, number, "")
    return (1, 0.0, stringify(value).casefold())


def sort_records(records: Sequence[Record], sort_state: SortState) -> list[Record]:
    """Return records ordered by ``sort_state``; the first key is the primary key.

    Records equal on every active key keep their original relative order.
    Missing values sort last whatever the direction.
    """
    rows = list(records)
    # Successive stable sorts, least significant key first
    for sort_key in reversed(sort_state):
        present = [row for row in rows if not is_blank(row.get(sort_key.field))]
        missing = [row for row in rows if is_blank(row.get(sort_key.field))]
        present.sort(
            key=lambda row: _sort_value(row.get(sort_key.field)),
            reverse=sort_key.direction == SortDirection.DESC,
        )
        rows = present + missing
    return rows


def sort_direction_for(sort_state: SortState, field_name: str) -> SortDirection | None:
    for sort_key in sort_state:
        if sort_key.field == field_name:
            return sort_key.direction
    return None


def next_sort_direction(current: SortDirection | None) -> SortDirection | None:
    """Header click cycle: none -> asc -> desc -> none."""
    if current is None:
        return SortDirection.ASC
    if current == SortDirection.ASC:
        return SortDirection.DESC
    return None


def toggle_sort(
    sort_state: SortState,
    field_name: str,
    sortable: bool = True,
    multi: bool = False,
) -> SortState:
    """Advance ``field_name`` one step through the sort cycle.

    Unsortable columns leave the state untouched. Without ``multi`` the
    toggled column becomes the only sort key.
    """
    if not sortable:
        return list(sort_state)

    direction = next_sort_direction(sort_direction_for(sort_state, field_name))

    if not multi:
        return [SortKey(field_name, direction)] if direction else []

    new_state: SortState = []
    replaced = False
    for sort_key in sort_state:
        if sort_key.field == field_name:
            replaced = True
            if direction:
                new_state.append(SortKey(field_name, direction))
        else:
            new_state.append(sort_key)
    if not replaced and direction:
        new_state.append(SortKey(field_name, direction))
    return new_state


def parse_sort(value: str | None) -> SortState:
    """Parse ``"weight:desc,box_number"`` into a sort state."""
    if not value:
        return []
    state: SortState = []
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        field_name, _, direction = part.partition(":")
        state.append(SortKey(field_name.strip(), SortDirection((direction or "asc").strip().lower())))
    return state


def page_count(total_rows: int, page_size: int) -> int:
    """Number of pages; an empty set still has one (empty) page."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    return max(1, math.ceil(total_rows / page_size))


def clamp_page_index(page_index: int, total_rows: int, page_size: int) -> int:
    """Clamp ``page_index`` into ``[0, page_count - 1]``."""
    return min(max(page_index, 0), page_count(total_rows, page_size) - 1)


def clamp_pagination(state: PaginationState, total_rows: int) -> PaginationState:
    """Pagination state re-clamped after the filtered set or page size changed."""
    return PaginationState(
        page_index=clamp_page_index(state.page_index, total_rows, state.page_size),
        page_size=state.page_size,
    )


def paginate(records: Sequence[Record], state: PaginationState) -> Page:
    """Slice ``records`` to the page described by ``state`` (clamped)."""
    total = len(records)
    count = page_count(total, state.page_size)
    index = clamp_page_index(state.page_index, total, state.page_size)
    start = index * state.page_size
    return Page(
        rows=list(records[start:start + state.page_size]),
        page_index=index,
        page_size=state.page_size,
        page_count=count,
        total_rows=total,
    )
