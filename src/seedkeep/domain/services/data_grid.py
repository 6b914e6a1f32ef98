"""Data grid orchestrator.

Composes the filter engine, sort/paginate engine, export encoder and row edit
controller into one stateful grid. The grid owns the filter, sort and
pagination state; the records themselves belong to the caller, who replaces
them through ``set_records`` (typically from the row update callback).
"""

from datetime import date
from typing import Sequence

from seedkeep.core.config import PAGE_SIZE_OPTIONS
from seedkeep.core.logging import get_logger
from seedkeep.domain.entities.filters import FilterEntry, FilterState, update_filter_state
from seedkeep.domain.entities.grid import (
    ColumnDef,
    GridView,
    HeaderView,
    Page,
    PaginationState,
    Record,
    RowView,
    SortKey,
    SortState,
)
from seedkeep.domain.entities.inventory import DELETED_MARKER, ID_FIELD, SYSTEM_FIELDS
from seedkeep.domain.services import filter_engine, sort_paginate
from seedkeep.domain.services.export_encoder import ExportFile, ExportFormat, export_rows
from seedkeep.domain.services.notifier import Notifier
from seedkeep.domain.services.row_edit_controller import (
    InventoryStoreProtocol,
    RowEditController,
    RowUpdateCallback,
)
from seedkeep.domain.services.values import stringify

logger = get_logger(__name__)

LOADING_PLACEHOLDER = "Loading..."
EMPTY_PLACEHOLDER = "No results."


def dynamic_columns(records: Sequence[Record]) -> list[ColumnDef]:
    """One column per key of the first record; later-only keys are ignored."""
    if not records:
        return []
    return [
        ColumnDef(accessor_key=key, header=key, editable=key not in SYSTEM_FIELDS)
        for key in records[0].keys()
    ]


def reconcile_records(records: Sequence[Record], updated: Record) -> list[Record]:
    """Apply a row update callback payload to a record list.

    The matching record is replaced, or dropped when the payload carries
    ``deleted=True``. Payloads for ids no longer in the list change nothing.
    """
    record_id = updated.get(ID_FIELD)
    if updated.get(DELETED_MARKER):
        return [r for r in records if r.get(ID_FIELD) != record_id]
    clean = {k: v for k, v in updated.items() if k != DELETED_MARKER}
    return [clean if r.get(ID_FIELD) == record_id else r for r in records]


class DataGrid:
    """Filterable, sortable, paginated view over a list of records.

    Args:
        records: Records to display. Each must carry a unique ``id``.
        columns: Column definitions; ``None`` derives them from the first record.
        filterable_fields: Fields offered for filtering; ``None`` means every column.
        on_row_update: Callback receiving saved or deleted records. Without
            it (or without a store) rows are read-only.
        loading: Whether the records are still being fetched.
        store: Store handle used by row edit controllers.
        actor: Email of the signed-in user.
        notifier: Receives notices from row edit controllers.
        dataset: Dataset name used for export filenames.
        page_size: Initial page size.
    """

    def __init__(
        self,
        records: Sequence[Record],
        columns: Sequence[ColumnDef] | None = None,
        filterable_fields: Sequence[str] | None = None,
        on_row_update: RowUpdateCallback | None = None,
        loading: bool = False,
        store: InventoryStoreProtocol | None = None,
        actor: str | None = None,
        notifier: Notifier | None = None,
        dataset: str = "inventory",
        page_size: int = 10,
    ) -> None:
        self.records: list[Record] = list(records)
        self._columns = list(columns) if columns is not None else None
        self._filterable_fields = list(filterable_fields) if filterable_fields is not None else None
        self.on_row_update = on_row_update
        self.loading = loading
        self.store = store
        self.actor = actor or "anonymous"
        self.notifier = notifier
        self.dataset = dataset

        self.filter_state: FilterState = {}
        self.sort_state: SortState = []
        self.pagination = PaginationState(page_size=page_size)

    # Derived state

    @property
    def columns(self) -> list[ColumnDef]:
        if self._columns is not None:
            return self._columns
        return dynamic_columns(self.records)

    @property
    def filterable_fields(self) -> list[str]:
        if self._filterable_fields is not None:
            return self._filterable_fields
        return [column.key for column in self.columns]

    @property
    def editable(self) -> bool:
        return self.on_row_update is not None and self.store is not None

    def filtered_rows(self) -> list[Record]:
        """Filtered and sorted rows across all pages."""
        rows = filter_engine.filter_records(self.records, self.filter_state)
        return sort_paginate.sort_records(rows, self.sort_state)

    def current_page(self) -> Page:
        return sort_paginate.paginate(self.filtered_rows(), self.pagination)

    def filter_options(self, field_name: str) -> list[str]:
        """Values offered by a multi-select filter on ``field_name``."""
        return filter_engine.distinct_values(self.records, field_name)

    def _column(self, column_id: str) -> ColumnDef | None:
        for column in self.columns:
            if column.id == column_id or column.key == column_id:
                return column
        return None

    def _reclamp(self) -> None:
        total = len(filter_engine.filter_records(self.records, self.filter_state))
        self.pagination = sort_paginate.clamp_pagination(self.pagination, total)

    # Rendering

    def render(self) -> GridView:
        """Build the view model for the current state from scratch."""
        columns = self.columns
        headers = [
            HeaderView(
                id=column.id,
                header=column.header if isinstance(column.header, str) else column.key,
                sortable=column.sortable,
                sort_direction=sort_paginate.sort_direction_for(self.sort_state, column.key),
            )
            for column in columns
        ]

        page = self.current_page()
        filter_count = len(self.filter_state)

        if self.loading:
            empty = Page(
                rows=[],
                page_index=0,
                page_size=self.pagination.page_size,
                page_count=1,
                total_rows=0,
            )
            return GridView(
                headers=headers,
                rows=[],
                page=empty,
                loading=True,
                placeholder=LOADING_PLACEHOLDER,
                show_actions=self.editable,
                filter_count=filter_count,
            )

        rows = [self._row_view(record, columns) for record in page.rows]
        return GridView(
            headers=headers,
            rows=rows,
            page=page,
            placeholder=None if rows else EMPTY_PLACEHOLDER,
            show_actions=self.editable,
            filter_count=filter_count,
        )

    def _row_view(self, record: Record, columns: Sequence[ColumnDef]) -> RowView:
        cells: dict[str, str] = {}
        for column in columns:
            value = record.get(column.key)
            cells[column.id] = column.cell(value) if column.cell else stringify(value)
        return RowView(
            id=stringify(record.get(ID_FIELD)),
            cells=cells,
            editable=self.editable,
            record=record,
        )

    # State changes

    def set_records(self, records: Sequence[Record]) -> None:
        self.records = list(records)
        self._reclamp()

    def apply_row_update(self, updated: Record) -> None:
        """Fold a row update callback payload into the grid's own records."""
        self.set_records(reconcile_records(self.records, updated))

    def set_loading(self, loading: bool) -> None:
        self.loading = loading

    def set_filter(self, field_name: str, value: FilterEntry | None) -> None:
        if field_name not in self.filterable_fields:
            raise ValueError(f"Field '{field_name}' is not filterable")
        self.filter_state = update_filter_state(self.filter_state, field_name, value)
        self._reclamp()
        logger.debug(
            "Grid filter changed",
            field=field_name,
            active_filters=len(self.filter_state),
            page_index=self.pagination.page_index,
        )

    def set_filters(self, filter_state: FilterState) -> None:
        """Replace the whole filter state."""
        new_state: FilterState = {}
        for field_name, value in filter_state.items():
            if field_name not in self.filterable_fields:
                raise ValueError(f"Field '{field_name}' is not filterable")
            new_state = update_filter_state(new_state, field_name, value)
        self.filter_state = new_state
        self._reclamp()

    def clear_filters(self) -> None:
        self.filter_state = {}
        self._reclamp()

    def toggle_sort(self, column_id: str) -> None:
        """Header click: advance the column through none -> asc -> desc -> none."""
        column = self._column(column_id)
        if column is None:
            raise ValueError(f"Unknown column '{column_id}'")
        self.sort_state = sort_paginate.toggle_sort(
            self.sort_state, column.key, sortable=column.sortable
        )

    def set_sort(self, sort_state: Sequence[SortKey]) -> None:
        self.sort_state = list(sort_state)

    def set_page_size(self, page_size: int) -> None:
        if page_size not in PAGE_SIZE_OPTIONS:
            raise ValueError(f"Page size must be one of {PAGE_SIZE_OPTIONS}")
        self.pagination = PaginationState(page_index=self.pagination.page_index, page_size=page_size)
        self._reclamp()

    def set_page_index(self, page_index: int) -> None:
        self.pagination = PaginationState(page_index=page_index, page_size=self.pagination.page_size)
        self._reclamp()

    def next_page(self) -> None:
        self.set_page_index(self.pagination.page_index + 1)

    def previous_page(self) -> None:
        self.set_page_index(self.pagination.page_index - 1)

    def first_page(self) -> None:
        self.set_page_index(0)

    def last_page(self) -> None:
        total = len(filter_engine.filter_records(self.records, self.filter_state))
        self.set_page_index(sort_paginate.page_count(total, self.pagination.page_size) - 1)

    # Actions

    def controller_for(self, row_id: str) -> RowEditController | None:
        """Row edit controller for ``row_id``, or None when rows are read-only."""
        if not self.editable:
            return None
        for record in self.records:
            if stringify(record.get(ID_FIELD)) == str(row_id):
                return RowEditController(
                    record,
                    store=self.store,
                    actor=self.actor,
                    on_row_update=self.on_row_update,
                    notifier=self.notifier,
                )
        raise KeyError(f"No row with id {row_id}")

    def export(self, fmt: ExportFormat | str, today: date | None = None) -> ExportFile | None:
        """Export every filtered, sorted row (not just the current page)."""
        return export_rows(self.filtered_rows(), self.columns, fmt, dataset=self.dataset, today=today)

