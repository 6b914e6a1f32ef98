"""Domain services for SeedKeep.

The data-grid engine: filtering, sorting and pagination, export, row editing
with audit write-back, and bulk import. No service depends on the web or
database layers; the store is reached through protocols.
"""

from seedkeep.domain.services.data_grid import DataGrid, reconcile_records
from seedkeep.domain.services.export_encoder import ExportFile, ExportFormat, export_rows
from seedkeep.domain.services.filter_engine import distinct_values, filter_records, matches
from seedkeep.domain.services.import_service import (
    ImportReport,
    InventoryImportRow,
    add_entry,
    commit_import,
    preview_import,
)
from seedkeep.domain.services.inventory_stats import InventoryStats, summarize
from seedkeep.domain.services.notifier import CollectingNotifier, Notice, NoticeLevel
from seedkeep.domain.services.row_edit_controller import (
    CommitPhase,
    DeleteStatus,
    InvalidTransitionError,
    RowEditController,
    RowState,
    SaveStatus,
)
from seedkeep.domain.services.sort_paginate import paginate, parse_sort, sort_records, toggle_sort

__all__ = [
    "CollectingNotifier",
    "CommitPhase",
    "DataGrid",
    "DeleteStatus",
    "ExportFile",
    "ExportFormat",
    "ImportReport",
    "InvalidTransitionError",
    "InventoryImportRow",
    "InventoryStats",
    "Notice",
    "NoticeLevel",
    "RowEditController",
    "RowState",
    "SaveStatus",
    "add_entry",
    "commit_import",
    "distinct_values",
    "export_rows",
    "filter_records",
    "matches",
    "paginate",
    "parse_sort",
    "preview_import",
    "reconcile_records",
    "sort_records",
    "summarize",
    "toggle_sort",
]
