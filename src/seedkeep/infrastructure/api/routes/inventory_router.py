"""Inventory API routes.

The grid endpoints run the same filter/sort/paginate engine a front end
would, so every client sees identical results for the same grid state.
"""

import json
from typing import Any, Optional

from fastapi import APIRouter, File, HTTPException, Query, Response, UploadFile, status
from pydantic import ValidationError

from seedkeep.core.config import PAGE_SIZE_OPTIONS, get_settings
from seedkeep.core.logging import LoggingContext, get_logger
from seedkeep.domain.entities.inventory import inventory_columns
from seedkeep.domain.services.data_grid import DataGrid
from seedkeep.domain.services.import_service import (
    ImportReport,
    InventoryImportRow,
    add_entry,
    commit_import,
    preview_import,
)
from seedkeep.domain.services.inventory_stats import (
    DEFAULT_BIN_SIZE,
    DEFAULT_LOW_STOCK_THRESHOLD,
    Comparison,
    LowStockSort,
    summarize,
)
from seedkeep.domain.services.notifier import CollectingNotifier
from seedkeep.domain.services.row_edit_controller import (
    DeleteStatus,
    RowEditController,
    SaveStatus,
)
from seedkeep.domain.services.sort_paginate import parse_sort
from seedkeep.infrastructure.api.dependencies import ApprovedUser, Store
from seedkeep.infrastructure.api.schemas.grid_schemas import (
    ExportRequest,
    GridViewResponse,
    filters_adapter,
    filters_to_domain,
    sort_to_domain,
)
from seedkeep.infrastructure.api.schemas.inventory_schemas import (
    DeleteResponse,
    FieldChangeResponse,
    FieldErrorResponse,
    HistoryEntryResponse,
    ImportReportResponse,
    InventoryUpdateRequest,
    NoticeResponse,
    SaveResponse,
)
from seedkeep.infrastructure.api.schemas.stats_schemas import InventoryStatsResponse

logger = get_logger(__name__)

router = APIRouter()


def _grid(records: list[dict[str, Any]], page_size: int | None = None) -> DataGrid:
    settings = get_settings()
    return DataGrid(
        records,
        columns=inventory_columns(),
        dataset=settings.dataset_name,
        page_size=page_size or settings.default_page_size,
    )


def _parse_filters(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        return filters_to_domain(filters_adapter.validate_json(raw))
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=json.loads(e.json(include_url=False)),
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_CONTENT, detail=str(e))


def _report_response(report: ImportReport, imported: int = 0) -> ImportReportResponse:
    return ImportReportResponse(
        filename=report.filename,
        headers=report.headers,
        total_rows=report.total_rows,
        valid_rows=len(report.records),
        missing_columns=report.missing_columns,
        unknown_columns=report.unknown_columns,
        errors=[FieldErrorResponse.model_validate(e) for e in report.errors],
        ok=report.ok,
        imported=imported,
    )


async def _read_report(file: UploadFile) -> ImportReport:
    content = await file.read()
    try:
        return preview_import(file.filename or "upload", content)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_CONTENT, detail=str(e))


@router.get(
    "",
    response_model=GridViewResponse,
    responses={422: {"description": "Invalid filters, sort or page size"}},
)
async def list_inventory(
    current_user: ApprovedUser,
    store: Store,
    filters: Optional[str] = Query(None, description="Filter state as JSON"),
    sort: Optional[str] = Query(None, description="Sort keys, e.g. 'box_number:asc,weight:desc'"),
    page_index: int = Query(0, ge=0, description="Zero-based page index"),
    page_size: Optional[int] = Query(None, description=f"One of {PAGE_SIZE_OPTIONS}"),
) -> GridViewResponse:
    """Render one page of the filtered, sorted inventory grid."""
    if page_size is not None and page_size not in PAGE_SIZE_OPTIONS:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=f"page_size must be one of {list(PAGE_SIZE_OPTIONS)}",
        )
    filter_state = _parse_filters(filters)
    try:
        sort_state = parse_sort(sort)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_CONTENT, detail=str(e))

    grid = _grid(await store.fetch_all(), page_size)
    try:
        grid.set_filters(filter_state)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_CONTENT, detail=str(e))
    grid.set_sort(sort_state)
    grid.set_page_index(page_index)
    return GridViewResponse.model_validate(grid.render())


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_inventory_entry(
    body: InventoryImportRow,
    current_user: ApprovedUser,
    store: Store,
) -> dict[str, Any]:
    """Add a single inventory entry."""
    return await add_entry(body, store, actor=current_user.email)


@router.get("/options/{field_name}")
async def list_filter_options(field_name: str, current_user: ApprovedUser, store: Store) -> list[str]:
    """Values offered by a multi-select filter on one column."""
    grid = _grid(await store.fetch_all())
    if field_name not in grid.filterable_fields:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown column '{field_name}'")
    return grid.filter_options(field_name)


@router.get(
    "/stats",
    response_model=InventoryStatsResponse,
    responses={422: {"description": "Invalid filters, threshold or bin size"}},
)
async def inventory_stats(
    current_user: ApprovedUser,
    store: Store,
    filters: Optional[str] = Query(None, description="Filter state as JSON"),
    threshold: float = Query(DEFAULT_LOW_STOCK_THRESHOLD, ge=0, description="Low-stock threshold in kg"),
    low_stock_sort: LowStockSort = Query(LowStockSort.WEIGHT),
    bin_size: float = Query(DEFAULT_BIN_SIZE, gt=0, description="Histogram bucket width in kg"),
    lot_type: Optional[str] = Query(None, description="Restrict the weight distribution to one type"),
    comparison: Comparison = Query(Comparison.YEARLY),
) -> InventoryStatsResponse:
    """Dashboard figures over the rows matching the grid's filters."""
    filter_state = _parse_filters(filters)
    grid = _grid(await store.fetch_all())
    try:
        grid.set_filters(filter_state)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_CONTENT, detail=str(e))
    stats = summarize(
        grid.filtered_rows(),
        threshold=threshold,
        low_stock_sort=low_stock_sort,
        bin_size=bin_size,
        lot_type=lot_type,
        comparison=comparison,
    )
    return InventoryStatsResponse.model_validate(stats)


@router.get("/boxes/{box_number}")
async def list_box(box_number: int, current_user: ApprovedUser, store: Store) -> list[dict[str, Any]]:
    """All entries stored in one box."""
    return await store.fetch_where("box_number", box_number)


@router.post(
    "/export",
    responses={
        200: {"description": "Exported file"},
        204: {"description": "Nothing matched the filters; no file produced"},
    },
)
async def export_inventory(body: ExportRequest, current_user: ApprovedUser, store: Store) -> Response:
    """Export every row matching the grid's filters and sort (all pages)."""
    grid = _grid(await store.fetch_all())
    try:
        grid.set_filters(filters_to_domain(body.filters))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_CONTENT, detail=str(e))
    grid.set_sort(sort_to_domain(body.sort))

    export = grid.export(body.format)
    if export is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    headers = {"Content-Disposition": f'attachment; filename="{export.filename}"'}
    return Response(content=export.content, media_type=export.media_type, headers=headers)


@router.post("/import/preview", response_model=ImportReportResponse)
async def preview_inventory_import(
    current_user: ApprovedUser,
    file: UploadFile = File(..., description="CSV or Excel file"),
) -> ImportReportResponse:
    """Validate an import file without writing anything."""
    return _report_response(await _read_report(file))


@router.post(
    "/import",
    response_model=ImportReportResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"description": "The file has validation errors; nothing was imported"}},
)
async def import_inventory(
    current_user: ApprovedUser,
    store: Store,
    file: UploadFile = File(..., description="CSV or Excel file"),
) -> ImportReportResponse:
    """Import every row of a file, or nothing when any row is invalid."""
    report = await _read_report(file)
    if not report.ok:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=_report_response(report).model_dump(mode="json"),
        )
    with LoggingContext(actor=current_user.email, filename=report.filename):
        created = await commit_import(report, store, actor=current_user.email)
    return _report_response(report, imported=len(created))


@router.get("/{record_id}")
async def get_inventory_entry(record_id: str, current_user: ApprovedUser, store: Store) -> dict[str, Any]:
    return await store.get_record(record_id)


@router.get("/{record_id}/history", response_model=list[HistoryEntryResponse])
async def get_inventory_history(
    record_id: str,
    current_user: ApprovedUser,
    store: Store,
) -> list[HistoryEntryResponse]:
    """History of one entry, newest first. Deleted entries keep their history."""
    entries = await store.list_history(record_id)
    return [HistoryEntryResponse.model_validate(e) for e in entries]


@router.patch(
    "/{record_id}",
    response_model=SaveResponse,
    responses={
        404: {"description": "Inventory entry not found"},
        422: {"description": "Validation failed; nothing was written"},
        502: {"description": "The store rejected the write"},
    },
)
async def update_inventory_entry(
    record_id: str,
    body: InventoryUpdateRequest,
    current_user: ApprovedUser,
    store: Store,
) -> SaveResponse:
    """Edit an entry: validate, diff against the stored version, save and audit."""
    record = await store.get_record(record_id)
    notifier = CollectingNotifier()
    controller = RowEditController(record, store=store, actor=current_user.email, notifier=notifier)
    controller.begin_edit()
    try:
        controller.update_values(body.values)
    except KeyError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_CONTENT, detail=e.args[0])

    with LoggingContext(actor=current_user.email, record_id=record_id):
        result = await controller.save()
    notices = [NoticeResponse.model_validate(n) for n in notifier.drain()]
    if result.status == SaveStatus.INVALID:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail={
                "errors": [FieldErrorResponse.model_validate(e).model_dump() for e in result.errors],
                "notices": [n.model_dump(mode="json") for n in notices],
            },
        )
    if result.status == SaveStatus.FAILED:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"notices": [n.model_dump(mode="json") for n in notices]},
        )
    return SaveResponse(
        status=result.status,
        record=result.record,
        changes=[FieldChangeResponse.model_validate(c) for c in result.changes],
        notices=notices,
    )


@router.delete(
    "/{record_id}",
    response_model=DeleteResponse,
    responses={
        404: {"description": "Inventory entry not found"},
        428: {"description": "Deletion must be confirmed with confirm=true"},
        502: {"description": "The store rejected the delete"},
    },
)
async def delete_inventory_entry(
    record_id: str,
    current_user: ApprovedUser,
    store: Store,
    confirm: bool = Query(False, description="Must be true to delete"),
) -> DeleteResponse:
    """Delete an entry after explicit confirmation; its history is kept."""
    record = await store.get_record(record_id)
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_428_PRECONDITION_REQUIRED,
            detail="Deletion requires confirm=true",
        )
    notifier = CollectingNotifier()
    controller = RowEditController(record, store=store, actor=current_user.email, notifier=notifier)
    controller.request_delete()
    with LoggingContext(actor=current_user.email, record_id=record_id):
        result = await controller.confirm_delete()
    notices = [NoticeResponse.model_validate(n) for n in notifier.drain()]
    if result.status == DeleteStatus.FAILED:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"notices": [n.model_dump(mode="json") for n in notices]},
        )
    return DeleteResponse(status=result.status, record=result.record, notices=notices)
