"""Bulk import of inventory entries from CSV or Excel files.

The first row of the file names the destination fields. Every row is checked
against the inventory schema and all problems are reported together; a file
with any error is never partially imported.
"""

import csv
import io
import zipfile
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any, Literal, Protocol, Sequence

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from seedkeep.core.exceptions import ImportRejectedError
from seedkeep.core.logging import get_logger
from seedkeep.domain.entities.audit import ActivityEntry, AuditAction, AuditEntry
from seedkeep.domain.entities.grid import Record
from seedkeep.domain.entities.inventory import (
    REQUIRED_FIELDS,
    InventoryField,
    field_label,
)
from seedkeep.domain.entities.validation import FieldError
from seedkeep.domain.services.values import is_blank, stringify, to_number

logger = get_logger(__name__)

CSV_EXTENSIONS = (".csv",)
XLSX_EXTENSIONS = (".xlsx", ".xlsm")

# Header row is spreadsheet row 1
FIRST_DATA_ROW = 2


class ImportStoreProtocol(Protocol):
    async def add_record(self, data: Record, added_by: str | None = None) -> Record: ...

    async def add_records(self, records: Sequence[Record], added_by: str | None = None) -> list[Record]: ...

    async def append_history(self, entry: AuditEntry) -> AuditEntry: ...

    async def log_activity(self, entry: ActivityEntry) -> ActivityEntry: ...


class InventoryImportRow(BaseModel):
    """Schema one imported row must satisfy."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    box_number: int = Field(ge=0)
    shelf_code: str | None = None
    type: Literal["white", "yellow", "sorghum", "special maize"]
    area_planted: Literal["LBTR", "LBPD", "CMU"]
    year: str = Field(min_length=1)
    season: Literal["wet", "dry"]
    location: str = Field(min_length=1)
    description: str = Field(min_length=1)
    pedigree: str = Field(min_length=1)
    weight: float = Field(ge=0)
    remarks: str | None = None

    @field_validator("box_number", "weight", mode="before")
    @classmethod
    def parse_number(cls, v: Any) -> Any:
        if isinstance(v, str):
            number = to_number(v)
            if number is not None:
                return int(number) if number.is_integer() else number
        return v

    @field_validator("year", "location", "description", "pedigree", "shelf_code", "remarks", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        # Spreadsheets hand back years and codes as numbers
        if v is None or isinstance(v, str):
            return v
        return stringify(v)

    @field_validator("shelf_code", "remarks")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        return v or None

    @field_validator("type", "season", mode="before")
    @classmethod
    def lower_case(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("area_planted", mode="before")
    @classmethod
    def upper_case(cls, v: Any) -> Any:
        return v.strip().upper() if isinstance(v, str) else v


@dataclass
class ImportTable:
    """Raw parsed file: trimmed headers plus ``(row_number, values)`` pairs."""

    headers: list[str]
    rows: list[tuple[int, dict[str, Any]]]


@dataclass
class ImportReport:
    """Outcome of validating an import file."""

    filename: str
    headers: list[str] = field(default_factory=list)
    records: list[Record] = field(default_factory=list)
    errors: list[FieldError] = field(default_factory=list)
    missing_columns: list[str] = field(default_factory=list)
    unknown_columns: list[str] = field(default_factory=list)
    total_rows: int = 0

    @property
    def ok(self) -> bool:
        return not self.errors and self.total_rows > 0


def _cells_to_table(raw_rows: Sequence[Sequence[Any]]) -> ImportTable:
    if not raw_rows:
        return ImportTable(headers=[], rows=[])
    headers = [stringify(h).strip() for h in raw_rows[0]]
    rows: list[tuple[int, dict[str, Any]]] = []
    for index, raw in enumerate(raw_rows[1:]):
        if all(is_blank(cell) for cell in raw):
            continue
        values = {
            header: (raw[i] if i < len(raw) else None)
            for i, header in enumerate(headers)
            if header
        }
        rows.append((index + FIRST_DATA_ROW, values))
    return ImportTable(headers=[h for h in headers if h], rows=rows)


def parse_csv(content: bytes) -> ImportTable:
    """Parse UTF-8 CSV bytes; a leading byte order mark is ignored."""
    text = content.decode("utf-8-sig")
    reader = csv.reader(io.StringIO(text))
    return _cells_to_table([row for row in reader])


def parse_xlsx(content: bytes) -> ImportTable:
    """Parse the first worksheet of an Excel workbook."""
    workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        worksheet = workbook.worksheets[0]
        return _cells_to_table([list(row) for row in worksheet.iter_rows(values_only=True)])
    finally:
        workbook.close()


def read_table(filename: str, content: bytes) -> ImportTable:
    """Parse an uploaded file based on its extension.

    Raises:
        ValueError: If the extension is not a supported format or the file
            cannot be decoded.
    """
    suffix = PurePath(filename).suffix.lower()
    if suffix in CSV_EXTENSIONS:
        try:
            return parse_csv(content)
        except UnicodeDecodeError as e:
            raise ValueError("CSV files must be UTF-8 encoded") from e
    if suffix in XLSX_EXTENSIONS:
        try:
            return parse_xlsx(content)
        except (zipfile.BadZipFile, InvalidFileException, OSError, KeyError, ValueError) as e:
            # openpyxl raises these for corrupt or non-zip content
            raise ValueError(f"Could not read workbook: {e}") from e
    raise ValueError(f"Unsupported file type '{suffix or filename}'. Use CSV or Excel (.xlsx)")


def _row_errors(row_number: int, error: ValidationError) -> list[FieldError]:
    errors = []
    for detail in error.errors():
        loc = detail.get("loc") or ("row",)
        field_name = str(loc[0])
        errors.append(FieldError(
            field=field_name,
            message=f"{field_label(field_name)}: {detail['msg']}",
            code=detail["type"],
            row=row_number,
        ))
    return errors


def validate_table(filename: str, table: ImportTable) -> ImportReport:
    """Check columns and every row; collect all problems at once."""
    report = ImportReport(filename=filename, headers=table.headers, total_rows=len(table.rows))
    known = {f.value for f in InventoryField}

    report.missing_columns = [f.value for f in REQUIRED_FIELDS if f.value not in table.headers]
    report.unknown_columns = [h for h in table.headers if h not in known]
    for column in report.missing_columns:
        report.errors.append(FieldError(
            field=column,
            message=f"Missing required column '{column}'",
            code="missing_column",
        ))
    for column in report.unknown_columns:
        report.errors.append(FieldError(
            field=column,
            message=f"Unrecognized column '{column}'",
            code="unknown_column",
        ))
    if not table.rows:
        report.errors.append(FieldError(field="file", message="The file has no data rows", code="empty_file"))

    # Column problems make per-row messages noise
    if report.missing_columns or report.unknown_columns:
        return report

    for row_number, values in table.rows:
        try:
            row = InventoryImportRow.model_validate(values)
        except ValidationError as e:
            report.errors.extend(_row_errors(row_number, e))
            continue
        report.records.append(row.model_dump())
    return report


def preview_import(filename: str, content: bytes) -> ImportReport:
    """Parse and validate a file without writing anything."""
    table = read_table(filename, content)
    report = validate_table(filename, table)
    logger.info(
        "Import file validated",
        filename=filename,
        rows=report.total_rows,
        valid_rows=len(report.records),
        errors=len(report.errors),
    )
    return report


async def commit_import(report: ImportReport, store: ImportStoreProtocol, actor: str) -> list[Record]:
    """Write a clean report's rows in a single store call.

    Raises:
        ImportRejectedError: If the report still holds errors.
    """
    if not report.ok:
        raise ImportRejectedError(len(report.errors) or 1)

    created = await store.add_records(report.records, added_by=actor)
    for record in created:
        await store.append_history(AuditEntry(
            record_id=str(record["id"]),
            action=AuditAction.CREATE,
            actor=actor,
            summary=f"Imported from {report.filename}",
            snapshot=record,
        ))
    await store.log_activity(ActivityEntry(
        message=f"Imported {len(created)} inventory entries from {report.filename}",
        logged_by=actor,
    ))
    logger.info("Import committed", filename=report.filename, created=len(created), actor=actor)
    return created


async def add_entry(row: InventoryImportRow, store: ImportStoreProtocol, actor: str) -> Record:
    """Create one validated inventory entry with its history and activity lines."""
    created = await store.add_record(row.model_dump(), added_by=actor)
    await store.append_history(AuditEntry(
        record_id=str(created["id"]),
        action=AuditAction.CREATE,
        actor=actor,
        summary="Created",
        snapshot=created,
    ))
    await store.log_activity(ActivityEntry(
        message=f"Added inventory item (Box {row.box_number} - {row.type})",
        logged_by=actor,
    ))
    logger.info("Inventory entry added", record_id=created["id"], actor=actor)
    return created
