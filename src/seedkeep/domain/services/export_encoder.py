"""Export encoder for the filtered grid.

Serializes the currently filtered rows to CSV or to an Excel workbook. The
workbook can hold a single sheet, one sheet per box number or one sheet per
year. Exporting an empty set produces no file.
"""

import csv
import io
import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Sequence

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.utils import get_column_letter

from seedkeep.core.logging import get_logger
from seedkeep.domain.entities.grid import ColumnDef, Record
from seedkeep.domain.services.values import stringify, to_number

logger = get_logger(__name__)

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

MIN_COLUMN_WIDTH = 10
MAX_COLUMN_WIDTH = 50
COLUMN_PADDING = 2

# Excel forbids these in sheet titles and caps titles at 31 characters
_SHEET_TITLE_FORBIDDEN = re.compile(r"[\[\]\:\*\?\/\\]")
_SHEET_TITLE_MAX = 31


class ExportFormat(str, Enum):
    """Available export formats."""

    CSV = "csv"
    XLSX = "xlsx"
    XLSX_PER_BOX = "xlsx-per-box"
    XLSX_PER_YEAR = "xlsx-per-year"


@dataclass
class ExportFile:
    """An encoded export ready to be downloaded or written to disk."""

    filename: str
    media_type: str
    content: bytes


@dataclass(frozen=True)
class _ColumnInfo:
    header: str
    accessor_key: str


def column_header(column: ColumnDef) -> str:
    """Header text: literal header, else accessor key, else id."""
    if isinstance(column.header, str) and column.header:
        return column.header
    return column.accessor_key or column.id or "Unknown"


def _column_info(columns: Sequence[ColumnDef]) -> list[_ColumnInfo]:
    return [
        _ColumnInfo(header=column_header(col), accessor_key=col.accessor_key or col.id or "unknown")
        for col in columns
    ]


def encode_csv(rows: Sequence[Record], columns: Sequence[ColumnDef]) -> str:
    """Encode rows as CSV text with RFC 4180 quoting.

    Fields containing a comma, double quote or line break are quoted and
    inner quotes doubled. Rows are joined by ``\\n``.
    """
    info = _column_info(columns)
    lines = [_csv_line([c.header for c in info])]
    for row in rows:
        lines.append(_csv_line([stringify(row.get(c.accessor_key)) for c in info]))
    return "\n".join(lines)


def _csv_line(values: list[str]) -> str:
    # csv quotes a field only for characters of its own line terminator
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\r\n", quoting=csv.QUOTE_MINIMAL).writerow(values)
    return buffer.getvalue()[:-2]


def _excel_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool) or isinstance(value, (int, float)):
        return value
    if isinstance(value, datetime):
        # Excel has no timezone support
        return value.isoformat() if value.tzinfo else value
    if isinstance(value, date):
        return value
    return ILLEGAL_CHARACTERS_RE.sub("", stringify(value))


def column_width(header: str, values: Sequence[Any]) -> int:
    """Width fitting the longer of the header and the longest cell, clamped."""
    longest = max([len(header)] + [len(stringify(v)) for v in values])
    return min(max(longest + COLUMN_PADDING, MIN_COLUMN_WIDTH), MAX_COLUMN_WIDTH)


def _sheet_title(name: str) -> str:
    title = _SHEET_TITLE_FORBIDDEN.sub("-", name).strip() or "Sheet"
    return title[:_SHEET_TITLE_MAX]


def _fill_sheet(worksheet, rows: Sequence[Record], info: list[_ColumnInfo]) -> None:
    worksheet.append([c.header for c in info])
    for row in rows:
        worksheet.append([_excel_value(row.get(c.accessor_key)) for c in info])
    for idx, column in enumerate(info, start=1):
        width = column_width(column.header, [row.get(column.accessor_key) for row in rows])
        worksheet.column_dimensions[get_column_letter(idx)].width = width


def _workbook_bytes(workbook: Workbook) -> bytes:
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def encode_xlsx(rows: Sequence[Record], columns: Sequence[ColumnDef], sheet_name: str) -> bytes:
    """Encode rows as a single-sheet workbook."""
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = _sheet_title(sheet_name)
    _fill_sheet(worksheet, rows, _column_info(columns))
    return _workbook_bytes(workbook)


def group_rows(rows: Sequence[Record], field_name: str) -> dict[str, list[Record]]:
    """Group rows by the text of ``field_name``; missing values group under ``Unknown``."""
    groups: dict[str, list[Record]] = {}
    for row in rows:
        key = stringify(row.get(field_name)) or "Unknown"
        groups.setdefault(key, []).append(row)
    return groups


def _group_order(keys: Sequence[str], descending: bool) -> list[str]:
    numeric = [k for k in keys if to_number(k) is not None]
    textual = [k for k in keys if to_number(k) is None]
    numeric.sort(key=lambda k: to_number(k), reverse=descending)
    textual.sort(key=lambda k: (k == "Unknown", k))
    return numeric + textual


def encode_grouped_xlsx(
    rows: Sequence[Record],
    columns: Sequence[ColumnDef],
    field_name: str,
    title: Callable[[str], str],
    descending: bool = False,
) -> bytes:
    """Encode rows as a workbook with one sheet per distinct ``field_name`` value.

    Numeric group keys come first (ascending, or descending when asked),
    then text keys alphabetically, ``Unknown`` last.
    """
    info = _column_info(columns)
    groups = group_rows(rows, field_name)
    workbook = Workbook()
    workbook.remove(workbook.active)
    used_titles: set[str] = set()
    for key in _group_order(list(groups), descending):
        sheet_title = _sheet_title(title(key))
        suffix = 2
        while sheet_title in used_titles:
            sheet_title = _sheet_title(f"{title(key)} ({suffix})")
            suffix += 1
        used_titles.add(sheet_title)
        _fill_sheet(workbook.create_sheet(sheet_title), groups[key], info)
    return _workbook_bytes(workbook)


def export_filename(dataset: str, fmt: ExportFormat, today: date | None = None) -> str:
    """``<dataset>-export-<ISO date>.<ext>``; grouped exports say ``by-box``/``by-year``."""
    stamp = (today or date.today()).isoformat()
    if fmt == ExportFormat.CSV:
        return f"{dataset}-export-{stamp}.csv"
    if fmt == ExportFormat.XLSX_PER_BOX:
        return f"{dataset}-by-box-{stamp}.xlsx"
    if fmt == ExportFormat.XLSX_PER_YEAR:
        return f"{dataset}-by-year-{stamp}.xlsx"
    return f"{dataset}-export-{stamp}.xlsx"


def export_rows(
    rows: Sequence[Record],
    columns: Sequence[ColumnDef],
    fmt: ExportFormat | str,
    dataset: str = "inventory",
    today: date | None = None,
) -> ExportFile | None:
    """Encode ``rows`` in ``fmt``.

    Returns:
        The encoded file, or None when there is nothing to export.
    """
    fmt = ExportFormat(fmt)
    if not rows:
        logger.warning("No data to export", format=fmt.value, dataset=dataset)
        return None

    filename = export_filename(dataset, fmt, today)

    if fmt == ExportFormat.CSV:
        content = encode_csv(rows, columns).encode("utf-8")
        media_type = CSV_MEDIA_TYPE
    elif fmt == ExportFormat.XLSX:
        content = encode_xlsx(rows, columns, sheet_name=dataset.replace("_", " ").title())
        media_type = XLSX_MEDIA_TYPE
    elif fmt == ExportFormat.XLSX_PER_BOX:
        content = encode_grouped_xlsx(rows, columns, "box_number", title=lambda k: f"Box {k}")
        media_type = XLSX_MEDIA_TYPE
    else:
        content = encode_grouped_xlsx(rows, columns, "year", title=str, descending=True)
        media_type = XLSX_MEDIA_TYPE

    logger.info(
        "Export encoded",
        format=fmt.value,
        dataset=dataset,
        rows=len(rows),
        columns=len(columns),
        filename=filename,
        size=len(content),
    )
    return ExportFile(filename=filename, media_type=media_type, content=content)
