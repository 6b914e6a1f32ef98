"""Field-level validation errors shared by the row editor and the importer."""

from dataclasses import dataclass


@dataclass
class FieldError:
    """A single validation error.

    ``row`` is set by the importer and uses spreadsheet numbering
    (the header is row 1).
    """

    field: str
    message: str
    code: str
    row: int | None = None
