"""Pydantic schemas for inventory endpoints."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from seedkeep.domain.entities.audit import AuditAction
from seedkeep.domain.services.notifier import NoticeLevel
from seedkeep.domain.services.row_edit_controller import DeleteStatus, SaveStatus


class InventoryUpdateRequest(BaseModel):
    """Field values to change; omitted fields keep their current value."""

    values: dict[str, Any] = Field(..., description="Field name to new value")


class FieldChangeResponse(BaseModel):
    field: str
    from_value: Any = Field(None, serialization_alias="from")
    to_value: Any = Field(None, serialization_alias="to")

    model_config = ConfigDict(from_attributes=True)


class FieldErrorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    field: str
    message: str
    code: str
    row: Optional[int] = Field(None, description="Spreadsheet row number (header is row 1)")


class NoticeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    level: NoticeLevel
    message: str


class SaveResponse(BaseModel):
    status: SaveStatus
    record: Optional[dict[str, Any]] = None
    changes: list[FieldChangeResponse] = Field(default_factory=list)
    errors: list[FieldErrorResponse] = Field(default_factory=list)
    notices: list[NoticeResponse] = Field(default_factory=list)


class DeleteResponse(BaseModel):
    status: DeleteStatus
    record: Optional[dict[str, Any]] = None
    notices: list[NoticeResponse] = Field(default_factory=list)


class HistoryEntryResponse(BaseModel):
    """One entry of a record's history."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = Field(None, description="Sequence number")
    record_id: str
    action: AuditAction
    actor: str = Field(..., description="Email of user who made the change")
    changes: list[FieldChangeResponse]
    summary: str
    snapshot: Optional[dict[str, Any]] = None
    occurred_at: datetime = Field(..., description="Timestamp of the change (UTC)")


class ImportReportResponse(BaseModel):
    """Validation outcome of an import file."""

    model_config = ConfigDict(from_attributes=True)

    filename: str
    headers: list[str]
    total_rows: int
    valid_rows: int
    missing_columns: list[str]
    unknown_columns: list[str]
    errors: list[FieldErrorResponse]
    ok: bool
    imported: int = 0
