"""Row edit controller.

Drives one grid row through viewing, editing, saving and deleting. A save
validates the edit buffer, diffs it against the snapshot taken when editing
began, writes the full record, appends an audit entry with the field-level
changes and finally hands the saved record to the caller's update callback.
The controller never touches the caller's record set itself; the callback is
the only channel through which it changes.

State machine::

    VIEWING -> EDITING -> SAVING -> VIEWING
                  |  \\-> VIEWING (cancel)
                  v
    (VIEWING|EDITING) -> CONFIRMING_DELETE -> DELETING -> REMOVED
                              \\-> previous state (cancel)

Each write goes PENDING -> COMMITTED, or PENDING -> ROLLED_BACK when the
store fails, in which case the row returns to its pre-failure state with the
edit buffer intact.
"""

import copy
import inspect
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Protocol, Sequence

from seedkeep.core.exceptions import StoreError
from seedkeep.core.logging import get_logger
from seedkeep.domain.entities.audit import (
    ActivityEntry,
    AuditAction,
    AuditEntry,
    FieldChange,
)
from seedkeep.domain.entities.grid import Record
from seedkeep.domain.entities.inventory import (
    DELETED_MARKER,
    ID_FIELD,
    REQUIRED_FIELDS,
    EditBuffer,
    InventoryField,
    field_label,
)
from seedkeep.domain.entities.validation import FieldError
from seedkeep.domain.services.notifier import CollectingNotifier, NoticeLevel, Notifier
from seedkeep.domain.services.values import is_blank, stringify, to_number, values_equal

logger = get_logger(__name__)

RowUpdateCallback = Callable[[Record], Awaitable[None] | None]

# Fields listed in the deletion summary, in this order
_SUMMARY_FIELDS: tuple[InventoryField, ...] = (
    InventoryField.BOX_NUMBER,
    InventoryField.TYPE,
    InventoryField.AREA_PLANTED,
    InventoryField.YEAR,
    InventoryField.SEASON,
    InventoryField.LOCATION,
    InventoryField.DESCRIPTION,
    InventoryField.PEDIGREE,
    InventoryField.WEIGHT,
    InventoryField.REMARKS,
)


class InventoryStoreProtocol(Protocol):
    """Store operations the controller needs; avoids importing the infrastructure layer."""

    async def update_record(self, record_id: str, data: Record) -> Record: ...

    async def delete_record(self, record_id: str) -> None: ...

    async def append_history(self, entry: AuditEntry) -> AuditEntry: ...

    async def log_activity(self, entry: ActivityEntry) -> ActivityEntry: ...


class RowState(str, Enum):
    VIEWING = "viewing"
    EDITING = "editing"
    SAVING = "saving"
    CONFIRMING_DELETE = "confirming_delete"
    DELETING = "deleting"
    REMOVED = "removed"


class CommitPhase(str, Enum):
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class SaveStatus(str, Enum):
    SAVED = "saved"
    NO_CHANGES = "no_changes"
    INVALID = "invalid"
    FAILED = "failed"


class DeleteStatus(str, Enum):
    DELETED = "deleted"
    FAILED = "failed"


class InvalidTransitionError(Exception):
    """Raised when an action is not allowed in the row's current state."""

    def __init__(self, action: str, state: RowState) -> None:
        self.action = action
        self.state = state
        super().__init__(f"Cannot {action} while row is {state.value}")


@dataclass
class SaveResult:
    status: SaveStatus
    record: Record | None = None
    changes: list[FieldChange] = field(default_factory=list)
    errors: list[FieldError] = field(default_factory=list)


@dataclass
class DeleteResult:
    status: DeleteStatus
    record: Record | None = None


def _normalize_number(number: float) -> int | float:
    return int(number) if number.is_integer() else number


def compute_changes(snapshot: Record, candidate: Record, fields: Sequence[str]) -> list[FieldChange]:
    """Field-level changes between the pre-edit snapshot and the candidate record.

    Comparison is coercion aware (``5`` equals ``"5"``). The id is never a change.
    """
    changes: list[FieldChange] = []
    for name in fields:
        if name == ID_FIELD:
            continue
        before = snapshot.get(name)
        after = candidate.get(name)
        if not values_equal(before, after):
            changes.append(FieldChange(field=name, from_value=before, to_value=after))
    return changes


def describe_changes(changes: Sequence[FieldChange]) -> str:
    return ", ".join(
        f'{field_label(c.field)}: "{stringify(c.from_value)}" → "{stringify(c.to_value)}"'
        for c in changes
    )


def describe_deleted(record: Record) -> str:
    lines = [
        f"  • {field_label(f.value)}: {stringify(record.get(f.value))}"
        + (" kg" if f == InventoryField.WEIGHT else "")
        for f in _SUMMARY_FIELDS
    ]
    return "Deleted inventory entry:\n" + "\n".join(lines)


class RowEditController:
    """Edit/delete workflow for a single grid row.

    Args:
        record: The row as currently shown by the grid.
        store: Store handle used for writes and the audit trail.
        actor: Email of the signed-in user, recorded on audit entries.
        on_row_update: Caller callback receiving the saved record, or the
            deleted record with ``deleted=True``.
        notifier: Receives transient success/failure notices.
        required_fields: Fields that must be non-empty to save.
    """

    def __init__(
        self,
        record: Record,
        store: InventoryStoreProtocol,
        actor: str,
        on_row_update: RowUpdateCallback | None = None,
        notifier: Notifier | None = None,
        required_fields: Sequence[InventoryField] = REQUIRED_FIELDS,
    ) -> None:
        if record.get(ID_FIELD) in (None, ""):
            raise ValueError("Editable rows need an id")
        self.record: Record = copy.deepcopy(record)
        self.store = store
        self.actor = actor
        self.on_row_update = on_row_update
        self.notifier: Notifier = notifier or CollectingNotifier()
        self.required_fields = tuple(required_fields)

        self.state = RowState.VIEWING
        self.phase: CommitPhase | None = None
        self.snapshot: Record | None = None
        self.buffer: EditBuffer | None = None
        self.errors: list[FieldError] = []
        self._state_before_delete = RowState.VIEWING

    @property
    def record_id(self) -> str:
        return str(self.record[ID_FIELD])

    def _require(self, action: str, *allowed: RowState) -> None:
        if self.state not in allowed:
            raise InvalidTransitionError(action, self.state)

    # Editing

    def begin_edit(self) -> EditBuffer:
        """Snapshot the row and open an edit buffer."""
        self._require("edit", RowState.VIEWING)
        self.snapshot = copy.deepcopy(self.record)
        self.buffer = EditBuffer.from_record(self.snapshot)
        self.errors = []
        self.state = RowState.EDITING
        return self.buffer

    def set_value(self, field_name: str, value: Any) -> None:
        self._require("change a field", RowState.EDITING)
        self.buffer.set(field_name, value)

    def update_values(self, values: dict[str, Any]) -> None:
        for field_name, value in values.items():
            self.set_value(field_name, value)

    def cancel_edit(self) -> None:
        """Discard the edit buffer and go back to viewing."""
        self._require("cancel editing", RowState.EDITING)
        self._close_editor()

    def _close_editor(self) -> None:
        self.buffer = None
        self.snapshot = None
        self.errors = []
        self.state = RowState.VIEWING

    def validate(self) -> tuple[dict[InventoryField, Any], list[FieldError]]:
        """Check required fields and parse numeric inputs.

        Every problem is reported at once: a weight that does not parse and
        missing required fields appear together.

        Returns:
            Parsed numeric values keyed by field, and the list of errors.
        """
        parsed: dict[InventoryField, Any] = {}
        errors: list[FieldError] = []

        weight = self.buffer.values.get(InventoryField.WEIGHT)
        if not is_blank(weight):
            number = to_number(weight)
            if number is None or not math.isfinite(number):
                errors.append(FieldError(
                    field=InventoryField.WEIGHT.value,
                    message="Weight must be a valid number",
                    code="invalid_number",
                ))
            else:
                parsed[InventoryField.WEIGHT] = _normalize_number(number)

        box_number = self.buffer.values.get(InventoryField.BOX_NUMBER)
        if not is_blank(box_number):
            number = to_number(box_number)
            if number is None or not math.isfinite(number) or not number.is_integer():
                errors.append(FieldError(
                    field=InventoryField.BOX_NUMBER.value,
                    message="Box number must be a whole number",
                    code="invalid_integer",
                ))
            else:
                parsed[InventoryField.BOX_NUMBER] = int(number)

        for required in self.required_fields:
            if is_blank(self.buffer.values.get(required)):
                errors.append(FieldError(
                    field=required.value,
                    message=f"{field_label(required.value)} is required",
                    code="required_missing",
                ))

        return parsed, errors

    def pending_changes(self) -> list[FieldChange]:
        """Changes the buffer would save right now (numeric fields parsed when valid)."""
        self._require("diff", RowState.EDITING, RowState.SAVING)
        parsed, _ = self.validate()
        candidate = self.buffer.to_record(parsed)
        return compute_changes(self.snapshot, candidate, self.buffer.field_names())

    async def save(self) -> SaveResult:
        """Validate, diff, persist and report the edit."""
        self._require("save", RowState.EDITING)

        parsed, errors = self.validate()
        if errors:
            self.errors = errors
            missing = [field_label(e.field) for e in errors if e.code == "required_missing"]
            if missing:
                self.notifier.notify(
                    NoticeLevel.ERROR, f"Missing required fields: {', '.join(missing)}"
                )
            for error in errors:
                if error.code != "required_missing":
                    self.notifier.notify(NoticeLevel.ERROR, error.message)
            logger.info(
                "Row save blocked by validation",
                record_id=self.record_id,
                errors=[e.code for e in errors],
            )
            return SaveResult(status=SaveStatus.INVALID, errors=errors)

        candidate = self.buffer.to_record(parsed)
        changes = compute_changes(self.snapshot, candidate, self.buffer.field_names())
        if not changes:
            self.notifier.notify(NoticeLevel.INFO, "No changes")
            self._close_editor()
            return SaveResult(status=SaveStatus.NO_CHANGES, record=self.record)

        self.errors = []
        self.state = RowState.SAVING
        self.phase = CommitPhase.PENDING
        try:
            saved = await self.store.update_record(self.record_id, candidate)
        except StoreError as e:
            self.phase = CommitPhase.ROLLED_BACK
            self.state = RowState.EDITING
            logger.error(
                "Error updating inventory record",
                record_id=self.record_id,
                error=str(e),
            )
            self.notifier.notify(NoticeLevel.ERROR, "Error updating inventory")
            return SaveResult(status=SaveStatus.FAILED, changes=changes)

        self.phase = CommitPhase.COMMITTED
        saved = saved or candidate

        box = stringify(saved.get(InventoryField.BOX_NUMBER.value))
        kind = stringify(saved.get(InventoryField.TYPE.value))
        await self._write_audit(
            AuditEntry(
                record_id=self.record_id,
                action=AuditAction.UPDATE,
                actor=self.actor,
                changes=changes,
                summary=describe_changes(changes),
            ),
            f"Updated inventory item (Box {box} - {kind}). Changes: {describe_changes(changes)}",
        )

        self.record = copy.deepcopy(saved)
        self._close_editor()
        logger.info(
            "Inventory record updated",
            record_id=self.record_id,
            actor=self.actor,
            changed_fields=[c.field for c in changes],
        )
        self.notifier.notify(NoticeLevel.SUCCESS, "Inventory updated successfully!")
        await self._notify_caller(copy.deepcopy(saved))
        return SaveResult(status=SaveStatus.SAVED, record=saved, changes=changes)

    # Deleting

    def request_delete(self) -> None:
        """First stage of deletion: ask for confirmation."""
        self._require("request deletion", RowState.VIEWING, RowState.EDITING)
        self._state_before_delete = self.state
        self.state = RowState.CONFIRMING_DELETE

    def cancel_delete(self) -> None:
        self._require("cancel deletion", RowState.CONFIRMING_DELETE)
        self.state = self._state_before_delete

    async def confirm_delete(self) -> DeleteResult:
        """Second stage of deletion: delete, audit and tell the caller."""
        self._require("delete", RowState.CONFIRMING_DELETE)

        self.state = RowState.DELETING
        self.phase = CommitPhase.PENDING
        try:
            await self.store.delete_record(self.record_id)
        except StoreError as e:
            self.phase = CommitPhase.ROLLED_BACK
            self.state = self._state_before_delete
            logger.error(
                "Error deleting inventory record",
                record_id=self.record_id,
                error=str(e),
            )
            self.notifier.notify(NoticeLevel.ERROR, "Error deleting inventory")
            return DeleteResult(status=DeleteStatus.FAILED)

        self.phase = CommitPhase.COMMITTED
        deleted = copy.deepcopy(self.record)
        summary = describe_deleted(deleted)
        await self._write_audit(
            AuditEntry(
                record_id=self.record_id,
                action=AuditAction.DELETE,
                actor=self.actor,
                summary=summary,
                snapshot=deleted,
            ),
            summary,
        )

        self.buffer = None
        self.snapshot = None
        self.state = RowState.REMOVED
        logger.info("Inventory record deleted", record_id=self.record_id, actor=self.actor)
        self.notifier.notify(NoticeLevel.SUCCESS, "Inventory entry deleted!")
        await self._notify_caller({**deleted, DELETED_MARKER: True})
        return DeleteResult(status=DeleteStatus.DELETED, record=deleted)

    # Write-back helpers

    async def _write_audit(self, entry: AuditEntry, activity_message: str) -> None:
        # Runs after the primary write has committed; a failure here leaves
        # the change without a history entry and is only reported.
        try:
            await self.store.append_history(entry)
            await self.store.log_activity(ActivityEntry(message=activity_message, logged_by=self.actor))
        except StoreError as e:
            logger.error(
                "Failed to write audit trail",
                record_id=entry.record_id,
                action=entry.action.value,
                error=str(e),
            )
            self.notifier.notify(NoticeLevel.WARNING, "Change saved, but its history entry could not be written")

    async def _notify_caller(self, record: Record) -> None:
        if self.on_row_update is None:
            return
        result = self.on_row_update(record)
        if inspect.isawaitable(result):
            await result
