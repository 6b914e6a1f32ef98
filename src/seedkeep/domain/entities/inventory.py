"""Inventory entry fields and the typed edit buffer.

An inventory entry is one seed lot stored in a numbered box. Records travel
through the grid as plain dicts; the edit buffer splits them into the closed
set of known fields and a separate map for columns discovered at import time.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from seedkeep.domain.entities.grid import ColumnDef


class InventoryField(str, Enum):
    """Known inventory fields, in form order."""

    BOX_NUMBER = "box_number"
    SHELF_CODE = "shelf_code"
    TYPE = "type"
    AREA_PLANTED = "area_planted"
    YEAR = "year"
    SEASON = "season"
    LOCATION = "location"
    DESCRIPTION = "description"
    PEDIGREE = "pedigree"
    WEIGHT = "weight"
    REMARKS = "remarks"


TYPE_OPTIONS: tuple[str, ...] = ("white", "yellow", "sorghum", "special maize")
AREA_PLANTED_OPTIONS: tuple[str, ...] = ("LBTR", "LBPD", "CMU")
SEASON_OPTIONS: tuple[str, ...] = ("wet", "dry")

ENUM_OPTIONS: dict[str, tuple[str, ...]] = {
    InventoryField.TYPE.value: TYPE_OPTIONS,
    InventoryField.AREA_PLANTED.value: AREA_PLANTED_OPTIONS,
    InventoryField.SEASON.value: SEASON_OPTIONS,
}

REQUIRED_FIELDS: tuple[InventoryField, ...] = (
    InventoryField.BOX_NUMBER,
    InventoryField.TYPE,
    InventoryField.AREA_PLANTED,
    InventoryField.YEAR,
    InventoryField.SEASON,
    InventoryField.LOCATION,
    InventoryField.DESCRIPTION,
    InventoryField.PEDIGREE,
    InventoryField.WEIGHT,
)

# Fields edited through text inputs and parsed back to numbers on save
NUMERIC_FIELDS: tuple[InventoryField, ...] = (
    InventoryField.BOX_NUMBER,
    InventoryField.WEIGHT,
)

ID_FIELD = "id"
DELETED_MARKER = "deleted"
SYSTEM_FIELDS: frozenset[str] = frozenset({ID_FIELD, "added_at", "added_by", "creator_id"})

FIELD_LABELS: dict[str, str] = {
    InventoryField.BOX_NUMBER.value: "Box Number",
    InventoryField.SHELF_CODE.value: "Shelf Code",
    InventoryField.TYPE.value: "Type",
    InventoryField.AREA_PLANTED.value: "Area Planted",
    InventoryField.YEAR.value: "Year(s)",
    InventoryField.SEASON.value: "Season",
    InventoryField.LOCATION.value: "Location",
    InventoryField.DESCRIPTION.value: "Description",
    InventoryField.PEDIGREE.value: "Pedigree",
    InventoryField.WEIGHT.value: "Weight",
    InventoryField.REMARKS.value: "Remarks",
}

_KNOWN = {f.value: f for f in InventoryField}


def field_label(name: str) -> str:
    """Human-readable label for a field name (``area_planted`` -> ``Area Planted``)."""
    if name in FIELD_LABELS:
        return FIELD_LABELS[name]
    return name.replace("_", " ").title()


@dataclass
class EditBuffer:
    """Mutable copy of a record being edited.

    Attributes:
        record_id: Identifier of the record being edited.
        values: Known inventory fields.
        extra: Any other non-system key carried by the record.
        system: System fields (id, added_at...) carried through unchanged.
    """

    record_id: str
    values: dict[InventoryField, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)
    system: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "EditBuffer":
        """Clone a record into a buffer; numeric fields become strings for text inputs."""
        snapshot = copy.deepcopy(record)
        buffer = cls(record_id=str(snapshot.get(ID_FIELD, "")))
        for key, value in snapshot.items():
            if key in _KNOWN:
                known = _KNOWN[key]
                if known in NUMERIC_FIELDS and value is not None:
                    value = _number_to_text(value)
                buffer.values[known] = value
            elif key in SYSTEM_FIELDS:
                buffer.system[key] = value
            else:
                buffer.extra[key] = value
        return buffer

    def get(self, name: str, default: Any = None) -> Any:
        if name in _KNOWN:
            return self.values.get(_KNOWN[name], default)
        return self.extra.get(name, default)

    def set(self, name: str, value: Any) -> None:
        if name in SYSTEM_FIELDS:
            raise KeyError(f"System field '{name}' cannot be edited")
        if name in _KNOWN:
            self.values[_KNOWN[name]] = value
        else:
            self.extra[name] = value

    def field_names(self) -> list[str]:
        """Editable field names in form order, then dynamic columns."""
        known = [f.value for f in InventoryField if f in self.values]
        return known + list(self.extra)

    def to_record(self, parsed: dict[InventoryField, Any] | None = None) -> dict[str, Any]:
        """Assemble a full record, substituting parsed numeric values when given."""
        record: dict[str, Any] = dict(self.system)
        record[ID_FIELD] = self.record_id
        for known in InventoryField:
            if known in self.values:
                record[known.value] = self.values[known]
        if parsed:
            for known, value in parsed.items():
                record[known.value] = value
        record.update(self.extra)
        return record


def _number_to_text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def inventory_columns() -> list[ColumnDef]:
    """Column set of the inventory grid, in display order."""
    headers = dict(FIELD_LABELS)
    headers[InventoryField.WEIGHT.value] = "Weight (kg)"
    return [ColumnDef(accessor_key=f.value, header=headers[f.value]) for f in InventoryField]
