"""Value coercion shared by filtering, sorting, diffing and export.

Records arrive from a document store and from spreadsheets, so the same field
may hold ``5``, ``5.0`` or ``"5"``. These helpers give every consumer one
definition of "as text" and "as a number".
"""

import math
from datetime import date, datetime
from decimal import Decimal
from typing import Any


def stringify(value: Any) -> str:
    """Render a cell value as display text.

    ``None`` renders empty, booleans as ``true``/``false`` and integral
    floats without a trailing ``.0``.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def to_number(value: Any) -> float | None:
    """Coerce a value to a finite-or-infinite float, or ``None`` when it is not numeric.

    Blank strings and ``None`` are not numbers. NaN is never returned.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
        return None if math.isnan(number) else number
    if isinstance(value, str):
        text = value.strip()
        if not text or "_" in text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
        return None if math.isnan(number) else number
    return None


def is_blank(value: Any) -> bool:
    """True for ``None`` and whitespace-only strings."""
    return value is None or (isinstance(value, str) and not value.strip())


def values_equal(left: Any, right: Any) -> bool:
    """Compare two cell values the way an edit form sees them.

    When either side is a number and both parse as numbers, they compare
    numerically, so ``5``, ``"5"`` and ``"5.0"`` are equal. Otherwise the
    text renderings are compared.
    """
    if left is None and right is None:
        return True
    left_number = to_number(left) if not isinstance(left, bool) else None
    right_number = to_number(right) if not isinstance(right, bool) else None
    if left_number is not None and right_number is not None:
        if isinstance(left, (int, float)) or isinstance(right, (int, float)):
            return left_number == right_number
    return stringify(left) == stringify(right)
