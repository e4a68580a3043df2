"""
Row comparison helpers shared by chart widgets and the drill navigator.

Rows are dicts of column -> scalar (str, number, bool or None).
Equality is key-wise over that closed scalar type: bool never equals a
number, ints and floats compare numerically, None only equals None.
"""

import math
from typing import List, Optional

from state import Row, Scalar


_MISSING = object()


def _kind(value) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    return "string"


def scalar_equals(a: Scalar, b: Scalar) -> bool:
    if _kind(a) != _kind(b):
        return False
    if isinstance(a, float) and math.isnan(a):
        return False
    return a == b


def rows_match(candidate: Row, selected: Row) -> bool:
    """
    True when every key of `selected` exists in `candidate` with an equal value.
    A key missing from the candidate never matches.
    """
    for key, value in selected.items():
        other = candidate.get(key, _MISSING)
        if other is _MISSING:
            return False
        if not scalar_equals(other, value):
            return False
    return True


def intersect_rows(own_rows: List[Row], selected_rows: List[Row]) -> List[Row]:
    """Rows of `own_rows` (in their order) matching at least one selected row."""
    return [
        row for row in own_rows
        if any(rows_match(row, sel) for sel in selected_rows)
    ]


def category_label(value: Scalar) -> Optional[str]:
    """
    Name used for a value on a category axis / pie slice.
    Returns None for values that cannot form a category (None, "").
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    label = str(value)
    return label if label != "" else None


def value_matches_category(value: Scalar, clicked: Scalar) -> bool:
    """A row value matches a clicked category by scalar equality or by label."""
    if scalar_equals(value, clicked):
        return True
    if isinstance(clicked, str):
        return category_label(value) == clicked
    return False
