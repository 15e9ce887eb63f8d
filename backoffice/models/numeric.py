from __future__ import annotations

import math
import re
from typing import Any

"""Numeric parsing shared by the pricing engine and the CSV import pipeline.

Both cores read numbers typed by an operator (form input or spreadsheet cell)
and must treat them the same way:
- surrounding whitespace is ignored
- the leading numeric part is used (``"12.5 EUR"`` -> 12.5), trailing text ignored
- nothing numeric at the start, NaN or +/-Infinity -> ``None``
"""

__all__ = [
    "parse_number",
    "round_display",
]

_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_number(value: Any) -> float | None:
    """Parse an operator supplied value into a finite float.

    Returns ``None`` when the value cannot be read as a finite number. ``bool``
    is rejected explicitly since it is an ``int`` subclass.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None
    if not isinstance(value, str):
        return None
    match = _LEADING_NUMBER.match(value.strip())
    if match is None:
        return None
    try:
        number = float(match.group(0))
    except ValueError:  # pragma: no cover - regex only admits float syntax
        return None
    return number if math.isfinite(number) else None


def round_display(value: float | None, places: int = 2) -> float | None:
    """Round a value for display. ``None`` stays ``None`` (blank field)."""
    if value is None:
        return None
    return round(value, places)
