from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""RowData model for the CSV bulk import pipeline.

RowData represents one data line of an uploaded file after it passed
column-count, numeric and required-field validation.
"""

__all__ = [
    "RowData",
]


@dataclass(frozen=True)
class RowData:
    """Logical representation of a single validated row.

    The row_number is the 1-based data row index (the header line is not
    counted); it is only used for error reporting and never carries meaning
    for the record itself.
    """
    row_number: int  # 1-based, header excluded
    values: dict[str, Any]  # record key -> coerced value (the persisted record)
    raw_values: dict[str, str] | None = None  # header name -> trimmed raw string

    @property
    def sku(self) -> str | None:
        """Identifying SKU when the importer has one (used in error reports)."""
        sku = self.values.get("sku")
        return str(sku) if sku not in (None, "") else None
