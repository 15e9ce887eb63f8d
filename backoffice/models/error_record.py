from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

from .import_result import RowError

"""ErrorRecord model for error logging.

This module defines the ErrorRecord dataclass used for structured error logging
of import runs. It supports row=-1 as a sentinel value for file-level errors
(unreadable file, header contract violation) where no data row is involved.

Each record serializes to one JSON Lines entry with a fixed key set:
timestamp, source, importer, row, error_type, message, sku.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        source: Uploaded file name (or "<text>" for in-memory input)
        importer: Import contract name (products, categories, variants ...)
        row: Data row number (1-based). Use -1 for file-level errors
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Operator facing message
        sku: Identifying SKU of the row when known
    """
    timestamp: str  # ISO8601 UTC
    source: str
    importer: str
    row: int  # -1 for file-level errors
    error_type: str  # UPPER_SNAKE
    message: str
    sku: str | None = None

    @staticmethod
    def create(
        source: str,
        importer: str,
        row: int,
        error_type: str,
        message: str,
        sku: str | None = None,
    ) -> ErrorRecord:
        """Create a new ErrorRecord with current UTC timestamp."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            source=source,
            importer=importer,
            row=row,
            error_type=error_type,
            message=message,
            sku=sku,
        )

    @staticmethod
    def from_row_error(source: str, importer: str, error: RowError) -> ErrorRecord:
        return ErrorRecord.create(
            source=source,
            importer=importer,
            row=error.row_number,
            error_type=error.error_type,
            message=str(error),
            sku=error.sku,
        )

    def to_json_line(self) -> str:
        """Serialize ErrorRecord to JSON Lines format (no extra keys)."""
        return json.dumps(asdict(self), ensure_ascii=False)
