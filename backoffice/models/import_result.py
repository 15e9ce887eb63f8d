from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .row_data import RowData

"""Import result models.

RowError / ImportResult are what the validation phase returns (errors are data,
never exceptions). ImportReport aggregates one orchestrated run: validation,
commit policy and persistence outcome.
"""

__all__ = [
    "RowError",
    "ImportResult",
    "ImportReport",
    "COLUMN_COUNT_ERROR",
    "INVALID_NUMBER_ERROR",
    "MISSING_FIELD_ERROR",
    "PERSISTENCE_ERROR",
]

# error_type classification (UPPER_SNAKE, same vocabulary as the error log)
COLUMN_COUNT_ERROR = "COLUMN_COUNT_ERROR"
INVALID_NUMBER_ERROR = "INVALID_NUMBER_ERROR"
MISSING_FIELD_ERROR = "MISSING_FIELD_ERROR"
PERSISTENCE_ERROR = "PERSISTENCE_ERROR"


@dataclass(frozen=True)
class RowError:
    """Per-row diagnostic surfaced verbatim to the operator.

    Attributes:
        row_number: 1-based data row index (header excluded)
        message: Human readable reason, e.g. "Invalid purchase price"
        sku: Identifying SKU when the row carried one
        error_type: Classification in UPPER_SNAKE_CASE
    """
    row_number: int
    message: str
    sku: str | None = None
    error_type: str = INVALID_NUMBER_ERROR

    @property
    def line_number(self) -> int:
        """Physical line in the uploaded file, the header being line 1."""
        return self.row_number + 1

    def __str__(self) -> str:
        return f"Line {self.line_number}: {self.message}"


@dataclass(frozen=True)
class ImportResult:
    """Validated rows plus per-row errors, both in input order.

    Invariant: ``len(rows) + len(errors)`` equals the number of non-empty data
    lines; a row appears in exactly one of the two lists.
    """
    rows: list[RowData] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)

    @property
    def records(self) -> list[dict[str, Any]]:
        return [row.values for row in self.rows]

    @property
    def total_rows(self) -> int:
        return len(self.rows) + len(self.errors)

    @property
    def ok(self) -> bool:
        return not self.errors

    def messages(self) -> list[str]:
        return [str(e) for e in self.errors]


@dataclass(frozen=True)
class ImportReport:
    """Outcome of one import run (validation + commit policy + persistence)."""
    importer: str  # contract name (products / categories / variants ...)
    source: str  # file name or "<text>"
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    result: ImportResult = field(default_factory=ImportResult)
    committed_rows: int = 0  # rows the store accepted
    persistence_errors: list[RowError] = field(default_factory=list)
    rejected: bool = False  # all-or-nothing policy refused the batch
    fatal_error: str | None = None  # header/file level failure, nothing processed
    error_log_path: str | None = None  # JSON Lines log written for this run

    @property
    def total_rows(self) -> int:
        return self.result.total_rows

    @property
    def failed_rows(self) -> int:
        return len(self.result.errors) + len(self.persistence_errors)

    @property
    def all_errors(self) -> list[RowError]:
        return sorted(
            [*self.result.errors, *self.persistence_errors], key=lambda e: e.row_number
        )

    @property
    def is_fatal(self) -> bool:
        return self.fatal_error is not None

    @property
    def is_complete_success(self) -> bool:
        return not self.is_fatal and not self.rejected and self.failed_rows == 0
