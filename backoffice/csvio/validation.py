from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from ..models.config_models import ImportContract, record_key
from ..models.import_result import (
    COLUMN_COUNT_ERROR,
    INVALID_NUMBER_ERROR,
    MISSING_FIELD_ERROR,
    ImportResult,
    RowError,
)
from ..models.numeric import parse_number
from ..models.row_data import RowData
from .reader import CsvData, parse_text, split_fields

"""Row validation for the bulk import pipeline.

Each data row is validated on its own and ends up either as a RowData (valid
record) or as a RowError; nothing here raises past the row boundary and
nothing touches the record store.

Per row:
1. field count must equal the header field count ("Invalid number of columns")
2. numeric columns are parsed; a value that is not a number, empty included,
   gives "Invalid <column>"
3. required columns must be a non-empty string / a number ("Missing <column>")
"""

__all__ = [
    "ProgressCallback",
    "parse_import",
    "validate_row",
    "validate_rows",
]

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]  # (processed, total)


def _column_label(column: str) -> str:
    return column.strip().lower()


def validate_row(
    row_number: int,
    fields: list[str],
    header: list[str],
    contract: ImportContract,
) -> RowData | RowError:
    """Validate one split data row against the header and contract."""
    if len(fields) != len(header):
        sku = None
        if "SKU" in header and header.index("SKU") < len(fields):
            sku = fields[header.index("SKU")] or None
        return RowError(row_number, "Invalid number of columns", sku=sku, error_type=COLUMN_COUNT_ERROR)

    raw = dict(zip(header, fields, strict=True))
    sku = raw.get("SKU") or None
    declared = set(contract.columns)
    values: dict[str, Any] = {}

    for column, value in raw.items():
        if column not in declared:
            continue
        if column in contract.numeric_columns:
            number = parse_number(value)
            if number is None:
                return RowError(row_number, f"Invalid {_column_label(column)}", sku=sku,
                                error_type=INVALID_NUMBER_ERROR)
            values[record_key(column)] = number
        else:
            values[record_key(column)] = value

    for column in header:
        if column not in contract.required_columns:
            continue
        if values.get(record_key(column)) in (None, ""):
            return RowError(row_number, f"Missing {_column_label(column)}", sku=sku,
                            error_type=MISSING_FIELD_ERROR)

    return RowData(row_number=row_number, values=values, raw_values=raw)


def validate_rows(
    data: CsvData,
    contract: ImportContract,
    delimiter: str = ",",
    quoted: bool = False,
    on_progress: ProgressCallback | None = None,
) -> ImportResult:
    """Validate every data line, collecting records and errors in input order.

    One bad row never affects another: the loop always runs to the end.
    ``on_progress`` receives (processed, total) after each row; it is advisory.
    """
    undeclared = [c for c in data.header if c not in contract.columns]
    if undeclared:
        logger.warning(
            "importer=%s ignoring undeclared columns %s", contract.name, undeclared
        )

    rows: list[RowData] = []
    errors: list[RowError] = []
    total = len(data.lines)
    for index, line in enumerate(data.lines, start=1):
        fields = split_fields(line, delimiter=delimiter, quoted=quoted)
        outcome = validate_row(index, fields, data.header, contract)
        if isinstance(outcome, RowError):
            logger.debug("importer=%s %s", contract.name, outcome)
            errors.append(outcome)
        else:
            rows.append(outcome)
        if on_progress is not None:
            on_progress(index, total)
    return ImportResult(rows=rows, errors=errors)


def parse_import(
    text: str,
    contract: ImportContract,
    delimiter: str = ",",
    quoted: bool = False,
    on_progress: ProgressCallback | None = None,
) -> ImportResult:
    """Parse and validate a whole text blob.

    Raises:
        SourceFileError: the text has no header line
        HeaderContractError: the header misses contract columns
    """
    data = parse_text(text, contract, delimiter=delimiter, quoted=quoted)
    return validate_rows(data, contract, delimiter=delimiter, quoted=quoted, on_progress=on_progress)
