from __future__ import annotations

import csv
from dataclasses import dataclass
from pathlib import Path

from ..models.config_models import ImportContract

"""Delimited text reader.

- The first non-empty line is the header, every following non-empty line a data row.
- Header names and values are trimmed.
- A header that does not satisfy the importer contract aborts the whole import
  (HeaderContractError) before any row is looked at.
- Unreadable input (missing file, wrong extension, binary or undecodable
  content, no header line) raises SourceFileError.

Fields are split on a literal delimiter by default, so a value containing the
delimiter shifts the columns of its row. ``quoted=True`` honours "..." quoting
through the csv module instead.
"""

__all__ = [
    "ALLOWED_SUFFIXES",
    "CsvData",
    "HeaderContractError",
    "ImportAbortedError",
    "SourceFileError",
    "read_source_text",
    "split_fields",
    "split_lines",
    "parse_text",
    "validate_header",
]

ALLOWED_SUFFIXES = (".csv",)


class ImportAbortedError(Exception):
    """Input malformation: the import stops before any row is processed."""


class SourceFileError(ImportAbortedError):
    """Raised when the uploaded file cannot be read as delimited text."""


class HeaderContractError(ImportAbortedError):
    """Raised when the header lacks columns required by the importer contract."""

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = missing or []


@dataclass
class CsvData:
    header: list[str]
    lines: list[str]  # non-empty data lines, trimmed, in file order


def read_source_text(path: Path) -> str:
    """Read an uploaded file into a single text blob.

    Accepts UTF-8 with or without BOM. Anything else is a SourceFileError.
    """
    if path.suffix.lower() not in ALLOWED_SUFFIXES:
        raise SourceFileError(f"unsupported file type '{path.suffix or path.name}': expected a .csv file")
    try:
        raw = path.read_bytes()
    except FileNotFoundError as e:
        raise SourceFileError(f"file not found: {path}") from e
    except OSError as e:
        raise SourceFileError(f"cannot read {path}: {e}") from e
    if b"\x00" in raw:
        raise SourceFileError(f"{path.name} is not a text file")
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise SourceFileError(f"{path.name} is not valid UTF-8 text: {e}") from e


def split_lines(text: str) -> list[str]:
    """Split on LF only, trim each line (CR included) and drop the empty ones."""
    return [line.strip() for line in text.split("\n") if line.strip()]


def split_fields(line: str, delimiter: str = ",", quoted: bool = False) -> list[str]:
    """Split one line into trimmed fields."""
    if quoted:
        parsed = next(csv.reader([line], delimiter=delimiter, skipinitialspace=True), [])
        return [value.strip() for value in parsed]
    return [value.strip() for value in line.split(delimiter)]


def validate_header(header: list[str], contract: ImportContract) -> None:
    """Check the header against the importer contract.

    Raises:
        HeaderContractError: if any expected column is missing
    """
    missing = contract.missing_columns(header)
    if missing:
        expected = [c for c in contract.columns if c in contract.expected_columns]
        raise HeaderContractError(
            f"Invalid CSV format for {contract.name}: missing columns {', '.join(missing)}. "
            f"Required columns: {', '.join(expected)}",
            missing=missing,
        )


def parse_text(
    text: str,
    contract: ImportContract,
    delimiter: str = ",",
    quoted: bool = False,
) -> CsvData:
    """Split a text blob into a validated header and its data lines.

    Steps:
    1. Split lines, trim, drop empty lines
    2. First remaining line -> header (split + trim)
    3. Validate header against the contract
    """
    lines = split_lines(text)
    if not lines:
        raise SourceFileError("file is empty: no header line found")
    header = split_fields(lines[0], delimiter=delimiter, quoted=quoted)
    validate_header(header, contract)
    return CsvData(header=header, lines=lines[1:])
