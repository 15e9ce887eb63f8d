"""Delimited text import: reading, header contracts, row validation, export."""

from .contracts import BUILTIN_CONTRACTS, get_contract
from .reader import HeaderContractError, ImportAbortedError, SourceFileError
from .validation import parse_import, validate_rows

__all__ = [
    "BUILTIN_CONTRACTS",
    "HeaderContractError",
    "ImportAbortedError",
    "SourceFileError",
    "get_contract",
    "parse_import",
    "validate_rows",
]
