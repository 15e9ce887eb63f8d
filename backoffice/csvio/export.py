from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import pandas as pd

from ..models.config_models import ImportContract
from ..models.import_result import RowError

"""Downloadable CSV files: error list export and importer sample templates."""

__all__ = [
    "ERROR_EXPORT_COLUMNS",
    "errors_frame",
    "export_errors",
    "template_text",
    "write_template",
]

ERROR_EXPORT_COLUMNS = ["line", "row", "sku", "message"]


def errors_frame(errors: Iterable[RowError]) -> pd.DataFrame:
    records = [
        {"line": e.line_number, "row": e.row_number, "sku": e.sku or "", "message": e.message}
        for e in errors
    ]
    return pd.DataFrame(records, columns=ERROR_EXPORT_COLUMNS)


def export_errors(errors: Iterable[RowError], path: Path | None = None) -> str:
    """Write the error list as CSV.

    Returns the CSV text; when ``path`` is given the same text is written there.
    """
    text = errors_frame(errors).to_csv(index=False, lineterminator="\n")
    if path is not None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return text


def template_text(contract: ImportContract) -> str:
    frame = pd.DataFrame(list(contract.sample_rows), columns=list(contract.columns))
    return frame.to_csv(index=False, lineterminator="\n")


def write_template(contract: ImportContract, path: Path) -> Path:
    """Write the sample file operators download before filling their own."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(template_text(contract), encoding="utf-8")
    return path
