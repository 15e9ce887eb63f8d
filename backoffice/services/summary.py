from __future__ import annotations

from ..models.import_result import ImportReport

"""SUMMARY line rendering for import runs."""

__all__ = [
    "format_seconds",
    "render_summary_line",
]


def format_seconds(value: float) -> str:
    """Compact number: integers without decimals, tiny values without exponent."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(round(value, 3))


def render_summary_line(report: ImportReport) -> str:
    """Render the SUMMARY line of an import run.

    Format:
    SUMMARY importer={name} rows={total} valid={valid} failed={failed}
    committed={committed} status={ok|partial|rejected|fatal} elapsed_sec={elapsed}

    Examples:
        >>> from datetime import datetime, timezone
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> report = ImportReport(importer="products", source="p.csv", start_time=t,
        ...                       end_time=t, elapsed_seconds=2.0)
        >>> render_summary_line(report)
        'SUMMARY importer=products rows=0 valid=0 failed=0 committed=0 status=ok elapsed_sec=2'
    """
    if report.is_fatal:
        status = "fatal"
    elif report.rejected:
        status = "rejected"
    elif report.failed_rows:
        status = "partial"
    else:
        status = "ok"
    return (
        f"SUMMARY importer={report.importer} "
        f"rows={report.total_rows} "
        f"valid={len(report.result.rows)} "
        f"failed={report.failed_rows} "
        f"committed={report.committed_rows} "
        f"status={status} "
        f"elapsed_sec={format_seconds(report.elapsed_seconds)}"
    )
