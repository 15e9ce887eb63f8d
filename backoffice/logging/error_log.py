from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Per-run error log (JSON Lines).

Records are buffered while an import runs and written in one flush to
``<log_dir>/errors-<importer>-YYYYMMDD-HHMMSS.log`` (UTC). Nothing is created
on disk for a run without errors.
"""

__all__ = [
    "ErrorLogBuffer",
    "ErrorRecord",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """Buffer of ErrorRecord for one import run; one buffer per run, no locking."""

    def __init__(self, logs_dir: Path | None = None, *, run_label: str | None = None) -> None:
        self.logs_dir = logs_dir if logs_dir is not None else LOGS_DIR
        self.run_label = run_label
        self._pending: list[ErrorRecord] = []
        self._path: Path | None = None
        self.written = 0

    @property
    def pending(self) -> tuple[ErrorRecord, ...]:
        return tuple(self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    def _resolve_path(self) -> Path:
        # fixed on first flush so later flushes of the run append to the same file
        if self._path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            name = f"errors-{self.run_label}-{stamp}.log" if self.run_label else f"errors-{stamp}.log"
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            self._path = self.logs_dir / name
        return self._path

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)

    def extend(self, records: Iterable[ErrorRecord]) -> None:
        self._pending.extend(records)

    def flush(self) -> Path | None:
        """Append pending records to the run's file.

        Returns:
            The log path, or None when nothing was pending (no file is created)

        Raises:
            OSError: the log directory or file cannot be written; records stay pending
        """
        if not self._pending:
            return None
        path = self._resolve_path()
        lines = "".join(record.to_json_line() + "\n" for record in self._pending)
        with path.open("a", encoding="utf-8") as f:
            f.write(lines)
        self.written += len(self._pending)
        self._pending.clear()
        return path
