from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm

"""Row progress of an import run.

A tqdm bar is drawn only when stdout is a terminal; redirected output (CI,
log files) just keeps the counters. The counter only moves forward and is
advisory: it has no influence on which rows are imported.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and a progress bar should be displayed."""
    return sys.stdout.isatty()


def _make_bar(total: int, description: str) -> Any:
    return tqdm(
        total=total,
        desc=description,
        unit="row",
        disable=False,
        leave=True,
        position=0,
        ncols=80,
        ascii=True,
    )


class ProgressTracker:
    """Processed / total data rows for one run. Usable as a context manager."""

    def __init__(self, total_rows: int, *, description: str = "Importing rows") -> None:
        self.total_rows = total_rows
        self.description = description
        self.processed = 0
        self.enabled = is_tty_enabled()
        self.pbar: Any | None = _make_bar(total_rows, description) if self.enabled else None

    @property
    def fraction(self) -> float:
        """Share of rows processed, 1.0 for an empty file."""
        return self.processed / self.total_rows if self.total_rows else 1.0

    def update(self, processed: int, total: int | None = None) -> None:
        """Advance to ``processed``; a lower value than the current one is ignored."""
        if total is not None and total != self.total_rows:
            self.total_rows = total
            if self.pbar is not None:
                self.pbar.total = total
                self.pbar.refresh()
        target = min(processed, self.total_rows)
        if target <= self.processed:
            return
        step, self.processed = target - self.processed, target
        if self.pbar is not None:
            self.pbar.update(step)

    def set_postfix(self, **counters: Any) -> None:
        if self.pbar is not None:
            self.pbar.set_postfix(**counters)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
