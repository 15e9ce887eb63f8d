from __future__ import annotations

import json
from pathlib import Path

import pytest

from backoffice.logging.error_log import ErrorLogBuffer
from backoffice.models.error_record import ErrorRecord


def _rec(row: int) -> ErrorRecord:
    return ErrorRecord.create("p.csv", "products", row, "INVALID_NUMBER_ERROR", f"Line {row + 1}: Invalid stock")


def test_flush_writes_json_lines(tmp_path: Path):
    buf = ErrorLogBuffer(tmp_path / "logs")
    buf.append(_rec(1))
    buf.extend([_rec(2), _rec(3)])
    path = buf.flush()
    assert path is not None
    assert path.name.startswith("errors-") and path.suffix == ".log"
    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["row"] for line in lines] == [1, 2, 3]


def test_flush_empty_writes_nothing(tmp_path: Path):
    buf = ErrorLogBuffer(tmp_path / "logs")
    assert buf.flush() is None
    assert not (tmp_path / "logs").exists()


def test_flush_appends_to_same_file(tmp_path: Path):
    buf = ErrorLogBuffer(tmp_path)
    buf.append(_rec(1))
    first = buf.flush()
    buf.append(_rec(2))
    second = buf.flush()
    assert first == second
    assert len(second.read_text(encoding="utf-8").splitlines()) == 2


def test_run_label_in_file_name(tmp_path: Path):
    buf = ErrorLogBuffer(tmp_path, run_label="products")
    buf.append(_rec(1))
    assert len(buf) == 1
    path = buf.flush()
    assert path.name.startswith("errors-products-")
    assert buf.written == 1
    assert buf.pending == ()


def test_flush_failure_keeps_records(tmp_path: Path):
    blocker = tmp_path / "logs"
    blocker.write_text("not a directory", encoding="utf-8")
    buf = ErrorLogBuffer(blocker)
    buf.append(_rec(1))
    with pytest.raises(OSError):
        buf.flush()
    assert len(buf.pending) == 1
