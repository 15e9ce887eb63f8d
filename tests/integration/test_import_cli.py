from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from backoffice.cli import main as cli_main

"""End-to-end CLI imports in mock mode (DISABLE_DB_CONNECT=1 via temp_workdir)."""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY importer=(\w+) rows=(\d+) valid=(\d+) failed=(\d+) committed=(\d+) "
    r"status=(ok|partial|rejected|fatal) elapsed_sec=([0-9]+\.?[0-9]*)$",
    re.MULTILINE,
)


def _summary(out: str) -> dict[str, Any]:
    match = SUMMARY_PATTERN.search(out)
    assert match is not None, f"SUMMARY line not found or malformed in output: {out}"
    importer, rows, valid, failed, committed, status, _ = match.groups()
    return {
        "importer": importer,
        "rows": int(rows),
        "valid": int(valid),
        "failed": int(failed),
        "committed": int(committed),
        "status": status,
    }


def test_clean_import_success(temp_workdir: Path, clean_logging, capsys):
    f = temp_workdir / "data" / "categories.csv"
    f.write_text("Type,Brand,Model\nSMARTPHONE,APPLE,IPHONE 14\nSMARTPHONE,SAMSUNG,GALAXY S23\n", encoding="utf-8")
    code = cli_main(["import", "categories", str(f)])
    out = capsys.readouterr().out
    assert code == 0
    assert _summary(out) == {
        "importer": "categories",
        "rows": 2,
        "valid": 2,
        "failed": 0,
        "committed": 2,
        "status": "ok",
    }
    assert not list((temp_workdir / "logs").glob("errors-*.log"))


def test_all_or_nothing_rejects(temp_workdir: Path, products_csv: Path, clean_logging, capsys):
    code = cli_main(["import", "products", str(products_csv)])
    out = capsys.readouterr().out
    assert code == 2
    summary = _summary(out)
    assert summary["status"] == "rejected"
    assert summary["committed"] == 0
    assert "ERROR Line 4: Invalid purchase price" in out


def test_partial_policy_with_error_export(temp_workdir: Path, products_csv: Path, clean_logging, capsys):
    code = cli_main(
        ["import", "products", str(products_csv), "--policy", "partial", "--errors-out", "out/errors.csv"]
    )
    out = capsys.readouterr().out
    assert code == 2
    summary = _summary(out)
    assert (summary["valid"], summary["failed"], summary["committed"]) == (4, 1, 4)
    exported = (temp_workdir / "out" / "errors.csv").read_text(encoding="utf-8").splitlines()
    assert exported == ["line,row,sku,message", "4,3,SKU-C,Invalid purchase price"]
    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    record = json.loads(logs[0].read_text(encoding="utf-8").splitlines()[0])
    assert record["importer"] == "products"
    assert record["source"] == "products.csv"


def test_duplicate_sku_in_file(temp_workdir: Path, clean_logging, capsys):
    f = temp_workdir / "data" / "dups.csv"
    f.write_text(
        "Name,SKU,EAN,Purchase Price,Stock\nA,SKU1,1,10,1\nB,SKU1,2,20,2\nC,SKU2,3,30,3\n",
        encoding="utf-8",
    )
    code = cli_main(["import", "products", str(f)])
    out = capsys.readouterr().out
    assert code == 2
    assert _summary(out)["committed"] == 2
    assert "Line 3: Save failed: duplicate key" in out


def test_header_violation_is_fatal(temp_workdir: Path, clean_logging, capsys):
    f = temp_workdir / "data" / "bad.csv"
    f.write_text("Name,SKU,EAN,Purchase Price\nPhone,SKU1,111,100\n", encoding="utf-8")
    code = cli_main(["import", "products", str(f)])
    out = capsys.readouterr().out
    assert code == 1
    assert _summary(out)["status"] == "fatal"
    assert "missing columns Stock" in out


def test_dry_run(temp_workdir: Path, products_csv: Path, clean_logging, capsys):
    code = cli_main(["import", "products", str(products_csv), "--dry-run", "--policy", "partial"])
    out = capsys.readouterr().out
    assert code == 2
    assert "mode=dry-run committed_rows=0" in out


def test_configured_importer_and_delimiter(write_config: Path, temp_workdir: Path, clean_logging, capsys):
    f = temp_workdir / "data" / "suppliers.csv"
    f.write_text("Name,Email\nACME,a@acme.example\nGlobex,\n", encoding="utf-8")
    code = cli_main(["import", "suppliers", str(f)])
    out = capsys.readouterr().out
    assert code == 0
    assert _summary(out)["committed"] == 2
