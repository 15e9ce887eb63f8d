# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path
import pytest

from backoffice.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """pricing:
  tax_rate: 0.20
  vat_regime: normal
  channels: [retail, pro]
import:
  delimiter: ","
  commit_policy: partial
  log_dir: ./logs
contracts:
  suppliers:
    table: suppliers
    columns: [Name, Email, Phone]
    required_columns: [Name]
    header_mode: subset
    sample_rows:
      - [ACME Parts, contact@acme.example, "0102030405"]
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "backoffice.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def products_csv_text() -> str:
    # row 3 carries a non numeric purchase price
    return (
        "Name,SKU,EAN,Purchase Price,Stock\n"
        "Phone A,SKU-A,1111111111111,100,5\n"
        "Phone B,SKU-B,2222222222222,80.5,2\n"
        "Phone C,SKU-C,3333333333333,abc,1\n"
        "Phone D,SKU-D,4444444444444,42,0\n"
        "Phone E,SKU-E,5555555555555,12.5,7\n"
    )


@pytest.fixture()
def products_csv(temp_workdir: Path, products_csv_text: str) -> Path:
    f = temp_workdir / "data" / "products.csv"
    f.write_text(products_csv_text, encoding="utf-8")
    return f


@pytest.fixture()
def clean_logging():
    reset_logging()
    yield
    reset_logging()
