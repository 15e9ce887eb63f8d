from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    AppConfig,
    CommitPolicy,
    DatabaseConfig,
    HeaderMode,
    ImportContract,
    ImportSettings,
    PricingConfig,
)

"""Config loader.

Responsibilities:
- Load the YAML config (default ``config/backoffice.yml``)
- Validate it against the bundled JSON schema (config_schema.json)
- Apply defaults (tax_rate=0.20, vat_regime=normal, commit_policy=all_or_nothing ...)
- Build typed AppConfig / ImportContract objects
"""

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "ConfigError",
    "default_config",
    "load_config",
]

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/backoffice.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            config data fails schema validation (unknown keys, wrong types ...).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _build_contract(name: str, raw: dict[str, Any]) -> ImportContract:
    columns = tuple(str(c).strip() for c in raw["columns"])
    required = frozenset(raw.get("required_columns", columns))
    numeric = frozenset(raw.get("numeric_columns", []))
    unknown = (required | numeric) - set(columns)
    if unknown:
        raise ConfigError(
            f"contract '{name}': columns {sorted(unknown)} are not declared in 'columns'"
        )
    sample_rows = tuple(tuple(row) for row in raw.get("sample_rows", []))
    for row in sample_rows:
        if len(row) != len(columns):
            raise ConfigError(f"contract '{name}': sample row {list(row)} does not match columns")
    return ImportContract(
        name=name,
        table=raw["table"],
        columns=columns,
        required_columns=required,
        numeric_columns=numeric,
        header_mode=HeaderMode(raw.get("header_mode", HeaderMode.SUBSET.value)),
        sample_rows=sample_rows,
    )


def _build_config(data: dict[str, Any]) -> AppConfig:
    pricing_raw = data.get("pricing", {})
    pricing = PricingConfig(
        tax_rate=float(pricing_raw.get("tax_rate", 0.20)),
        vat_regime=pricing_raw.get("vat_regime", "normal"),
        channels=tuple(pricing_raw.get("channels", ("retail", "pro"))),
    )
    import_raw = data.get("import", {})
    imports = ImportSettings(
        delimiter=import_raw.get("delimiter", ","),
        quoted_fields=bool(import_raw.get("quoted_fields", False)),
        commit_policy=CommitPolicy(import_raw.get("commit_policy", "all_or_nothing")),
        log_dir=import_raw.get("log_dir", "./logs"),
    )
    contracts = {
        name: _build_contract(name, raw) for name, raw in (data.get("contracts") or {}).items()
    }
    db_raw = data.get("database", {})
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    return AppConfig(pricing=pricing, imports=imports, contracts=contracts, database=db)


def default_config() -> AppConfig:
    """Configuration used when no config file is present."""
    return _build_config({})


def load_config(path: Path) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)
    return _build_config(data)
