from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""Config dataclasses for the retail back-office core.

This module defines the typed configuration models: database fallback
settings, pricing defaults, import settings and the column contracts each
importer validates uploaded files against.
"""

__all__ = [
    "AppConfig",
    "CommitPolicy",
    "DatabaseConfig",
    "HeaderMode",
    "ImportContract",
    "ImportSettings",
    "PricingConfig",
    "record_key",
]


class HeaderMode(Enum):
    """How an uploaded header is checked against a contract.

    - SUBSET: required columns must be present, other columns are allowed
    - ALL: every declared column must be present
    """
    SUBSET = "subset"
    ALL = "all"


class CommitPolicy(Enum):
    """What the caller does with a partially valid batch.

    - ALL_OR_NOTHING: any row error rejects the batch, nothing is persisted
    - PARTIAL: valid rows are persisted, errors are reported separately
    """
    ALL_OR_NOTHING = "all_or_nothing"
    PARTIAL = "partial"


def record_key(column: str) -> str:
    """Record key for a header column: ``"Purchase Price"`` -> ``"purchase_price"``."""
    return column.strip().lower().replace(" ", "_")


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ImportContract:
    """Column contract of one importer.

    Declares the columns an uploaded file may carry, which of them must be
    present (header check) and non-empty (row check), and which are parsed as
    numbers.
    """
    name: str  # importer name (products / categories / variants)
    table: str  # destination table in the record store
    columns: tuple[str, ...]  # declared columns, template order
    required_columns: frozenset[str]
    numeric_columns: frozenset[str] = frozenset()
    header_mode: HeaderMode = HeaderMode.SUBSET
    sample_rows: tuple[tuple[str, ...], ...] = ()  # rows of the downloadable template

    @property
    def expected_columns(self) -> set[str]:
        """Columns that must exist in the uploaded header."""
        if self.header_mode is HeaderMode.ALL:
            return set(self.columns)
        return set(self.required_columns)

    def missing_columns(self, header: list[str]) -> list[str]:
        present = set(header)
        # declared order keeps the error message stable
        return [c for c in self.columns if c in self.expected_columns and c not in present]


@dataclass(frozen=True)
class PricingConfig:
    tax_rate: float = 0.20
    vat_regime: str = "normal"  # normal | margin
    channels: tuple[str, ...] = ("retail", "pro")


@dataclass(frozen=True)
class ImportSettings:
    delimiter: str = ","
    quoted_fields: bool = False  # True: honour "..." quoting, else literal split
    commit_policy: CommitPolicy = CommitPolicy.ALL_OR_NOTHING
    log_dir: str = "./logs"


@dataclass(frozen=True)
class AppConfig:
    """Root configuration object."""
    pricing: PricingConfig = field(default_factory=PricingConfig)
    imports: ImportSettings = field(default_factory=ImportSettings)
    contracts: dict[str, ImportContract] = field(default_factory=dict)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
