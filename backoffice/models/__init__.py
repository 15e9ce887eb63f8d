"""Domain models for the retail back-office core.

This package contains the domain model classes shared by the pricing engine,
the CSV import pipeline and the services around them.
"""

from .config_models import (
    AppConfig,
    CommitPolicy,
    DatabaseConfig,
    HeaderMode,
    ImportContract,
    ImportSettings,
    PricingConfig,
)
from .import_result import ImportReport, ImportResult, RowError
from .row_data import RowData

__all__ = [
    # Configuration models
    "AppConfig",
    "CommitPolicy",
    "DatabaseConfig",
    "HeaderMode",
    "ImportContract",
    "ImportSettings",
    "PricingConfig",
    # Processing models
    "ImportReport",
    "ImportResult",
    "RowData",
    "RowError",
]
