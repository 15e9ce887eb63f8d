from __future__ import annotations

from ..models.config_models import HeaderMode, ImportContract

"""Built-in importer contracts (products, categories, variants).

Additional importers, or overrides of these, come from the ``contracts``
section of the YAML config (see backoffice.config.loader).
"""

__all__ = [
    "BUILTIN_CONTRACTS",
    "CATEGORY_CONTRACT",
    "PRODUCT_CONTRACT",
    "VARIANT_CONTRACT",
    "UnknownContractError",
    "get_contract",
]


class UnknownContractError(LookupError):
    pass


PRODUCT_CONTRACT = ImportContract(
    name="products",
    table="products",
    columns=(
        "Name",
        "SKU",
        "EAN",
        "Purchase Price",
        "Stock",
        "Stock Alert",
        "Description",
        "Weight",
        "Width",
        "Height",
        "Depth",
    ),
    required_columns=frozenset({"Name", "SKU", "EAN", "Purchase Price", "Stock"}),
    numeric_columns=frozenset(
        {"Purchase Price", "Stock", "Stock Alert", "Weight", "Width", "Height", "Depth"}
    ),
    header_mode=HeaderMode.SUBSET,
    sample_rows=(
        ("iPhone 14 Pro Max", "IP14PM-128-BLK", "123456789012", "999.99", "10", "2",
         "Black 128GB", "240", "7.8", "16.1", "0.8"),
    ),
)

CATEGORY_CONTRACT = ImportContract(
    name="categories",
    table="product_categories",
    columns=("Type", "Brand", "Model"),
    required_columns=frozenset({"Type", "Brand", "Model"}),
    header_mode=HeaderMode.ALL,
    sample_rows=(
        ("SMARTPHONE", "APPLE", "IPHONE 14"),
        ("SMARTPHONE", "SAMSUNG", "GALAXY S23"),
    ),
)

VARIANT_CONTRACT = ImportContract(
    name="variants",
    table="product_variants",
    columns=("Color", "Grade", "Capacity"),
    required_columns=frozenset({"Color", "Grade", "Capacity"}),
    header_mode=HeaderMode.ALL,
    sample_rows=(
        ("NOIR", "A+", "128GO"),
        ("BLANC", "A", "256GO"),
    ),
)

BUILTIN_CONTRACTS: dict[str, ImportContract] = {
    c.name: c for c in (PRODUCT_CONTRACT, CATEGORY_CONTRACT, VARIANT_CONTRACT)
}


def get_contract(name: str, extra: dict[str, ImportContract] | None = None) -> ImportContract:
    """Look up a contract by importer name; configured contracts win over built-ins."""
    if extra and name in extra:
        return extra[name]
    try:
        return BUILTIN_CONTRACTS[name]
    except KeyError:
        known = sorted({*BUILTIN_CONTRACTS, *(extra or {})})
        raise UnknownContractError(f"unknown importer '{name}' (known: {', '.join(known)})") from None
