"""Price / margin derivation for product forms."""

from .engine import (
    DEFAULT_TAX_RATE,
    PriceSet,
    TaxRegime,
    from_margin_amount,
    from_margin_percent,
    from_sell_ht,
    from_sell_ttc,
    reprice,
)
from .form import PricingFormConfig, ProductPricing

__all__ = [
    "DEFAULT_TAX_RATE",
    "PriceSet",
    "PricingFormConfig",
    "ProductPricing",
    "TaxRegime",
    "from_margin_amount",
    "from_margin_percent",
    "from_sell_ht",
    "from_sell_ttc",
    "reprice",
]
