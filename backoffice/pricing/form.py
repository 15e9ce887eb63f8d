from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any

from ..models.config_models import PricingConfig
from ..models.numeric import parse_number, round_display
from .engine import (
    DEFAULT_TAX_RATE,
    PRICE_FIELDS,
    PriceSet,
    TaxRegime,
    from_margin_amount,
    from_margin_percent,
    from_sell_ht,
    from_sell_ttc,
    reprice,
)

"""Product pricing state for product forms.

One parameterized model replaces the per-form copies of the margin logic: a
PricingFormConfig says which channels (retail, pro) and which fields a form
exposes, and ProductPricing is the caller-owned value the form re-renders from.
Every method returns a new ProductPricing; channels never share state beyond
the purchase price.
"""

__all__ = [
    "PricingFormConfig",
    "ProductPricing",
]

_DRIVERS: dict[str, Callable[..., PriceSet]] = {
    "sell_ht": from_sell_ht,
    "margin_percent": from_margin_percent,
    "margin_amount": from_margin_amount,
    "sell_ttc": from_sell_ttc,
}


@dataclass(frozen=True)
class PricingFormConfig:
    """Which pricing inputs a product form exposes."""
    channels: tuple[str, ...] = ("retail", "pro")
    editable_fields: frozenset[str] = frozenset(PRICE_FIELDS)
    tax_rate: float = DEFAULT_TAX_RATE
    regime: TaxRegime = TaxRegime.NORMAL

    @classmethod
    def from_pricing_config(cls, cfg: PricingConfig) -> PricingFormConfig:
        return cls(
            channels=tuple(cfg.channels),
            tax_rate=cfg.tax_rate,
            regime=TaxRegime(cfg.vat_regime),
        )

    def visible_fields(self, regime: TaxRegime) -> tuple[str, ...]:
        """Fields a form shows; TTC is hidden under the margin regime."""
        return tuple(
            name for name in PRICE_FIELDS
            if name in self.editable_fields and not (name == "sell_ttc" and regime is TaxRegime.MARGIN)
        )


@dataclass(frozen=True)
class ProductPricing:
    config: PricingFormConfig
    regime: TaxRegime
    purchase_price: Any = None  # as typed by the operator
    channels: dict[str, PriceSet] = field(default_factory=dict)

    @classmethod
    def new(cls, config: PricingFormConfig | None = None) -> ProductPricing:
        config = config or PricingFormConfig()
        return cls(
            config=config,
            regime=config.regime,
            channels={name: PriceSet() for name in config.channels},
        )

    def channel(self, name: str) -> PriceSet:
        try:
            return self.channels[name]
        except KeyError:
            raise ValueError(f"unknown pricing channel '{name}'") from None

    def edit(self, channel: str, field_name: str, value: Any) -> ProductPricing:
        """Operator typed ``value`` into ``field_name`` of ``channel``."""
        previous = self.channel(channel)
        if field_name not in self.config.editable_fields:
            raise ValueError(f"field '{field_name}' is not editable on this form")
        derive = _DRIVERS[field_name]
        updated = derive(
            self.purchase_price,
            self.config.tax_rate,
            value,
            previous=previous,
            regime=self.regime,
        )
        return replace(self, channels={**self.channels, channel: updated})

    def set_purchase_price(self, value: Any) -> ProductPricing:
        """New cost: every channel keeps its sell_ht and recomputes the rest."""
        channels = {
            name: reprice(ps, value, self.config.tax_rate, regime=self.regime)
            for name, ps in self.channels.items()
        }
        return replace(self, purchase_price=value, channels=channels)

    def set_regime(self, regime: TaxRegime) -> ProductPricing:
        channels = {}
        for name, ps in self.channels.items():
            updated = reprice(ps, self.purchase_price, self.config.tax_rate, regime=regime)
            if regime is TaxRegime.MARGIN:
                updated = replace(updated, sell_ttc=None)
            channels[name] = updated
        return replace(self, regime=regime, channels=channels)

    def display(self) -> dict[str, dict[str, str]]:
        return {name: ps.display() for name, ps in self.channels.items()}

    def to_record(self) -> dict[str, Any]:
        """Price columns of the persisted product (unset prices stored as 0)."""
        record: dict[str, Any] = {
            "purchase_price": round_display(parse_number(self.purchase_price)) or 0.0,
            "vat_type": self.regime.value,
        }
        for name, ps in self.channels.items():
            record[f"{name}_price"] = round_display(ps.sell_ht) or 0.0
        return record
