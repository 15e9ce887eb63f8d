from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from ..models.numeric import parse_number, round_display

"""Price / margin derivation engine.

Keeps the four views of one sell price consistent with a purchase price:

    sell_ht        = purchase_price * (1 + margin_percent / 100)
    sell_ht        = purchase_price + margin_amount
    sell_ht        = sell_ttc / (1 + tax_rate)              (normal regime only)
    margin_percent = (sell_ht - purchase_price) / purchase_price * 100
    margin_amount  = sell_ht - purchase_price
    sell_ttc       = sell_ht * (1 + tax_rate)               (None under margin regime)

Every operation is pure: it takes the new value of exactly one driver field and
returns a new PriceSet whose other fields are recomputed from scratch. Values
keep full precision; rounding happens in PriceSet.display() only.

Input handling models live keystrokes:
- empty driver -> all four fields cleared
- driver that is not a finite number, a non-positive purchase price, or a
  result with a negative sell price or a non-finite field -> ``previous``
  returned unchanged
"""

__all__ = [
    "DEFAULT_TAX_RATE",
    "PRICE_FIELDS",
    "PriceSet",
    "TaxRegime",
    "from_margin_amount",
    "from_margin_percent",
    "from_sell_ht",
    "from_sell_ttc",
    "reprice",
]

DEFAULT_TAX_RATE = 0.20

PRICE_FIELDS = ("sell_ht", "margin_percent", "margin_amount", "sell_ttc")


class TaxRegime(Enum):
    """VAT treatment of a product.

    - NORMAL: tax on the full sell price, TTC derivable from HT
    - MARGIN: tax on the margin only, TTC left blank
    """
    NORMAL = "normal"
    MARGIN = "margin"


@dataclass(frozen=True)
class PriceSet:
    """One coherent group of price fields for a single sales channel."""
    purchase_price: float | None = None
    sell_ht: float | None = None
    margin_percent: float | None = None
    margin_amount: float | None = None
    sell_ttc: float | None = None

    @property
    def is_blank(self) -> bool:
        return all(getattr(self, name) is None for name in PRICE_FIELDS)

    def rounded(self) -> PriceSet:
        """Copy with every field rounded to 2 decimals (display boundary)."""
        return PriceSet(
            purchase_price=round_display(self.purchase_price),
            sell_ht=round_display(self.sell_ht),
            margin_percent=round_display(self.margin_percent),
            margin_amount=round_display(self.margin_amount),
            sell_ttc=round_display(self.sell_ttc),
        )

    def display(self) -> dict[str, str]:
        """Form values: 2-decimal strings, blank string for an empty field."""
        return {
            name: "" if value is None else f"{value:.2f}"
            for name, value in (
                ("purchase_price", self.purchase_price),
                *((name, getattr(self, name)) for name in PRICE_FIELDS),
            )
        }


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _check_tax_rate(tax_rate: Any) -> float:
    rate = parse_number(tax_rate)
    if rate is None or rate < 0:
        raise ValueError(f"tax_rate must be a finite non-negative number, got {tax_rate!r}")
    return rate


def _cost(purchase_price: Any) -> float | None:
    cost = parse_number(purchase_price)
    if cost is None or cost <= 0:
        return None
    return cost


def _derive(
    cost: float,
    tax_rate: float,
    sell_ht: float,
    regime: TaxRegime,
) -> PriceSet | None:
    """Recompute every field around sell_ht; None if any result overflows."""
    margin_amount = sell_ht - cost
    derived = PriceSet(
        purchase_price=cost,
        sell_ht=sell_ht,
        margin_percent=margin_amount / cost * 100,
        margin_amount=margin_amount,
        sell_ttc=sell_ht * (1 + tax_rate) if regime is TaxRegime.NORMAL else None,
    )
    for name in PRICE_FIELDS:
        value = getattr(derived, name)
        if value is not None and not math.isfinite(value):
            return None
    return derived


def _apply(
    driver_field: str,
    purchase_price: Any,
    tax_rate: Any,
    value: Any,
    to_sell_ht: Callable[[float, float, float], float],
    previous: PriceSet | None,
    regime: TaxRegime,
) -> PriceSet:
    unchanged = previous if previous is not None else PriceSet()
    rate = _check_tax_rate(tax_rate)
    if _is_blank(value):
        return PriceSet(purchase_price=_cost(purchase_price))
    cost = _cost(purchase_price)
    driver = parse_number(value)
    if cost is None or driver is None:
        return unchanged
    sell_ht = to_sell_ht(cost, rate, driver)
    if not math.isfinite(sell_ht) or sell_ht < 0:
        return unchanged
    derived = _derive(cost, rate, sell_ht, regime)
    if derived is None:
        return unchanged
    # the driver keeps the value as entered, only the others are recomputed
    return replace(derived, **{driver_field: driver})


def from_sell_ht(
    purchase_price: Any,
    tax_rate: Any,
    sell_ht: Any,
    *,
    previous: PriceSet | None = None,
    regime: TaxRegime = TaxRegime.NORMAL,
) -> PriceSet:
    return _apply("sell_ht", purchase_price, tax_rate, sell_ht,
                  lambda cost, rate, v: v, previous, regime)


def from_margin_percent(
    purchase_price: Any,
    tax_rate: Any,
    margin_percent: Any,
    *,
    previous: PriceSet | None = None,
    regime: TaxRegime = TaxRegime.NORMAL,
) -> PriceSet:
    return _apply("margin_percent", purchase_price, tax_rate, margin_percent,
                  lambda cost, rate, v: cost * (1 + v / 100), previous, regime)


def from_margin_amount(
    purchase_price: Any,
    tax_rate: Any,
    margin_amount: Any,
    *,
    previous: PriceSet | None = None,
    regime: TaxRegime = TaxRegime.NORMAL,
) -> PriceSet:
    return _apply("margin_amount", purchase_price, tax_rate, margin_amount,
                  lambda cost, rate, v: cost + v, previous, regime)


def from_sell_ttc(
    purchase_price: Any,
    tax_rate: Any,
    sell_ttc: Any,
    *,
    previous: PriceSet | None = None,
    regime: TaxRegime = TaxRegime.NORMAL,
) -> PriceSet:
    """Derive from the tax-inclusive price.

    Under the margin regime TTC has no derivation: the call is a no-op.
    """
    if regime is TaxRegime.MARGIN:
        _check_tax_rate(tax_rate)
        return previous if previous is not None else PriceSet()
    return _apply("sell_ttc", purchase_price, tax_rate, sell_ttc,
                  lambda cost, rate, v: v / (1 + rate), previous, regime)


def reprice(
    previous: PriceSet,
    purchase_price: Any,
    tax_rate: Any,
    *,
    regime: TaxRegime = TaxRegime.NORMAL,
) -> PriceSet:
    """Purchase price (or regime) changed: recompute around the existing sell_ht.

    sell_ht is held fixed; margin %, margin amount and TTC follow the new cost.
    An invalid cost, or one that makes a derived field overflow, leaves
    ``previous`` unchanged.
    """
    rate = _check_tax_rate(tax_rate)
    cost = _cost(purchase_price)
    if cost is None:
        return previous
    if previous.sell_ht is None:
        return PriceSet(purchase_price=cost)
    derived = _derive(cost, rate, previous.sell_ht, regime)
    return derived if derived is not None else previous
