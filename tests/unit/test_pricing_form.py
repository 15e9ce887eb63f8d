from __future__ import annotations

import pytest

from backoffice.models.config_models import PricingConfig
from backoffice.pricing.engine import PriceSet, TaxRegime
from backoffice.pricing.form import PricingFormConfig, ProductPricing


def _priced() -> ProductPricing:
    pricing = ProductPricing.new().set_purchase_price("100")
    pricing = pricing.edit("retail", "margin_percent", "50")
    return pricing.edit("pro", "sell_ht", "120")


def test_new_has_blank_channels():
    pricing = ProductPricing.new()
    assert set(pricing.channels) == {"retail", "pro"}
    assert all(ps == PriceSet() for ps in pricing.channels.values())


def test_channels_are_independent():
    pricing = _priced()
    assert pricing.channel("retail").sell_ht == pytest.approx(150)
    assert pricing.channel("pro").sell_ht == 120
    assert pricing.channel("pro").margin_percent == pytest.approx(20)


def test_edit_returns_new_value():
    before = ProductPricing.new().set_purchase_price(100)
    after = before.edit("retail", "sell_ht", 130)
    assert before.channel("retail") == PriceSet(purchase_price=100)
    assert after.channel("retail").margin_amount == pytest.approx(30)


def test_purchase_price_change_keeps_sell_prices():
    pricing = _priced().set_purchase_price("80")
    retail = pricing.channel("retail")
    assert retail.sell_ht == pytest.approx(150)
    assert retail.margin_amount == pytest.approx(70)
    assert pricing.channel("pro").margin_percent == pytest.approx(50)


def test_unknown_channel_and_field():
    pricing = ProductPricing.new()
    with pytest.raises(ValueError, match="unknown pricing channel"):
        pricing.edit("wholesale", "sell_ht", 10)
    restricted = ProductPricing.new(PricingFormConfig(editable_fields=frozenset({"sell_ht"})))
    with pytest.raises(ValueError, match="not editable"):
        restricted.edit("retail", "margin_percent", 10)


def test_margin_regime_blanks_ttc_and_hides_field():
    pricing = _priced().set_regime(TaxRegime.MARGIN)
    assert pricing.channel("retail").sell_ttc is None
    assert pricing.channel("retail").sell_ht == pytest.approx(150)
    assert "sell_ttc" not in pricing.config.visible_fields(TaxRegime.MARGIN)
    assert "sell_ttc" in pricing.config.visible_fields(TaxRegime.NORMAL)
    back = pricing.set_regime(TaxRegime.NORMAL)
    assert back.channel("retail").sell_ttc == pytest.approx(180)


def test_to_record():
    record = _priced().to_record()
    assert record == {
        "purchase_price": 100.0,
        "vat_type": "normal",
        "retail_price": 150.0,
        "pro_price": 120.0,
    }
    assert ProductPricing.new().to_record()["retail_price"] == 0.0


def test_from_pricing_config():
    cfg = PricingFormConfig.from_pricing_config(
        PricingConfig(tax_rate=0.055, vat_regime="margin", channels=("retail",))
    )
    assert cfg.channels == ("retail",)
    assert cfg.regime is TaxRegime.MARGIN
    pricing = ProductPricing.new(cfg)
    assert pricing.regime is TaxRegime.MARGIN
    assert set(pricing.display()) == {"retail"}
