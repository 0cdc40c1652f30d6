from decimal import Decimal
from fractions import Fraction

import pytest

from pivotfx.common.models import ConversionRequest
from pivotfx.core.catalog import PriceCatalog
from pivotfx.core.engine import ConversionEngine
from pivotfx.core.errors import (
    CatalogNotLoaded,
    ConversionError,
    InvalidAmount,
    PriceUnavailable,
    UnknownCurrency,
)

PAIRS = [
    ("BTC", "EUR"),
    ("EUR", "BTC"),
    ("ETH", "BTC"),
    ("EUR", "JPY"),
    ("USD", "USDT"),
    ("JPY", "ETH"),
]


def test_crypto_to_fiat_example(engine):
    res = engine.convert(2, "BTC", "EUR")
    assert res.usd_value == pytest.approx(196000)
    assert res.converted_amount == pytest.approx(180320)
    assert res.unit_rate == pytest.approx(90160)
    assert res.from_code == "BTC"
    assert res.to_code == "EUR"


def test_fiat_to_usd_example(engine):
    res = engine.convert(100, "EUR", "USD")
    assert res.usd_value == pytest.approx(108.6957, rel=1e-6)
    assert res.converted_amount == pytest.approx(108.6957, rel=1e-6)


def test_fiat_to_crypto_divides_by_coin_price(engine):
    res = engine.convert(98000, "USD", "BTC")
    assert res.converted_amount == pytest.approx(1)


def test_crypto_to_crypto(engine):
    res = engine.convert(1, "BTC", "ETH")
    assert res.converted_amount == pytest.approx(28)


@pytest.mark.parametrize("src,dst", PAIRS)
@pytest.mark.parametrize("amount", [0.5, 3, 12345.678])
def test_linear_no_hidden_fees(engine, amount, src, dst):
    unit = engine.convert(1, src, dst).unit_rate
    assert engine.convert(amount, src, dst).converted_amount == pytest.approx(amount * unit)


@pytest.mark.parametrize("src,dst", PAIRS)
def test_round_trip(engine, src, dst):
    there = engine.convert(7.25, src, dst).converted_amount
    back = engine.convert(there, dst, src).converted_amount
    assert back == pytest.approx(7.25)


def test_zero_amount_still_reports_rate(engine):
    res = engine.convert(0, "BTC", "EUR")
    assert res.converted_amount == 0
    assert res.unit_rate == pytest.approx(engine.convert(1, "BTC", "EUR").unit_rate)
    assert engine.rate("BTC", "EUR") == pytest.approx(90160)


def test_same_currency(engine):
    res = engine.convert(3, "EUR", "EUR")
    assert res.converted_amount == pytest.approx(3)
    assert res.unit_rate == pytest.approx(1)


def test_codes_are_case_insensitive(engine):
    res = engine.convert(1, " btc", "eur ")
    assert (res.from_code, res.to_code) == ("BTC", "EUR")


@pytest.mark.parametrize("src,dst,bad", [("ZZZ", "USD", "ZZZ"), ("BTC", "QQQ", "QQQ"), ("", "USD", "")])
def test_unknown_currency(engine, src, dst, bad):
    with pytest.raises(UnknownCurrency) as exc:
        engine.convert(10, src, dst)
    assert exc.value.code == bad


@pytest.mark.parametrize("amount", [-1, float("nan"), float("inf"), "10", None, True, 10**400, Decimal("-1"), Decimal("NaN")])
def test_invalid_amount(engine, amount):
    with pytest.raises(InvalidAmount):
        engine.convert(amount, "BTC", "EUR")


def test_overflow_is_invalid_amount(engine):
    with pytest.raises(InvalidAmount):
        engine.convert(1e308, "BTC", "JPY")


@pytest.mark.parametrize("bad", [0, -1, float("nan"), None])
def test_bad_source_price(bad):
    c = PriceCatalog()
    c.replace({"BTC": bad}, {"EUR": 0.9})
    with pytest.raises(PriceUnavailable):
        ConversionEngine(c).convert(1, "BTC", "EUR")


@pytest.mark.parametrize("bad", [0, -1, float("inf"), "x"])
def test_bad_target_rate(bad):
    c = PriceCatalog()
    c.replace({"BTC": 10}, {"EUR": bad})
    engine = ConversionEngine(c)
    with pytest.raises(PriceUnavailable) as exc:
        engine.convert(1, "BTC", "EUR")
    assert exc.value.code == "EUR"
    # a zero amount does not dodge the check
    with pytest.raises(PriceUnavailable):
        engine.convert(0, "BTC", "EUR")


def test_empty_catalog():
    engine = ConversionEngine(PriceCatalog())
    with pytest.raises(CatalogNotLoaded):
        engine.convert(1, "USD", "USD")
    assert issubclass(CatalogNotLoaded, PriceUnavailable)


def test_errors_share_base():
    for klass in (InvalidAmount, UnknownCurrency, PriceUnavailable):
        assert issubclass(klass, ConversionError)


def test_replacement_is_seen_without_blending(catalog, engine):
    before = engine.convert(1, "BTC", "EUR")
    snap = catalog.replace({"BTC": 50000}, {"EUR": 0.5})
    after = engine.convert(1, "BTC", "EUR")
    assert before.converted_amount == pytest.approx(90160)
    assert after.converted_amount == pytest.approx(25000)
    assert after.catalog_version == snap.version


def test_one_snapshot_per_conversion():
    class SwappingCatalog(PriceCatalog):
        """Replaces itself right after handing out a snapshot."""

        def snapshot(self):
            snap = super().snapshot()
            if snap.crypto_prices.get("BTC") == 98000:
                self.replace({"BTC": 1}, {"EUR": 1000})
            return snap

    c = SwappingCatalog()
    c.replace({"BTC": 98000}, {"EUR": 0.92})
    res = ConversionEngine(c).convert(2, "BTC", "EUR")
    assert res.converted_amount == pytest.approx(180320)


def test_convert_request(engine):
    req = ConversionRequest.model_validate({"amount": 2, "from": "btc", "to": "eur"})
    res = engine.convert_request(req)
    assert res.converted_amount == pytest.approx(180320)

    back = engine.convert_request(req.swapped(res.converted_amount))
    assert back.from_code == "EUR"
    assert back.converted_amount == pytest.approx(2)


def test_result_carries_catalog_source(engine, catalog):
    assert engine.convert(1, "BTC", "USD").source == "live"
    catalog.load_fallback()
    assert engine.convert(1, "BTC", "USD").source == "fallback"


@pytest.mark.parametrize("amount", [Decimal("2"), Fraction(2, 1), 2])
def test_numeric_types_convert_alike(engine, amount):
    res = engine.convert(amount, "BTC", "EUR")
    assert res.converted_amount == pytest.approx(180320)
    assert res.unit_rate == pytest.approx(90160)


def test_huge_int_amount_is_typed_error(engine):
    with pytest.raises(InvalidAmount) as exc:
        engine.convert(10**400, "BTC", "USD")
    assert exc.value.reason == "amount out of range"
