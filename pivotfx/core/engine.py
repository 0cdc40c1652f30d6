import logging
import math
from typing import Tuple

from pivotfx.common.metrics import CONVERSIONS
from pivotfx.common.models import ConversionRequest, ConversionResult, CurrencyKind
from pivotfx.common.symbol_map import normalize_code
from pivotfx.core.catalog import CatalogSnapshot, PriceCatalog, as_float, is_number
from pivotfx.core.errors import CatalogNotLoaded, ConversionError, InvalidAmount, UnknownCurrency

log = logging.getLogger("pivotfx.engine")


def _check_amount(amount) -> float:
    if not is_number(amount):
        raise InvalidAmount(amount, "amount must be a number")
    value = as_float(amount)
    if value is None:
        raise InvalidAmount(amount, "amount out of range")
    if not math.isfinite(value):
        raise InvalidAmount(amount, "amount must be finite")
    if value < 0:
        raise InvalidAmount(amount, "amount must be >= 0")
    return value


def to_usd(snap: CatalogSnapshot, amount: float, code: str) -> float:
    """Pivot leg 1: amount of `code` -> USD."""
    if snap.classify(code) is CurrencyKind.CRYPTO:
        # USD per coin, so multiply
        return amount * snap.usd_price_per_unit(code)
    # fiat per USD, so divide
    return amount / snap.units_per_usd(code)


def from_usd(snap: CatalogSnapshot, usd_value: float, code: str) -> float:
    """Pivot leg 2: USD -> `code`."""
    if snap.classify(code) is CurrencyKind.CRYPTO:
        return usd_value / snap.usd_price_per_unit(code)
    return usd_value * snap.units_per_usd(code)


class ConversionEngine:
    """
    Stateless converter routing every pair through USD.

    Each call reads the catalog snapshot once and uses it for both legs.
    Failures raise a ConversionError subclass; a zero result always means
    a zero amount was converted.
    """

    def __init__(self, catalog: PriceCatalog):
        self.catalog = catalog

    def convert(self, amount, from_code, to_code) -> ConversionResult:
        try:
            result = self._convert(amount, from_code, to_code)
        except ConversionError as e:
            CONVERSIONS.labels(outcome=type(e).__name__).inc()
            log.warning("Conversion %r %r -> %r failed: %s", amount, from_code, to_code, e)
            raise
        CONVERSIONS.labels(outcome="ok").inc()
        return result

    def convert_request(self, req: ConversionRequest) -> ConversionResult:
        return self.convert(req.amount, req.from_code, req.to_code)

    def rate(self, from_code, to_code) -> float:
        """Units of `to_code` for one unit of `from_code`."""
        return self.convert(0, from_code, to_code).unit_rate

    def _convert(self, amount, from_code, to_code) -> ConversionResult:
        value = _check_amount(amount)
        snap = self.catalog.snapshot()
        if not snap.is_loaded:
            raise CatalogNotLoaded()

        src = normalize_code(from_code)
        dst = normalize_code(to_code)
        for code, raw in ((src, from_code), (dst, to_code)):
            if snap.classify(code) is CurrencyKind.UNKNOWN:
                raise UnknownCurrency(raw)

        usd_value, converted = self._pivot(snap, value, src, dst)
        if value == 0:
            # still report the rate for an empty input
            _, unit_rate = self._pivot(snap, 1.0, src, dst)
        else:
            unit_rate = converted / value

        log.debug("%s %s -> %s USD -> %s %s (v%d)", value, src, usd_value, converted, dst, snap.version)
        return ConversionResult(
            converted_amount=converted,
            unit_rate=unit_rate,
            amount=value,
            from_code=src,
            to_code=dst,
            usd_value=usd_value,
            catalog_version=snap.version,
            source=snap.source,
        )

    @staticmethod
    def _pivot(snap: CatalogSnapshot, amount: float, src: str, dst: str) -> Tuple[float, float]:
        usd_value = to_usd(snap, amount, src)
        converted = from_usd(snap, usd_value, dst)
        if not (math.isfinite(usd_value) and math.isfinite(converted)):
            raise InvalidAmount(amount, "amount out of range for this pair")
        return usd_value, converted
