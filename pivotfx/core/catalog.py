"""
Price catalog: one immutable snapshot of crypto prices and fiat rates, held
by a swappable reference.

Two tables, quoted in opposite directions:
  crypto_prices[code] = USD per 1 unit of the coin   (BTC -> 98000)
  fiat_rates[code]    = units of the fiat per 1 USD  (EUR -> 0.92)

Readers grab ``snapshot()`` once and work on that object only, so a refresh
swapping the reference mid-conversion can never mix old and new tables.
"""
import logging
import math
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from numbers import Real
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

from pivotfx.common.models import CatalogSource, CurrencyGroups, CurrencyKind, MarketEntry
from pivotfx.common.symbol_map import HOT_COINS, normalize_code
from pivotfx.core.errors import PriceUnavailable, UnknownCurrency
from pivotfx.core.fallback import FALLBACK_CRYPTO_PRICES, FALLBACK_FIAT_RATES

log = logging.getLogger("pivotfx.catalog")

CRYPTO_ANCHOR = "USDT"  # pegged to 1 USD
FIAT_ANCHOR = "USD"


def is_number(value) -> bool:
    return isinstance(value, (Real, Decimal)) and not isinstance(value, bool)


def as_float(value) -> Optional[float]:
    """float(value) for real numbers and Decimals, None when it is not one or does not fit."""
    if not is_number(value):
        return None
    try:
        return float(value)
    except (OverflowError, ValueError):
        return None


def is_usable_price(value) -> bool:
    f = as_float(value)
    return f is not None and math.isfinite(f) and f > 0


def _normalize_table(table: Optional[Mapping], drop: str, anchor: str) -> dict:
    out = {}
    for code, value in (table or {}).items():
        key = normalize_code(code)
        if not key or key == drop:
            continue
        out[key] = value
    out[anchor] = 1
    return out


@dataclass(frozen=True)
class CatalogSnapshot:
    crypto_prices: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))
    fiat_rates: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))
    market: Tuple[MarketEntry, ...] = ()
    source: CatalogSource = "empty"
    updated_at: Optional[datetime] = None
    version: int = 0

    @property
    def is_loaded(self) -> bool:
        return self.version > 0

    def classify(self, code) -> CurrencyKind:
        # crypto wins on a ticker collision
        key = normalize_code(code)
        if key in self.crypto_prices:
            return CurrencyKind.CRYPTO
        if key in self.fiat_rates:
            return CurrencyKind.FIAT
        return CurrencyKind.UNKNOWN

    def usd_price_per_unit(self, code) -> float:
        """USD value of one coin."""
        key = normalize_code(code)
        value = self.crypto_prices.get(key)
        if not is_usable_price(value):
            raise PriceUnavailable(key, value)
        return float(value)

    def units_per_usd(self, code) -> float:
        """How many units of the fiat one USD buys."""
        key = normalize_code(code)
        value = self.fiat_rates.get(key)
        if not is_usable_price(value):
            raise PriceUnavailable(key, value)
        return float(value)

    def price_in_usd(self, code) -> float:
        kind = self.classify(code)
        if kind is CurrencyKind.CRYPTO:
            return self.usd_price_per_unit(code)
        if kind is CurrencyKind.FIAT:
            return 1.0 / self.units_per_usd(code)
        raise UnknownCurrency(code)

    def currencies(self) -> CurrencyGroups:
        hot = [c for c in HOT_COINS if c in self.crypto_prices]
        ordered = [e.symbol for e in self.market if e.symbol in self.crypto_prices]
        ordered += sorted(c for c in self.crypto_prices if c not in ordered)
        crypto = [c for c in ordered if c not in hot]
        fiat = [c for c in sorted(self.fiat_rates) if c not in self.crypto_prices]
        return CurrencyGroups(hot=hot, crypto=crypto, fiat=fiat)


class PriceCatalog:
    """Owner of the current snapshot. Replacement is wholesale, never a merge."""

    def __init__(self, snapshot: Optional[CatalogSnapshot] = None):
        self._lock = threading.Lock()
        self._snapshot = snapshot or CatalogSnapshot()
        self._version = self._snapshot.version

    def snapshot(self) -> CatalogSnapshot:
        return self._snapshot

    @property
    def is_loaded(self) -> bool:
        return self._snapshot.is_loaded

    def age_seconds(self) -> Optional[float]:
        updated = self._snapshot.updated_at
        if updated is None:
            return None
        return max(0.0, time.time() - updated.timestamp())

    def replace(
        self,
        crypto_prices: Optional[Mapping],
        fiat_rates: Optional[Mapping],
        market: Iterable[MarketEntry] = (),
        source: CatalogSource = "live",
    ) -> CatalogSnapshot:
        crypto = _normalize_table(crypto_prices, drop=FIAT_ANCHOR, anchor=CRYPTO_ANCHOR)
        fiat = _normalize_table(fiat_rates, drop=CRYPTO_ANCHOR, anchor=FIAT_ANCHOR)
        collisions = sorted(set(crypto) & set(fiat))
        if collisions:
            log.warning("Codes present in both tables, treated as crypto: %s", collisions)

        with self._lock:
            self._version += 1
            snap = CatalogSnapshot(
                crypto_prices=MappingProxyType(crypto),
                fiat_rates=MappingProxyType(fiat),
                market=tuple(market),
                source=source,
                updated_at=datetime.now(timezone.utc),
                version=self._version,
            )
            self._snapshot = snap

        log.info("Catalog v%d (%s): %d crypto, %d fiat", snap.version, source, len(crypto), len(fiat))
        return snap

    def load_fallback(self) -> CatalogSnapshot:
        log.warning("Using built-in fallback price tables")
        return self.replace(
            FALLBACK_CRYPTO_PRICES,
            FALLBACK_FIAT_RATES,
            market=fallback_market(),
            source="fallback",
        )

    # Convenience pass-throughs, each on the snapshot current at call time
    def classify(self, code) -> CurrencyKind:
        return self._snapshot.classify(code)

    def price_in_usd(self, code) -> float:
        return self._snapshot.price_in_usd(code)

    def usd_price_per_unit(self, code) -> float:
        return self._snapshot.usd_price_per_unit(code)

    def units_per_usd(self, code) -> float:
        return self._snapshot.units_per_usd(code)

    def currencies(self) -> CurrencyGroups:
        return self._snapshot.currencies()


def fallback_market() -> Tuple[MarketEntry, ...]:
    return tuple(MarketEntry(symbol=s, price_usd=p) for s, p in FALLBACK_CRYPTO_PRICES.items())
