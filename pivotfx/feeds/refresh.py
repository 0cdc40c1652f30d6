import logging
import os
import threading
import time
from typing import Callable, Optional, Tuple, TypeVar

from pivotfx.common.metrics import CATALOG_SIZE, FALLBACK_ACTIVE, FEED_ERRORS, LAST_REFRESH_TS, REFRESH_LATENCY
from pivotfx.core.catalog import CatalogSnapshot, PriceCatalog, fallback_market
from pivotfx.core.errors import FeedUnavailable
from pivotfx.core.fallback import FALLBACK_CRYPTO_PRICES, FALLBACK_FIAT_RATES
from pivotfx.feeds.base import CryptoFeed, CryptoFeedLoader, FiatFeedLoader
from pivotfx.feeds.coingecko import CoinGeckoLoader
from pivotfx.feeds.exchange import ExchangeTickerLoader
from pivotfx.feeds.fiat import ExchangeRateApiLoader

REFRESH_INTERVAL_SECONDS = float(os.getenv("REFRESH_INTERVAL_SECONDS", "30"))
CRYPTO_FEED = os.getenv("CRYPTO_FEED", "coingecko").strip().lower()

log = logging.getLogger("pivotfx.refresh")

T = TypeVar("T")


def make_crypto_loader(name: str = CRYPTO_FEED) -> CryptoFeedLoader:
    if name == "coingecko":
        return CoinGeckoLoader()
    if name == "exchange":
        return ExchangeTickerLoader()
    raise ValueError(f"Unknown crypto feed: {name}")


class CatalogRefresher:
    """
    One refresh cycle = load crypto + fiat, substitute the static table for
    whichever side failed, then swap both into the catalog in a single replace.
    Feed failures are logged and counted here and never reach the caller.
    """

    def __init__(
        self,
        catalog: PriceCatalog,
        crypto_loader: Optional[CryptoFeedLoader] = None,
        fiat_loader: Optional[FiatFeedLoader] = None,
        interval: float = REFRESH_INTERVAL_SECONDS,
    ):
        self.catalog = catalog
        self.crypto_loader = crypto_loader or make_crypto_loader()
        self.fiat_loader = fiat_loader or ExchangeRateApiLoader()
        self.interval = interval
        self._cycle = threading.Lock()

    def _load(self, feed: str, fetch: Callable[[], T]) -> Tuple[Optional[T], bool]:
        try:
            with REFRESH_LATENCY.labels(feed=feed).time():
                return fetch(), True
        except FeedUnavailable as e:
            FEED_ERRORS.labels(feed=feed, error_type="unavailable").inc()
            log.warning("[%s] feed unavailable, using fallback: %s", feed, e.reason)
        except Exception as e:
            FEED_ERRORS.labels(feed=feed, error_type="unknown").inc()
            log.exception("[%s] unexpected feed error, using fallback: %s", feed, e)
        return None, False

    def refresh(self) -> CatalogSnapshot:
        if not self._cycle.acquire(blocking=False):
            log.info("Refresh already in progress, skipping")
            return self.catalog.snapshot()
        try:
            return self._refresh()
        finally:
            self._cycle.release()

    def _refresh(self) -> CatalogSnapshot:
        crypto, crypto_ok = self._load(self.crypto_loader.name, self.crypto_loader.load_crypto)
        fiat, fiat_ok = self._load(self.fiat_loader.name, self.fiat_loader.load_fiat)

        if not crypto_ok and not fiat_ok:
            snap = self.catalog.load_fallback()
        else:
            if not crypto_ok:
                crypto = CryptoFeed(prices=dict(FALLBACK_CRYPTO_PRICES), market=list(fallback_market()))
            if not fiat_ok:
                fiat = dict(FALLBACK_FIAT_RATES)
            source = "live" if crypto_ok and fiat_ok else "partial"
            snap = self.catalog.replace(crypto.prices, fiat, market=crypto.market, source=source)

        FALLBACK_ACTIVE.labels(side="crypto").set(0 if crypto_ok else 1)
        FALLBACK_ACTIVE.labels(side="fiat").set(0 if fiat_ok else 1)
        CATALOG_SIZE.labels(kind="crypto").set(len(snap.crypto_prices))
        CATALOG_SIZE.labels(kind="fiat").set(len(snap.fiat_rates))
        LAST_REFRESH_TS.set(int(time.time()))
        return snap

    def run(self, stop: threading.Event, wait_first: bool = False):
        log.info("Starting catalog refresh every %ss (crypto=%s fiat=%s)",
                 self.interval, self.crypto_loader.name, self.fiat_loader.name)
        if wait_first:
            stop.wait(self.interval)
        while not stop.is_set():
            loop_start = time.time()
            try:
                self.refresh()
            except Exception as e:
                log.exception("Refresh cycle error: %s", e)

            elapsed = time.time() - loop_start
            stop.wait(max(0.0, self.interval - elapsed))
        log.info("Catalog refresh stopped.")

    def start(self, stop: threading.Event, wait_first: bool = False) -> threading.Thread:
        t = threading.Thread(target=self.run, args=(stop, wait_first), name="catalog-refresh", daemon=True)
        t.start()
        return t
