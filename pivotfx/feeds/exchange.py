import logging
import os

import ccxt

from pivotfx.common.models import MarketEntry
from pivotfx.common.symbol_map import exchange_base
from pivotfx.core.catalog import is_usable_price
from pivotfx.core.errors import FeedUnavailable
from pivotfx.feeds.base import TOP_N, CryptoFeed, or_zero, safe_float

EXCHANGE = os.getenv("EXCHANGE", "binance").strip().lower()
QUOTE = os.getenv("EXCHANGE_QUOTE", "USDT").strip().upper()

# CCXT options
ENABLE_RATE_LIMIT = os.getenv("CCXT_ENABLE_RATE_LIMIT", "true").lower() == "true"
REQUEST_TIMEOUT_MS = int(os.getenv("CCXT_TIMEOUT_MS", "10000"))

log = logging.getLogger("pivotfx.feeds.exchange")


def make_exchange(name: str):
    if not hasattr(ccxt, name):
        raise ValueError(f"Unknown exchange in ccxt: {name}")
    klass = getattr(ccxt, name)
    return klass(
        {
            "enableRateLimit": ENABLE_RATE_LIMIT,
            "timeout": REQUEST_TIMEOUT_MS,
        }
    )


class ExchangeTickerLoader:
    """
    Prices from one exchange's own 24h tickers, every BASE/USDT spot pair
    valued with USDT taken as 1 USD. Top entries are ranked by quote volume.
    """

    def __init__(self, exchange=None, top_n: int = TOP_N, quote: str = QUOTE):
        self.exchange = exchange if exchange is not None else make_exchange(EXCHANGE)
        self.top_n = top_n
        self.quote = quote
        self.name = getattr(self.exchange, "id", None) or EXCHANGE

    def load_crypto(self) -> CryptoFeed:
        try:
            tickers = self.exchange.fetch_tickers()
        except ccxt.RateLimitExceeded as e:
            raise FeedUnavailable(self.name, f"rate limit: {e}") from e
        except ccxt.NetworkError as e:
            raise FeedUnavailable(self.name, f"network: {e}") from e
        except ccxt.ExchangeError as e:
            raise FeedUnavailable(self.name, f"exchange: {e}") from e

        entries = []
        for market_symbol, ticker in (tickers or {}).items():
            base = exchange_base(market_symbol, self.quote)
            if not base or not isinstance(ticker, dict):
                continue
            last = safe_float(ticker.get("last"))
            if not is_usable_price(last):
                continue
            entries.append(MarketEntry(
                symbol=base,
                price_usd=last,
                change_24h_percent=or_zero(ticker.get("percentage")),
                change_24h_abs=or_zero(ticker.get("change")),
                volume=or_zero(ticker.get("baseVolume")),
                quote_volume=or_zero(ticker.get("quoteVolume")),
            ))

        entries.sort(key=lambda e: e.quote_volume or 0.0, reverse=True)
        top = entries[: self.top_n]
        if not top:
            raise FeedUnavailable(self.name, f"no {self.quote} tickers with a usable price")

        log.info("Got %d %s pairs from %s, keeping %d", len(entries), self.quote, self.name, len(top))
        return CryptoFeed(prices={e.symbol: e.price_usd for e in top}, market=top)
