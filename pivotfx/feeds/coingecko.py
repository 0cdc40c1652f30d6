import logging
import os
from typing import Optional

import requests

from pivotfx.common.models import MarketEntry
from pivotfx.common.symbol_map import coingecko_symbol
from pivotfx.core.catalog import is_usable_price
from pivotfx.core.errors import FeedUnavailable
from pivotfx.feeds.base import HTTP_TIMEOUT_SECONDS, TOP_N, CryptoFeed, or_zero, safe_float

COINGECKO_URL = os.getenv("COINGECKO_URL", "https://api.coingecko.com/api/v3/coins/markets")

log = logging.getLogger("pivotfx.feeds.coingecko")


class CoinGeckoLoader:
    """Top coins by market cap from the CoinGecko markets endpoint, priced in USD."""

    name = "coingecko"

    def __init__(self, session: Optional[requests.Session] = None, top_n: int = TOP_N,
                 url: str = COINGECKO_URL, timeout: float = HTTP_TIMEOUT_SECONDS):
        self.session = session or requests.Session()
        self.top_n = top_n
        self.url = url
        self.timeout = timeout

    def fetch(self) -> list:
        params = {
            "vs_currency": "usd",
            "order": "market_cap_desc",
            "per_page": 100,
            "page": 1,
            "sparkline": "false",
            "price_change_percentage": "24h",
        }
        try:
            resp = self.session.get(self.url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise FeedUnavailable(self.name, e) from e
        if not isinstance(data, list):
            raise FeedUnavailable(self.name, f"unexpected payload type {type(data).__name__}")
        return data

    def load_crypto(self) -> CryptoFeed:
        coins = self.fetch()
        log.info("Got %d coins from CoinGecko", len(coins))

        feed = CryptoFeed(prices={})
        for coin in coins[: self.top_n]:
            if not isinstance(coin, dict):
                continue
            symbol = coingecko_symbol(coin.get("id", ""), coin.get("symbol") or "")
            price = safe_float(coin.get("current_price"))
            if not symbol or not is_usable_price(price):
                log.debug("Skipping %r: price=%r", coin.get("id"), coin.get("current_price"))
                continue
            if symbol in feed.prices:
                continue
            feed.prices[symbol] = price
            feed.market.append(MarketEntry(
                symbol=symbol,
                price_usd=price,
                change_24h_percent=or_zero(coin.get("price_change_percentage_24h")),
                change_24h_abs=or_zero(coin.get("price_change_24h")),
                volume=or_zero(coin.get("total_volume")),
                market_cap=or_zero(coin.get("market_cap")),
            ))

        if not feed.prices:
            raise FeedUnavailable(self.name, "no usable prices in payload")
        return feed
