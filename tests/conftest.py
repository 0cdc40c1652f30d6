import pytest
import requests

from pivotfx.core.catalog import PriceCatalog
from pivotfx.core.engine import ConversionEngine


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    """Stands in for requests.Session; records calls."""

    def __init__(self, payload=None, status_code=200, error=None):
        self.payload = payload
        self.status_code = status_code
        self.error = error
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        if self.error is not None:
            raise self.error
        return FakeResponse(self.payload, self.status_code)


class FakeExchange:
    """ccxt exchange stand-in serving canned fetch_tickers() results."""

    id = "binance"

    def __init__(self, tickers=None, error=None):
        self.tickers = tickers
        self.error = error

    def fetch_tickers(self):
        if self.error is not None:
            raise self.error
        return self.tickers

class StaticCryptoLoader:
    def __init__(self, feed=None, error=None, name="static-crypto"):
        self.feed = feed
        self.error = error
        self.name = name
        self.calls = 0

    def load_crypto(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.feed


class StaticFiatLoader:
    def __init__(self, rates=None, error=None, name="static-fiat"):
        self.rates = rates
        self.error = error
        self.name = name
        self.calls = 0

    def load_fiat(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.rates


@pytest.fixture
def catalog():
    c = PriceCatalog()
    c.replace({"BTC": 98000, "ETH": 3500, "USDT": 1}, {"USD": 1, "EUR": 0.92, "JPY": 149.5})
    return c


@pytest.fixture
def engine(catalog):
    return ConversionEngine(catalog)
