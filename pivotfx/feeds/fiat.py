import logging
import os
from typing import Dict, Optional

import requests

from pivotfx.core.errors import FeedUnavailable
from pivotfx.feeds.base import HTTP_TIMEOUT_SECONDS

FIAT_RATES_URL = os.getenv("FIAT_RATES_URL", "https://api.exchangerate-api.com/v4/latest/USD")

log = logging.getLogger("pivotfx.feeds.fiat")


class ExchangeRateApiLoader:
    """Fiat rates quoted as units per 1 USD."""

    name = "exchangerate-api"

    def __init__(self, session: Optional[requests.Session] = None, url: str = FIAT_RATES_URL,
                 timeout: float = HTTP_TIMEOUT_SECONDS):
        self.session = session or requests.Session()
        self.url = url
        self.timeout = timeout

    def load_fiat(self) -> Dict[str, float]:
        try:
            resp = self.session.get(self.url, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise FeedUnavailable(self.name, e) from e

        rates = data.get("rates") if isinstance(data, dict) else None
        if not isinstance(rates, dict) or not rates:
            raise FeedUnavailable(self.name, "payload has no 'rates' mapping")
        base = data.get("base") or data.get("base_code") or "USD"
        if str(base).upper() != "USD":
            raise FeedUnavailable(self.name, f"rates are based on {base}, expected USD")

        log.info("Got %d fiat rates", len(rates))
        return dict(rates)
