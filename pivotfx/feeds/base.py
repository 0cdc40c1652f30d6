import os
from dataclasses import dataclass, field
from typing import Dict, List, Protocol

from pivotfx.common.models import MarketEntry

TOP_N = int(os.getenv("TOP_N", "50"))
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))


@dataclass
class CryptoFeed:
    prices: Dict[str, float]
    market: List[MarketEntry] = field(default_factory=list)


class CryptoFeedLoader(Protocol):
    name: str

    def load_crypto(self) -> CryptoFeed: ...


class FiatFeedLoader(Protocol):
    name: str

    def load_fiat(self) -> Dict[str, float]: ...


def safe_float(x) -> float:
    try:
        if x is None:
            return float("nan")
        return float(x)
    except (TypeError, ValueError):
        return float("nan")


def or_zero(x) -> float:
    v = safe_float(x)
    return v if v == v else 0.0
