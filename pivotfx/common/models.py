from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

CatalogSource = Literal["empty", "live", "partial", "fallback"]


class CurrencyKind(str, Enum):
    CRYPTO = "crypto"
    FIAT = "fiat"
    UNKNOWN = "unknown"


class MarketEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str  # e.g. BTC
    price_usd: float
    change_24h_percent: float = 0.0
    change_24h_abs: float = 0.0
    volume: float = 0.0
    market_cap: Optional[float] = None  # coingecko
    quote_volume: Optional[float] = None  # exchange ticker


class ConversionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: float = Field(ge=0, allow_inf_nan=False)
    from_code: str = Field(alias="from", min_length=1)
    to_code: str = Field(alias="to", min_length=1)

    @field_validator("from_code", "to_code")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.strip().upper()

    def swapped(self, converted_amount: Optional[float] = None) -> "ConversionRequest":
        """Reverse direction, carrying the converted amount over when there is one."""
        amount = converted_amount if converted_amount is not None else self.amount
        return ConversionRequest(amount=amount, from_code=self.to_code, to_code=self.from_code)


class ConversionResult(BaseModel):
    converted_amount: float
    unit_rate: float
    amount: float
    from_code: str
    to_code: str
    usd_value: float
    catalog_version: int
    source: CatalogSource


class ClassifyResponse(BaseModel):
    code: str
    kind: CurrencyKind
    price_usd: Optional[float] = None


class CurrencyGroups(BaseModel):
    hot: List[str]
    crypto: List[str]
    fiat: List[str]


class MarketSnapshot(BaseModel):
    version: int
    source: CatalogSource
    updated_at: Optional[float] = None
    entries: List[MarketEntry]
