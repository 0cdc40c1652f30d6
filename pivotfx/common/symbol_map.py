import os

# CoinGecko ids -> ticker, for ids whose "symbol" field is ambiguous or missing
COINGECKO_SYMBOLS = {
    "bitcoin": "BTC",
    "ethereum": "ETH",
    "tether": "USDT",
    "binancecoin": "BNB",
    "solana": "SOL",
    "ripple": "XRP",
    "cardano": "ADA",
    "dogecoin": "DOGE",
    "usd-coin": "USDC",
    "staked-ether": "STETH",
    "avalanche-2": "AVAX",
    "tron": "TRX",
    "polkadot": "DOT",
    "chainlink": "LINK",
    "polygon": "MATIC",
    "shiba-inu": "SHIB",
    "litecoin": "LTC",
    "bitcoin-cash": "BCH",
    "uniswap": "UNI",
    "stellar": "XLM",
    "cosmos": "ATOM",
    "ethereum-classic": "ETC",
    "monero": "XMR",
    "filecoin": "FIL",
    "hedera-hashgraph": "HBAR",
    "aptos": "APT",
    "optimism": "OP",
    "arbitrum": "ARB",
    "near": "NEAR",
    "vechain": "VET",
    "algorand": "ALGO",
    "internet-computer": "ICP",
    "quant": "QNT",
    "aave": "AAVE",
    "the-graph": "GRT",
    "eos": "EOS",
    "axie-infinity": "AXS",
    "tezos": "XTZ",
    "sandbox": "SAND",
    "theta-token": "THETA",
    "elrond-erd-2": "EGLD",
    "flow": "FLOW",
    "decentraland": "MANA",
    "fantom": "FTM",
    "zcash": "ZEC",
    "maker": "MKR",
    "curve-dao-token": "CRV",
}

# Shown first in pickers, not repeated in the long crypto list
HOT_COINS = [s.strip().upper() for s in os.getenv("HOT_COINS", "BTC,ETH,USDT,BNB,SOL").split(",") if s.strip()]


def normalize_code(code) -> str:
    """Uppercase ticker/ISO code, or "" when the input cannot be a code."""
    if not isinstance(code, str):
        return ""
    return code.strip().upper()


def coingecko_symbol(coin_id: str, symbol: str) -> str:
    return COINGECKO_SYMBOLS.get(coin_id) or normalize_code(symbol)


def exchange_base(market_symbol: str, quote: str = "USDT"):
    """
    "BTC/USDT" -> "BTC"; None for other quotes and for derivatives ("BTC/USDT:USDT").
    """
    if ":" in market_symbol or "/" not in market_symbol:
        return None
    base, _, q = market_symbol.partition("/")
    if q.upper() != quote:
        return None
    return normalize_code(base) or None
