# Static snapshot used when a feed is down. Crypto quoted in USD per coin,
# fiat quoted in units per 1 USD.
FALLBACK_CRYPTO_PRICES = {
    "BTC": 98000,
    "ETH": 3500,
    "USDT": 1,
    "BNB": 650,
    "SOL": 210,
    "XRP": 0.62,
    "ADA": 0.58,
    "DOGE": 0.38,
    "AVAX": 42,
    "DOT": 7.2,
    "MATIC": 0.89,
    "LINK": 19,
    "UNI": 12,
    "LTC": 105,
    "BCH": 480,
}

FALLBACK_FIAT_RATES = {
    "USD": 1,
    "EUR": 0.92,
    "CNY": 7.24,
    "JPY": 149.50,
    "GBP": 0.79,
    "KRW": 1320,
    "AUD": 1.52,
    "CAD": 1.36,
    "CHF": 0.88,
    "HKD": 7.82,
    "SGD": 1.34,
    "RUB": 92,
    "INR": 83,
    "BRL": 4.97,
    "ZAR": 18.50,
    "TRY": 28.50,
    "MXN": 17.20,
    "IDR": 15600,
    "THB": 35.50,
    "VND": 24500,
}
