import math


def format_price(value: float) -> str:
    """
    Display convention shared by every price/amount shown to users:
      >= 1000          -> thousands separators, at most 2 decimals (98,000 / 1,234.5)
      [1, 1000)        -> 4 decimals
      [0.0001, 1)      -> 6 decimals
      below 0.0001     -> 8 decimals
    Display only, never feed the result back into a conversion.
    """
    if not math.isfinite(value):
        return str(value)
    if value >= 1000:
        text = f"{value:,.2f}"
        return text.rstrip("0").rstrip(".")
    if value >= 1:
        return f"{value:.4f}"
    if value >= 0.0001:
        return f"{value:.6f}"
    return f"{value:.8f}"


def format_rate_line(from_code: str, to_code: str, rate: float) -> str:
    return f"1 {from_code} = {format_price(rate)} {to_code}"
