import logging
import os
import sys

from pivotfx.common.formatting import format_price, format_rate_line
from pivotfx.core.catalog import PriceCatalog
from pivotfx.core.engine import ConversionEngine
from pivotfx.core.errors import ConversionError
from pivotfx.feeds.refresh import CatalogRefresher


def parse_args(argv):
    """
    AMOUNT FROM TO, each falling back to the AMOUNT / FROM / TO env vars.

    Returns:
        tuple: (amount as float, from code, to code).
    """
    args = list(argv) + [None] * (3 - len(argv))
    amount = args[0] or os.getenv("AMOUNT", "1")
    src = args[1] or os.getenv("FROM", "BTC")
    dst = args[2] or os.getenv("TO", "USD")
    try:
        value = float(amount)
    except ValueError:
        raise SystemExit(f"Amount is not a number: {amount!r}")
    return value, src, dst


def main(argv=None):
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "WARNING"),
        format="%(asctime)s %(levelname)s %(message)s",
    )
    amount, src, dst = parse_args(sys.argv[1:] if argv is None else argv)

    catalog = PriceCatalog()
    snap = CatalogRefresher(catalog).refresh()
    engine = ConversionEngine(catalog)
    try:
        result = engine.convert(amount, src, dst)
    except ConversionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Prices: {snap.source} (v{snap.version})")
    print(f"{format_price(result.amount)} {result.from_code} = {format_price(result.converted_amount)} {result.to_code}")
    print(format_rate_line(result.from_code, result.to_code, result.unit_rate))
    return 0


if __name__ == "__main__":
    sys.exit(main())
