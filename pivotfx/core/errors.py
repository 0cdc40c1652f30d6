class PivotFxError(Exception):
    """Root of every error raised by pivotfx."""


class ConversionError(PivotFxError):
    """A conversion could not be computed. Never reported as a zero amount."""


class InvalidAmount(ConversionError):
    def __init__(self, amount, reason: str = "amount must be a finite number >= 0"):
        self.amount = amount
        self.reason = reason
        super().__init__(f"Invalid amount {amount!r}: {reason}")


class UnknownCurrency(ConversionError):
    def __init__(self, code):
        self.code = code
        super().__init__(f"Unknown currency: {code!r}")


class PriceUnavailable(ConversionError):
    def __init__(self, code, value=None):
        self.code = code
        self.value = value
        super().__init__(f"No usable price for {code}: {value!r}")


class CatalogNotLoaded(PriceUnavailable):
    def __init__(self):
        super().__init__("*", None)
        self.args = ("Price catalog has not been loaded yet",)


class FeedUnavailable(PivotFxError):
    """Raised by feed loaders; the refresher recovers with the fallback tables."""

    def __init__(self, feed: str, reason):
        self.feed = feed
        self.reason = reason
        super().__init__(f"Feed {feed} unavailable: {reason}")
