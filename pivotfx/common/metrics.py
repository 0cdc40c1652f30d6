from prometheus_client import Counter, Gauge, Histogram

# ----------------------------
# Feeds / refresher
# ----------------------------
REFRESH_LATENCY = Histogram(
    "pivotfx_refresh_latency_seconds",
    "Time spent fetching one feed during a refresh cycle",
    ["feed"],
)
FEED_ERRORS = Counter(
    "pivotfx_feed_errors_total",
    "Total number of feed failures that fell back to the static table",
    ["feed", "error_type"],
)
LAST_REFRESH_TS = Gauge(
    "pivotfx_last_refresh_timestamp",
    "Unix timestamp of the last catalog replacement",
)
FALLBACK_ACTIVE = Gauge(
    "pivotfx_fallback_active",
    "1 when the current catalog side comes from the static fallback table",
    ["side"],
)
CATALOG_SIZE = Gauge(
    "pivotfx_catalog_currencies",
    "Number of currencies in the current catalog",
    ["kind"],
)

# ----------------------------
# Engine
# ----------------------------
CONVERSIONS = Counter(
    "pivotfx_conversions_total",
    "Conversion requests by outcome",
    ["outcome"],
)
