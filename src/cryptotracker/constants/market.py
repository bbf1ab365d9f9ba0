"""Market data and rate gating constants."""

from typing import Final

# Rate gate defaults (overridable via settings)
MIN_REQUEST_INTERVAL_SECONDS: Final[float] = 2.0
RATE_LIMIT_BACKOFF_SECONDS: Final[float] = 60.0

# Retry hints returned to clients when no data can be served
TOKENS_RETRY_AFTER_SECONDS: Final[int] = 60
HISTORY_RETRY_AFTER_SECONDS: Final[int] = 30

# Upstream request sizes
TOP_TOKENS_LIMIT: Final[int] = 100
VS_CURRENCY: Final[str] = "usd"

# Substrings in an upstream error that mean "you are being throttled"
RATE_LIMIT_MARKERS: Final[tuple[str, ...]] = ("429", "rate")

USER_AGENT: Final[str] = "CryptoTracker/1.0"
