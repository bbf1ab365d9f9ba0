"""Cache-aside market data service."""

from cryptotracker.services.market.background import BackgroundWriter
from cryptotracker.services.market.rate_gate import RateGate, is_rate_limit_error
from cryptotracker.services.market.service import MarketDataService

__all__ = [
    "BackgroundWriter",
    "MarketDataService",
    "RateGate",
    "is_rate_limit_error",
]
