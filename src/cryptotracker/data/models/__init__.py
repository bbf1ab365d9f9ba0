"""Pydantic models for data validation and serialization."""

from cryptotracker.data.models.history import HistoricalData, PriceHistory, SeriesPoint
from cryptotracker.data.models.token import FavoriteRequest, Token, TokenStats

__all__ = [
    "FavoriteRequest",
    "HistoricalData",
    "PriceHistory",
    "SeriesPoint",
    "Token",
    "TokenStats",
]
