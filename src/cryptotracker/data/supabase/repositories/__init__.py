"""Supabase repositories for the token and price history cache."""

from cryptotracker.data.supabase.repositories.history_repo import PriceHistoryRepository
from cryptotracker.data.supabase.repositories.token_repo import TokenRepository

__all__ = ["PriceHistoryRepository", "TokenRepository"]
