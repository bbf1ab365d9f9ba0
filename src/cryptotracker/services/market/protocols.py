"""Collaborator interfaces for the market data service."""

from typing import Protocol

from cryptotracker.data.models.history import HistoricalData, PriceHistory
from cryptotracker.data.models.token import Token


class MarketDataFetcher(Protocol):
    """Upstream market snapshot source. Every method may raise."""

    async def fetch_top_tokens(self, limit: int) -> list[Token]:
        ...

    async def fetch_token(self, token_id: str) -> Token:
        ...

    async def fetch_history(self, token_id: str, days: int) -> HistoricalData:
        ...


class TokenStore(Protocol):
    """Keyed token cache. Reads return empty/None when the store is down."""

    async def upsert_tokens(self, tokens: list[Token]) -> int:
        ...

    async def get_all(self) -> list[Token]:
        ...

    async def get_by_token_id(self, token_id: str) -> Token | None:
        ...

    async def get_favorites(self) -> list[Token]:
        ...

    async def set_favorite(self, token_id: str, is_favorite: bool) -> Token | None:
        ...


class HistoryStore(Protocol):
    """Keyed price history cache, one series per token."""

    async def upsert(self, history: PriceHistory) -> None:
        ...

    async def get_by_token_id(self, token_id: str) -> PriceHistory | None:
        ...
