"""Cache-aside market data service.

Priority per request type:
    list:    Upstream (if gate open) -> Cache -> Unavailable
    single:  Cache -> Upstream (if gate open) -> Not found
    history: Upstream (if gate open) -> Unavailable
             Cache (if gate closed) -> Unavailable
    search, favorites, stats: Cache only
"""

from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog

from cryptotracker.constants.market import (
    HISTORY_RETRY_AFTER_SECONDS,
    TOKENS_RETRY_AFTER_SECONDS,
    TOP_TOKENS_LIMIT,
)
from cryptotracker.core.exceptions import (
    DataUnavailableError,
    StoreError,
    TokenNotFoundError,
)
from cryptotracker.data.models.history import HistoricalData, PriceHistory
from cryptotracker.data.models.token import Token, TokenStats
from cryptotracker.services.market.background import BackgroundWriter
from cryptotracker.services.market.protocols import (
    HistoryStore,
    MarketDataFetcher,
    TokenStore,
)
from cryptotracker.services.market.rate_gate import RateGate, is_rate_limit_error

log = structlog.get_logger(__name__)

T = TypeVar("T")


def sort_by_market_cap(tokens: list[Token]) -> list[Token]:
    """Sort by market cap descending, keeping storage order for ties."""
    return sorted(tokens, key=lambda token: token.market_cap, reverse=True)


class MarketDataService:
    """Serves market data from the cache and a rate-gated upstream.

    Upstream failures never reach the caller: they turn into a cache
    fallback, DataUnavailableError or TokenNotFoundError.
    """

    def __init__(
        self,
        fetcher: MarketDataFetcher,
        token_store: TokenStore,
        history_store: HistoryStore,
        rate_gate: RateGate,
        background: BackgroundWriter | None = None,
        top_tokens_limit: int = TOP_TOKENS_LIMIT,
    ) -> None:
        """Initialize the service.

        Args:
            fetcher: Upstream market data client.
            token_store: Token cache.
            history_store: Price history cache.
            rate_gate: Gate shared by every request in the process.
            background: Runner for fire-and-forget cache writes.
            top_tokens_limit: Number of tokens requested per list refresh.
        """
        self.fetcher = fetcher
        self.token_store = token_store
        self.history_store = history_store
        self.rate_gate = rate_gate
        self.background = background or BackgroundWriter()
        self.top_tokens_limit = top_tokens_limit

    async def _fetch_upstream(
        self,
        operation: str,
        call: Callable[[], Awaitable[T]],
        **context: object,
    ) -> T | None:
        """Run an upstream call, converting any failure into None.

        The caller must already hold a slot from the rate gate.
        """
        try:
            return await call()
        except Exception as e:
            if is_rate_limit_error(e):
                await self.rate_gate.record_throttled()
            log.warning(
                "upstream_fetch_failed",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
                **context,
            )
            return None

    async def get_cached_tokens(self) -> list[Token]:
        """All cached tokens sorted by market cap descending."""
        return sort_by_market_cap(await self.token_store.get_all())

    async def list_tokens(self) -> list[Token]:
        """Top tokens, fresh from upstream when the gate allows.

        A fresh result is returned immediately and written to the cache in
        the background.

        Raises:
            DataUnavailableError: If upstream gives nothing and the cache is empty.
        """
        cached = await self.get_cached_tokens()

        if await self.rate_gate.try_acquire():
            fresh = await self._fetch_upstream(
                "fetch_top_tokens",
                lambda: self.fetcher.fetch_top_tokens(self.top_tokens_limit),
                limit=self.top_tokens_limit,
            )
            if fresh:
                log.info("tokens_served_from_upstream", count=len(fresh))
                self.background.spawn(
                    self._save_tokens(list(fresh)),
                    name=f"save_tokens[{len(fresh)}]",
                )
                return fresh
            if fresh is not None:
                log.warning("upstream_returned_no_tokens")

        if cached:
            log.info("tokens_served_from_cache", count=len(cached))
            return cached

        log.warning("tokens_unavailable")
        raise DataUnavailableError(
            "Data temporarily unavailable. Please try again in a moment.",
            retry_after=TOKENS_RETRY_AFTER_SECONDS,
        )

    async def _save_tokens(self, tokens: list[Token]) -> None:
        saved = await self.token_store.upsert_tokens(tokens)
        log.info("tokens_cached", count=saved)

    async def get_token(self, token_id: str) -> Token:
        """A single token; a cached record is returned as-is, never refreshed.

        Raises:
            TokenNotFoundError: If the token is not cached and cannot be fetched.
        """
        cached = await self.token_store.get_by_token_id(token_id)
        if cached is not None:
            return cached

        if await self.rate_gate.try_acquire():
            token = await self._fetch_upstream(
                "fetch_token",
                lambda: self.fetcher.fetch_token(token_id),
                token_id=token_id,
            )
            if token is not None:
                try:
                    await self.token_store.upsert_tokens([token])
                except StoreError as e:
                    log.warning("token_cache_write_failed", token_id=token_id, error=str(e))
                return token

        raise TokenNotFoundError(token_id)

    async def get_history(self, token_id: str, days: int) -> HistoricalData:
        """Price, market cap and volume series for a token.

        Raises:
            DataUnavailableError: If the gate is closed with nothing cached,
                or the upstream call fails.
        """
        if not await self.rate_gate.try_acquire():
            cached = await self.history_store.get_by_token_id(token_id)
            if cached is not None:
                log.info("history_served_from_cache", token_id=token_id)
                return cached.to_historical()

            raise DataUnavailableError(
                "Historical data temporarily unavailable. Please try again shortly.",
                retry_after=HISTORY_RETRY_AFTER_SECONDS,
            )

        data = await self._fetch_upstream(
            "fetch_history",
            lambda: self.fetcher.fetch_history(token_id, days),
            token_id=token_id,
            days=days,
        )
        if data is None:
            raise DataUnavailableError(
                "Failed to fetch historical data. Please try again shortly.",
                retry_after=HISTORY_RETRY_AFTER_SECONDS,
            )

        try:
            await self.history_store.upsert(
                PriceHistory.from_historical(token_id, data, days=days)
            )
        except StoreError as e:
            log.warning("history_cache_write_failed", token_id=token_id, error=str(e))

        return data

    async def search_tokens(self, query: str) -> list[Token]:
        """Cached tokens whose name, symbol or id contains ``query``.

        An empty query matches every cached token.
        """
        tokens = await self.get_cached_tokens()
        if not query:
            return tokens
        return [token for token in tokens if token.matches(query)]

    async def toggle_favorite(self, token_id: str) -> Token:
        """Flip a cached token's favorite flag.

        Raises:
            TokenNotFoundError: If the token is not cached.
            StoreError: If the update fails.
        """
        token = await self.token_store.get_by_token_id(token_id)
        if token is None:
            raise TokenNotFoundError(token_id)

        updated = await self.token_store.set_favorite(token_id, not token.is_favorite)
        if updated is None:
            raise TokenNotFoundError(token_id)
        return updated

    async def list_favorites(self) -> list[Token]:
        return await self.token_store.get_favorites()

    async def get_stats(self) -> TokenStats:
        """Aggregate statistics over the cached tokens."""
        tokens = await self.get_cached_tokens()
        if not tokens:
            return TokenStats()

        return TokenStats(
            total_tokens=len(tokens),
            total_market_cap=sum(t.market_cap for t in tokens),
            total_volume_24h=sum(t.volume_24h for t in tokens),
            avg_price_change_24h=(
                sum(t.price_change_percentage_24h for t in tokens) / len(tokens)
            ),
            biggest_gainer=max(tokens, key=lambda t: t.price_change_percentage_24h),
            biggest_loser=min(tokens, key=lambda t: t.price_change_percentage_24h),
        )

    async def close(self, timeout: float | None = 10.0) -> None:
        """Wait for pending background writes."""
        await self.background.drain(timeout=timeout)
