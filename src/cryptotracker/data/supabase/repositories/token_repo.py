"""Token repository for Supabase.

This module provides a repository pattern for accessing the tokens table
in Supabase, which caches the last fetched market snapshot per token.

Table schema expected (see migrations/001_create_cache_tables.sql):
    tokens (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        token_id TEXT UNIQUE NOT NULL,
        symbol TEXT,
        name TEXT,
        image TEXT,
        current_price DOUBLE PRECISION,
        market_cap DOUBLE PRECISION,
        volume_24h DOUBLE PRECISION,
        ...
        last_updated TIMESTAMPTZ,
        is_favorite BOOLEAN NOT NULL DEFAULT FALSE
    )
"""

import structlog

from cryptotracker.core.exceptions import StoreError
from cryptotracker.data.models.token import Token
from cryptotracker.data.supabase.client import SupabaseClient

log = structlog.get_logger(__name__)


class TokenRepository:
    """Repository for accessing tokens table in Supabase.

    Reads degrade to "nothing cached" when the store is unavailable;
    writes raise StoreError so callers decide whether to surface them.

    Attributes:
        _client: SupabaseClient instance for database operations.

    Example:
        client = SupabaseClient(settings)
        await client.connect()
        repo = TokenRepository(client)
        await repo.upsert_tokens([token1, token2])
        tokens = await repo.get_all()
    """

    TABLE_NAME = "tokens"

    def __init__(self, client: SupabaseClient) -> None:
        """Initialize repository with Supabase client.

        Args:
            client: Connected SupabaseClient instance.
        """
        self._client = client

    @staticmethod
    def _to_record(token: Token) -> dict:
        # is_favorite is left out so an update keeps the stored flag and
        # an insert takes the column default.
        return token.model_dump(mode="json", exclude={"is_favorite"})

    async def upsert_tokens(self, tokens: list[Token]) -> int:
        """Upsert multiple tokens (insert or update on conflict).

        Args:
            tokens: List of Token models to upsert.

        Returns:
            Number of records written.

        Raises:
            StoreError: If the upsert fails.

        Note:
            Uses token_id as the unique constraint for conflict resolution.
            Each row is upserted atomically, the batch as a whole is not.
        """
        if not tokens:
            return 0

        records = [self._to_record(token) for token in tokens]

        try:
            await (
                self._client.table(self.TABLE_NAME)
                .upsert(records, on_conflict="token_id")
                .execute()
            )
        except Exception as e:
            log.error("tokens_upsert_failed", error=str(e), count=len(tokens))
            raise StoreError(f"Failed to upsert {len(tokens)} tokens: {e}") from e

        log.info("tokens_upserted", total=len(tokens))
        return len(tokens)

    async def get_all(self) -> list[Token]:
        """Get all cached tokens in storage order.

        Returns:
            List of Token models, empty if the store is unavailable.
        """
        try:
            result = await self._client.table(self.TABLE_NAME).select("*").execute()
        except Exception as e:
            log.warning("tokens_get_all_failed", error=str(e))
            return []

        return [Token(**row) for row in result.data or []]

    async def get_by_token_id(self, token_id: str) -> Token | None:
        """Get single token by id.

        Args:
            token_id: CoinGecko coin id.

        Returns:
            Token if found, None otherwise.
        """
        try:
            result = await (
                self._client.table(self.TABLE_NAME)
                .select("*")
                .eq("token_id", token_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            log.warning("token_get_by_id_failed", token_id=token_id, error=str(e))
            return None

        if result.data:
            return Token(**result.data[0])
        return None

    async def get_favorites(self) -> list[Token]:
        """Get tokens flagged as favorite.

        Returns:
            List of favorite Token models, empty if the store is unavailable.
        """
        try:
            result = await (
                self._client.table(self.TABLE_NAME)
                .select("*")
                .eq("is_favorite", True)
                .execute()
            )
        except Exception as e:
            log.warning("tokens_get_favorites_failed", error=str(e))
            return []

        return [Token(**row) for row in result.data or []]

    async def set_favorite(self, token_id: str, is_favorite: bool) -> Token | None:
        """Set the favorite flag on a token.

        Args:
            token_id: CoinGecko coin id.
            is_favorite: New flag value.

        Returns:
            Updated Token, or None if no row matched.

        Raises:
            StoreError: If the update fails.
        """
        try:
            result = await (
                self._client.table(self.TABLE_NAME)
                .update({"is_favorite": is_favorite})
                .eq("token_id", token_id)
                .execute()
            )
        except Exception as e:
            log.error("token_set_favorite_failed", token_id=token_id, error=str(e))
            raise StoreError(f"Failed to update favorite for {token_id}: {e}") from e

        if not result.data:
            return None

        log.info("token_favorite_updated", token_id=token_id, is_favorite=is_favorite)
        return Token(**result.data[0])
