"""Price history repository for Supabase.

Table schema expected:
    price_history (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        token_id TEXT UNIQUE NOT NULL,
        prices JSONB NOT NULL,
        market_caps JSONB NOT NULL,
        total_volumes JSONB NOT NULL,
        days INTEGER,
        timestamp TIMESTAMPTZ NOT NULL
    )
"""

import structlog

from cryptotracker.core.exceptions import StoreError
from cryptotracker.data.models.history import PriceHistory
from cryptotracker.data.supabase.client import SupabaseClient

log = structlog.get_logger(__name__)


class PriceHistoryRepository:
    """Repository for the price_history table.

    Holds one series per token; every upsert replaces the stored series.
    """

    TABLE_NAME = "price_history"

    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    async def upsert(self, history: PriceHistory) -> None:
        """Replace the cached series for ``history.token_id``.

        Raises:
            StoreError: If the upsert fails.
        """
        record = history.model_dump(mode="json")

        try:
            await (
                self._client.table(self.TABLE_NAME)
                .upsert(record, on_conflict="token_id")
                .execute()
            )
        except Exception as e:
            log.error("history_upsert_failed", token_id=history.token_id, error=str(e))
            raise StoreError(f"Failed to upsert history for {history.token_id}: {e}") from e

        log.debug(
            "history_upserted",
            token_id=history.token_id,
            points=len(history.prices),
        )

    async def get_by_token_id(self, token_id: str) -> PriceHistory | None:
        """Get the cached series for a token.

        Returns:
            PriceHistory if cached, None if absent or the store is unavailable.
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
            log.warning("history_get_failed", token_id=token_id, error=str(e))
            return None

        if result.data:
            return PriceHistory(**result.data[0])
        return None
