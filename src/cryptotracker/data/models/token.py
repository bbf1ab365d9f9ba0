"""Token-related Pydantic models.

This module defines the cached token record, the favorite toggle request
and the aggregate statistics computed over the cache.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class Token(BaseModel):
    """Token model for cache storage and API responses.

    One record per ``token_id``. Every market field is overwritten on each
    refresh; ``is_favorite`` is only changed by an explicit toggle.

    Attributes:
        token_id: Stable CoinGecko coin id (e.g. "bitcoin"), the upsert key.
        symbol: Ticker symbol (e.g. "btc").
        name: Display name.
        image: Logo URL.
        current_price: Price in USD.
        market_cap: Market capitalization in USD.
        volume_24h: 24-hour traded volume in USD.
        price_change_24h: Absolute 24h price change.
        price_change_percentage_24h: Relative 24h price change in percent.
        last_updated: When the snapshot was fetched.
        is_favorite: User favorite flag.

    Example:
        token = Token(
            token_id="bitcoin",
            symbol="btc",
            name="Bitcoin",
            current_price=65000.0,
            market_cap=1.2e12,
            volume_24h=3.1e10,
        )
    """

    token_id: str = Field(min_length=1, description="CoinGecko coin id")
    symbol: str = Field(default="", description="Ticker symbol")
    name: str = Field(default="", description="Display name")
    image: str | None = Field(default=None, description="Logo URL")
    current_price: float = Field(default=0.0, description="Price in USD")
    market_cap: float = Field(default=0.0, description="Market capitalization in USD")
    volume_24h: float = Field(default=0.0, description="24-hour volume in USD")
    price_change_24h: float = Field(default=0.0, description="24h price change")
    price_change_percentage_24h: float = Field(
        default=0.0, description="24h price change in percent"
    )
    high_24h: float | None = None
    low_24h: float | None = None
    circulating_supply: float | None = None
    total_supply: float | None = None
    ath: float | None = None
    ath_change_percentage: float | None = None
    atl: float | None = None
    atl_change_percentage: float | None = None
    last_updated: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Snapshot fetch timestamp",
    )
    is_favorite: bool = Field(default=False, description="User favorite flag")

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on name, symbol or id."""
        needle = query.lower()
        return (
            needle in self.name.lower()
            or needle in self.symbol.lower()
            or needle in self.token_id.lower()
        )


class FavoriteRequest(BaseModel):
    """Request body for toggling a favorite."""

    token_id: str = Field(min_length=1)


class TokenStats(BaseModel):
    """Aggregate statistics over the cached tokens."""

    total_tokens: int = 0
    total_market_cap: float = 0.0
    total_volume_24h: float = 0.0
    avg_price_change_24h: float = 0.0
    biggest_gainer: Token | None = None
    biggest_loser: Token | None = None
