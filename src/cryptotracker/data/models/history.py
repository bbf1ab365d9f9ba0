"""Price history models.

``HistoricalData`` is the external series shape served by the API and
returned by CoinGecko's market chart endpoint. ``PriceHistory`` is the
cached record, one per token, replaced wholesale on every refresh.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field

# (unix timestamp in milliseconds, value)
SeriesPoint = tuple[int, float]


class HistoricalData(BaseModel):
    """Market chart series: prices, market caps and volumes."""

    prices: list[SeriesPoint] = Field(default_factory=list)
    market_caps: list[SeriesPoint] = Field(default_factory=list)
    total_volumes: list[SeriesPoint] = Field(default_factory=list)


class PriceHistory(BaseModel):
    """Cached market chart for a single token.

    Attributes:
        token_id: CoinGecko coin id, one series per token.
        prices: Ordered (timestamp, price) pairs.
        market_caps: Ordered (timestamp, market cap) pairs.
        total_volumes: Ordered (timestamp, volume) pairs.
        days: Window size the series was fetched with.
        timestamp: When the series was fetched.
    """

    token_id: str = Field(min_length=1)
    prices: list[SeriesPoint] = Field(default_factory=list)
    market_caps: list[SeriesPoint] = Field(default_factory=list)
    total_volumes: list[SeriesPoint] = Field(default_factory=list)
    days: int | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_historical(
        cls, token_id: str, data: HistoricalData, days: int | None = None
    ) -> "PriceHistory":
        """Build a cache record from a freshly fetched series."""
        return cls(
            token_id=token_id,
            prices=list(data.prices),
            market_caps=list(data.market_caps),
            total_volumes=list(data.total_volumes),
            days=days,
        )

    def to_historical(self) -> HistoricalData:
        """Reshape into the external series format."""
        return HistoricalData(
            prices=list(self.prices),
            market_caps=list(self.market_caps),
            total_volumes=list(self.total_volumes),
        )
