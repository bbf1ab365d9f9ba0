"""Pydantic models for CoinGecko API responses.

API Documentation: https://docs.coingecko.com/reference/coins-markets
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict

from cryptotracker.data.models.token import Token


class CoinGeckoMarket(BaseModel):
    """One entry of the ``/coins/markets`` response.

    CoinGecko sends ``null`` for numbers it does not know yet (fresh
    listings), so every numeric field is optional here and defaulted when
    mapped onto a Token.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    symbol: str
    name: str
    image: str | None = None
    current_price: float | None = None
    market_cap: float | None = None
    market_cap_rank: int | None = None
    total_volume: float | None = None
    high_24h: float | None = None
    low_24h: float | None = None
    price_change_24h: float | None = None
    price_change_percentage_24h: float | None = None
    circulating_supply: float | None = None
    total_supply: float | None = None
    max_supply: float | None = None
    ath: float | None = None
    ath_change_percentage: float | None = None
    atl: float | None = None
    atl_change_percentage: float | None = None
    last_updated: str | None = None

    def to_token(self) -> Token:
        """Map the market snapshot onto a cache Token."""
        return Token(
            token_id=self.id,
            symbol=self.symbol,
            name=self.name,
            image=self.image,
            current_price=self.current_price or 0.0,
            market_cap=self.market_cap or 0.0,
            volume_24h=self.total_volume or 0.0,
            price_change_24h=self.price_change_24h or 0.0,
            price_change_percentage_24h=self.price_change_percentage_24h or 0.0,
            high_24h=self.high_24h,
            low_24h=self.low_24h,
            circulating_supply=self.circulating_supply,
            total_supply=self.total_supply,
            ath=self.ath,
            ath_change_percentage=self.ath_change_percentage,
            atl=self.atl,
            atl_change_percentage=self.atl_change_percentage,
            last_updated=datetime.now(UTC),
        )
