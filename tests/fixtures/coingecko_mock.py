"""Mock responses for the CoinGecko API.

Provides a pytest fixture that intercepts CoinGecko calls at the httpx
level using respx, so client tests are deterministic and never reach the
real API.

Usage:
    @pytest.mark.asyncio
    async def test_something(mock_coingecko):
        tokens = await client.fetch_top_tokens(100)
        assert mock_coingecko["markets"].called
"""

from collections.abc import Generator
from typing import Any

import pytest
import respx
from httpx import Response

COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"

# =============================================================================
# Mock Response Data
# =============================================================================

# /coins/markets
MOCK_MARKETS: list[dict[str, Any]] = [
    {
        "id": "bitcoin",
        "symbol": "btc",
        "name": "Bitcoin",
        "image": "https://assets.coingecko.com/coins/images/1/large/bitcoin.png",
        "current_price": 67_250.0,
        "market_cap": 1_324_000_000_000,
        "market_cap_rank": 1,
        "total_volume": 31_500_000_000,
        "high_24h": 68_100.0,
        "low_24h": 66_400.0,
        "price_change_24h": 812.4,
        "price_change_percentage_24h": 1.22,
        "circulating_supply": 19_680_000.0,
        "total_supply": 21_000_000.0,
        "max_supply": 21_000_000.0,
        "ath": 73_738.0,
        "ath_change_percentage": -8.8,
        "atl": 67.81,
        "atl_change_percentage": 99_070.5,
        "last_updated": "2024-04-01T00:00:00.000Z",
    },
    {
        # Fresh listing: CoinGecko has no 24h change or supply data yet
        "id": "newcoin",
        "symbol": "new",
        "name": "New Coin",
        "image": None,
        "current_price": 0.0042,
        "market_cap": 1_250_000,
        "market_cap_rank": None,
        "total_volume": None,
        "price_change_24h": None,
        "price_change_percentage_24h": None,
        "circulating_supply": None,
        "last_updated": None,
    },
]

# /coins/{id}/market_chart
MOCK_MARKET_CHART: dict[str, Any] = {
    "prices": [[1711843200000, 69_702.3], [1711846800000, 69_811.0]],
    "market_caps": [[1711843200000, 1.371e12], [1711846800000, 1.373e12]],
    "total_volumes": [[1711843200000, 1.86e10], [1711846800000, 1.91e10]],
}


# =============================================================================
# Pytest Fixtures
# =============================================================================


@pytest.fixture
def mock_coingecko() -> Generator[respx.MockRouter, None, None]:
    """Mock the CoinGecko endpoints used by CoinGeckoClient.

    Intercepts:
    - GET {base}/coins/markets (named "markets")
    - GET {base}/coins/{id}/market_chart (named "market_chart")

    Tests can override a route's response, e.g.
    ``mock_coingecko["markets"].mock(return_value=Response(429))``.

    Yields:
        respx.MockRouter: The mock router for additional assertions.
    """
    with respx.mock(assert_all_called=False) as router:
        router.get(f"{COINGECKO_BASE_URL}/coins/markets", name="markets").mock(
            return_value=Response(200, json=MOCK_MARKETS)
        )
        router.get(
            url__regex=r"https://api\.coingecko\.com/api/v3/coins/[^/]+/market_chart",
            name="market_chart",
        ).mock(
            return_value=Response(200, json=MOCK_MARKET_CHART)
        )
        yield router
