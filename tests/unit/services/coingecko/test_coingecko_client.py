"""Unit tests for the CoinGecko API client.

Tests cover:
- Top tokens mapping onto cache Tokens, with defaults for missing fields
- Single token lookup and the not-found case
- Market chart parsing
- Throttling and error statuses
- Malformed payloads
"""

import pytest
import respx
from httpx import Response

from cryptotracker.config.settings import Settings
from cryptotracker.core.exceptions import ExternalServiceError
from cryptotracker.services.coingecko.client import CoinGeckoClient
from cryptotracker.services.coingecko.models import CoinGeckoMarket
from tests.fixtures.coingecko_mock import MOCK_MARKET_CHART, MOCK_MARKETS


class TestCoinGeckoMarket:
    """Tests for the markets entry model."""

    def test_to_token_maps_volume_and_defaults(self) -> None:
        token = CoinGeckoMarket.model_validate(MOCK_MARKETS[1]).to_token()

        assert token.token_id == "newcoin"
        assert token.volume_24h == 0.0
        assert token.price_change_24h == 0.0
        assert token.price_change_percentage_24h == 0.0
        assert token.circulating_supply is None
        assert token.is_favorite is False

    def test_ignores_unknown_fields(self) -> None:
        market = CoinGeckoMarket.model_validate(
            {"id": "x", "symbol": "x", "name": "X", "roi": {"times": 2}}
        )

        assert market.id == "x"


class TestCoinGeckoClientTopTokens:
    """Tests for fetch_top_tokens."""

    @pytest.mark.asyncio
    async def test_fetch_top_tokens_maps_markets(
        self, test_settings: Settings, mock_coingecko: respx.MockRouter
    ) -> None:
        client = CoinGeckoClient(test_settings)
        try:
            tokens = await client.fetch_top_tokens(100)
        finally:
            await client.close()

        assert [t.token_id for t in tokens] == ["bitcoin", "newcoin"]
        bitcoin = tokens[0]
        assert bitcoin.symbol == "btc"
        assert bitcoin.current_price == 67_250.0
        assert bitcoin.market_cap == 1_324_000_000_000
        assert bitcoin.volume_24h == 31_500_000_000
        assert bitcoin.price_change_percentage_24h == 1.22
        assert bitcoin.ath == 73_738.0

    @pytest.mark.asyncio
    async def test_fetch_top_tokens_query_params(
        self, test_settings: Settings, mock_coingecko: respx.MockRouter
    ) -> None:
        client = CoinGeckoClient(test_settings)
        try:
            await client.fetch_top_tokens(50)
        finally:
            await client.close()

        params = mock_coingecko["markets"].calls.last.request.url.params
        assert params["vs_currency"] == "usd"
        assert params["order"] == "market_cap_desc"
        assert params["per_page"] == "50"
        assert params["page"] == "1"
        assert params["sparkline"] == "false"

    @pytest.mark.asyncio
    async def test_sends_user_agent_and_optional_api_key(
        self, test_settings: Settings, mock_coingecko: respx.MockRouter
    ) -> None:
        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
            supabase_url=test_settings.supabase_url,
            supabase_key="test-key",
            coingecko_api_url=test_settings.coingecko_api_url,
            coingecko_api_key="demo-key",
        )

        client = CoinGeckoClient(settings)
        try:
            await client.fetch_top_tokens(10)
        finally:
            await client.close()

        headers = mock_coingecko["markets"].calls.last.request.headers
        assert headers["user-agent"].startswith("CryptoTracker/")
        assert headers["x-cg-demo-api-key"] == "demo-key"

    @pytest.mark.asyncio
    async def test_no_api_key_header_by_default(
        self, test_settings: Settings, mock_coingecko: respx.MockRouter
    ) -> None:
        client = CoinGeckoClient(test_settings)
        try:
            await client.fetch_top_tokens(10)
        finally:
            await client.close()

        headers = mock_coingecko["markets"].calls.last.request.headers
        assert "x-cg-demo-api-key" not in headers

    @pytest.mark.asyncio
    async def test_empty_list(
        self, test_settings: Settings, mock_coingecko: respx.MockRouter
    ) -> None:
        mock_coingecko["markets"].mock(return_value=Response(200, json=[]))

        client = CoinGeckoClient(test_settings)
        try:
            assert await client.fetch_top_tokens(100) == []
        finally:
            await client.close()


class TestCoinGeckoClientErrors:
    """Upstream failures surface as ExternalServiceError."""

    @pytest.mark.asyncio
    async def test_429_keeps_status_code(
        self, test_settings: Settings, mock_coingecko: respx.MockRouter
    ) -> None:
        mock_coingecko["markets"].mock(return_value=Response(429))

        client = CoinGeckoClient(test_settings)
        try:
            with pytest.raises(ExternalServiceError) as exc_info:
                await client.fetch_top_tokens(100)
        finally:
            await client.close()

        assert exc_info.value.status_code == 429
        assert mock_coingecko["markets"].call_count == 1

    @pytest.mark.asyncio
    async def test_server_error_is_not_retried_by_default(
        self, test_settings: Settings, mock_coingecko: respx.MockRouter
    ) -> None:
        mock_coingecko["markets"].mock(return_value=Response(503))

        client = CoinGeckoClient(test_settings)
        try:
            with pytest.raises(ExternalServiceError) as exc_info:
                await client.fetch_top_tokens(100)
        finally:
            await client.close()

        assert exc_info.value.status_code == 503
        assert mock_coingecko["markets"].call_count == 1

    @pytest.mark.asyncio
    async def test_invalid_json(
        self, test_settings: Settings, mock_coingecko: respx.MockRouter
    ) -> None:
        mock_coingecko["markets"].mock(return_value=Response(200, text="<html>oops</html>"))

        client = CoinGeckoClient(test_settings)
        try:
            with pytest.raises(ExternalServiceError, match="Failed to parse API response"):
                await client.fetch_top_tokens(100)
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_non_list_payload(
        self, test_settings: Settings, mock_coingecko: respx.MockRouter
    ) -> None:
        mock_coingecko["markets"].mock(
            return_value=Response(200, json={"status": {"error_code": 10005}})
        )

        client = CoinGeckoClient(test_settings)
        try:
            with pytest.raises(ExternalServiceError, match="Unexpected markets payload"):
                await client.fetch_top_tokens(100)
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_entry_missing_required_fields(
        self, test_settings: Settings, mock_coingecko: respx.MockRouter
    ) -> None:
        mock_coingecko["markets"].mock(return_value=Response(200, json=[{"symbol": "btc"}]))

        client = CoinGeckoClient(test_settings)
        try:
            with pytest.raises(ExternalServiceError):
                await client.fetch_top_tokens(100)
        finally:
            await client.close()


class TestCoinGeckoClientSingleToken:
    """Tests for fetch_token."""

    @pytest.mark.asyncio
    async def test_fetch_token_by_id(
        self, test_settings: Settings, mock_coingecko: respx.MockRouter
    ) -> None:
        mock_coingecko["markets"].mock(return_value=Response(200, json=MOCK_MARKETS[:1]))

        client = CoinGeckoClient(test_settings)
        try:
            token = await client.fetch_token("bitcoin")
        finally:
            await client.close()

        assert token.token_id == "bitcoin"
        assert mock_coingecko["markets"].calls.last.request.url.params["ids"] == "bitcoin"

    @pytest.mark.asyncio
    async def test_unknown_id_raises_404(
        self, test_settings: Settings, mock_coingecko: respx.MockRouter
    ) -> None:
        mock_coingecko["markets"].mock(return_value=Response(200, json=[]))

        client = CoinGeckoClient(test_settings)
        try:
            with pytest.raises(ExternalServiceError) as exc_info:
                await client.fetch_token("no-such-coin")
        finally:
            await client.close()

        assert exc_info.value.status_code == 404


class TestCoinGeckoClientHistory:
    """Tests for fetch_history."""

    @pytest.mark.asyncio
    async def test_fetch_history_parses_series(
        self, test_settings: Settings, mock_coingecko: respx.MockRouter
    ) -> None:
        client = CoinGeckoClient(test_settings)
        try:
            history = await client.fetch_history("bitcoin", 7)
        finally:
            await client.close()

        assert history.prices == [tuple(p) for p in MOCK_MARKET_CHART["prices"]]
        assert len(history.market_caps) == 2
        assert len(history.total_volumes) == 2

        request = mock_coingecko["market_chart"].calls.last.request
        assert request.url.path == "/api/v3/coins/bitcoin/market_chart"
        assert request.url.params["days"] == "7"
        assert request.url.params["vs_currency"] == "usd"

    @pytest.mark.asyncio
    async def test_malformed_chart(
        self, test_settings: Settings, mock_coingecko: respx.MockRouter
    ) -> None:
        mock_coingecko["market_chart"].mock(
            return_value=Response(200, json={"prices": "not-a-series"})
        )

        client = CoinGeckoClient(test_settings)
        try:
            with pytest.raises(ExternalServiceError, match="market chart"):
                await client.fetch_history("bitcoin", 7)
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_unknown_coin_history_is_404(
        self, test_settings: Settings, mock_coingecko: respx.MockRouter
    ) -> None:
        mock_coingecko["market_chart"].mock(
            return_value=Response(404, json={"error": "coin not found"})
        )

        client = CoinGeckoClient(test_settings)
        try:
            with pytest.raises(ExternalServiceError) as exc_info:
                await client.fetch_history("no-such-coin", 7)
        finally:
            await client.close()

        assert exc_info.value.status_code == 404
