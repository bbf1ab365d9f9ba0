"""CoinGecko API client for market snapshots and price history.

API Documentation: https://docs.coingecko.com/reference/introduction
Rate Limits: ~5-30 calls/minute on the public tier; throttled calls get 429.
"""

from typing import Any

import structlog
from pydantic import ValidationError

from cryptotracker.config.settings import Settings, get_settings
from cryptotracker.constants.market import USER_AGENT, VS_CURRENCY
from cryptotracker.core.exceptions import ExternalServiceError
from cryptotracker.data.models.history import HistoricalData
from cryptotracker.data.models.token import Token
from cryptotracker.services.base import BaseAPIClient
from cryptotracker.services.coingecko.models import CoinGeckoMarket

log = structlog.get_logger(__name__)


class CoinGeckoClient(BaseAPIClient):
    """CoinGecko API client.

    Inherits from BaseAPIClient to provide bounded retry and circuit breaker
    protection for API calls. Every fetch either returns parsed data or
    raises ExternalServiceError; a 429 keeps ``status_code=429`` so the
    caller can back off.

    Endpoints used:
        - GET /coins/markets - Top coins by market cap, or selected ids
        - GET /coins/{id}/market_chart - Price, market cap and volume series

    Example:
        client = CoinGeckoClient()
        try:
            tokens = await client.fetch_top_tokens(100)
        finally:
            await client.close()
    """

    SERVICE_NAME = "coingecko"

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize CoinGecko client from settings."""
        settings = settings or get_settings()

        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        api_key = settings.coingecko_api_key.get_secret_value()
        if api_key:
            headers["x-cg-demo-api-key"] = api_key

        super().__init__(
            base_url=settings.coingecko_api_url,
            timeout=settings.coingecko_timeout,
            headers=headers,
            max_retries=settings.coingecko_max_retries,
            circuit_breaker_threshold=settings.circuit_breaker_threshold,
            circuit_breaker_cooldown=settings.circuit_breaker_cooldown,
        )
        log.info("coingecko_client_initialized", base_url=self.base_url)

    async def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        response = await self.get(path, params=params)
        try:
            return response.json()
        except ValueError as e:
            log.error("coingecko_invalid_json", path=path, body=response.text[:500])
            raise ExternalServiceError(
                service=self.SERVICE_NAME,
                message=f"Failed to parse API response: {e}",
            ) from e

    def _parse_markets(self, data: Any) -> list[CoinGeckoMarket]:
        if not isinstance(data, list):
            raise ExternalServiceError(
                service=self.SERVICE_NAME,
                message=f"Unexpected markets payload: {type(data).__name__}",
            )
        try:
            return [CoinGeckoMarket.model_validate(item) for item in data]
        except ValidationError as e:
            raise ExternalServiceError(
                service=self.SERVICE_NAME,
                message=f"Failed to parse API response: {e.error_count()} invalid field(s)",
            ) from e

    async def fetch_top_tokens(self, limit: int) -> list[Token]:
        """Fetch the top ``limit`` coins ordered by market cap.

        Raises:
            ExternalServiceError: If the request fails or the payload is malformed.
        """
        log.info("fetching_top_tokens", limit=limit)

        data = await self._get_json(
            "/coins/markets",
            {
                "vs_currency": VS_CURRENCY,
                "order": "market_cap_desc",
                "per_page": limit,
                "page": 1,
                "sparkline": "false",
                "price_change_percentage": "24h",
            },
        )
        tokens = [market.to_token() for market in self._parse_markets(data)]

        log.info("top_tokens_fetched", count=len(tokens))
        return tokens

    async def fetch_token(self, token_id: str) -> Token:
        """Fetch a single coin's market snapshot.

        Raises:
            ExternalServiceError: If the request fails, the payload is
                malformed, or CoinGecko has no such coin (status_code=404).
        """
        log.debug("fetching_token", token_id=token_id)

        data = await self._get_json(
            "/coins/markets",
            {
                "vs_currency": VS_CURRENCY,
                "ids": token_id,
                "sparkline": "false",
                "price_change_percentage": "24h",
            },
        )
        markets = self._parse_markets(data)
        if not markets:
            raise ExternalServiceError(
                service=self.SERVICE_NAME,
                message=f"Token not found: {token_id}",
                status_code=404,
            )
        return markets[-1].to_token()

    async def fetch_history(self, token_id: str, days: int) -> HistoricalData:
        """Fetch the market chart for a coin over the last ``days`` days.

        Raises:
            ExternalServiceError: If the request fails or the payload is malformed.
        """
        log.debug("fetching_history", token_id=token_id, days=days)

        data = await self._get_json(
            f"/coins/{token_id}/market_chart",
            {"vs_currency": VS_CURRENCY, "days": days},
        )
        try:
            history = HistoricalData.model_validate(data)
        except ValidationError as e:
            raise ExternalServiceError(
                service=self.SERVICE_NAME,
                message=f"Failed to parse market chart: {e.error_count()} invalid field(s)",
            ) from e

        log.debug("history_fetched", token_id=token_id, points=len(history.prices))
        return history
