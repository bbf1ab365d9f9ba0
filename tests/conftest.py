"""Shared pytest fixtures for CryptoTracker tests.

This module provides fixtures for:
- Environment configuration
- In-memory store and fetcher doubles
- A manually driven clock for the rate gate
- Test data factories

Usage:
    @pytest.mark.asyncio
    async def test_something(market_service, token_store):
        ...
"""

import os
from collections.abc import Generator
from unittest.mock import MagicMock

import pytest

from cryptotracker.config.settings import Settings
from cryptotracker.services.market.rate_gate import RateGate
from cryptotracker.services.market.service import MarketDataService
from tests.factories.token import TokenFactory
from tests.fixtures.coingecko_mock import COINGECKO_BASE_URL, mock_coingecko  # noqa: F401
from tests.support.fakes import (
    FakeClock,
    FakeFetcher,
    InMemoryHistoryStore,
    InMemoryTokenStore,
)

# =============================================================================
# Environment Configuration
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> Generator[None, None, None]:
    """Set up test environment variables.

    Loads .env file first, then sets defaults for any missing variables.
    """
    from dotenv import load_dotenv

    original_env = os.environ.copy()

    load_dotenv()

    os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
    os.environ.setdefault("SUPABASE_KEY", "test-key")

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def test_settings() -> Settings:
    """Settings pinned to test values, independent of any .env file."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        supabase_url="http://localhost:54321",
        supabase_key="test-key",
        coingecko_api_url=COINGECKO_BASE_URL,
        coingecko_api_key="",
        coingecko_max_retries=1,
        circuit_breaker_threshold=5,
    )


# =============================================================================
# Factory Fixtures
# =============================================================================


@pytest.fixture
def token_factory() -> type[TokenFactory]:
    """Provide token factory for creating test tokens."""
    return TokenFactory


# =============================================================================
# Market Service Doubles
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_gate(clock: FakeClock) -> RateGate:
    """Rate gate with the production intervals on a fake clock."""
    return RateGate(min_interval_seconds=2, backoff_seconds=60, clock=clock)


@pytest.fixture
def token_store() -> InMemoryTokenStore:
    return InMemoryTokenStore()


@pytest.fixture
def history_store() -> InMemoryHistoryStore:
    return InMemoryHistoryStore()


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def market_service(
    fetcher: FakeFetcher,
    token_store: InMemoryTokenStore,
    history_store: InMemoryHistoryStore,
    rate_gate: RateGate,
) -> MarketDataService:
    """Market data service wired to in-memory doubles."""
    return MarketDataService(
        fetcher=fetcher,
        token_store=token_store,
        history_store=history_store,
        rate_gate=rate_gate,
    )


# =============================================================================
# Database Fixtures (Mocked for Unit Tests)
# =============================================================================


@pytest.fixture
def mock_supabase_client() -> MagicMock:
    """Mock SupabaseClient wrapper for repository unit tests."""
    return MagicMock()
