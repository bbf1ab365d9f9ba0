"""Fixtures for API route tests.

Routes run against a bare FastAPI app wired to the in-memory market
service from the root conftest, with the real exception handlers.
"""

from collections.abc import Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from cryptotracker.api.errors import register_exception_handlers
from cryptotracker.api.routes import health, history, stats, tokens
from cryptotracker.services.market.service import MarketDataService


@pytest.fixture
def mock_store_client() -> MagicMock:
    """Connected-looking SupabaseClient for the health route."""
    client = MagicMock()
    client.health_check = AsyncMock(return_value={"status": "connected", "healthy": True})
    return client


@pytest.fixture
def app(market_service: MarketDataService, mock_store_client: MagicMock) -> FastAPI:
    """Create test FastAPI app."""
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(health.router, prefix="/api")
    app.include_router(tokens.router, prefix="/api")
    app.include_router(history.router, prefix="/api")
    app.include_router(stats.router, prefix="/api")
    app.state.market_service = market_service
    app.state.supabase = mock_store_client
    return app


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Test client sharing one event loop across the test's requests."""
    with TestClient(app) as test_client:
        yield test_client
