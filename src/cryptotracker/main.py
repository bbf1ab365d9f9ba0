"""CryptoTracker - Main application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cryptotracker.api.errors import register_exception_handlers
from cryptotracker.api.routes import health, history, stats, tokens
from cryptotracker.config import get_settings
from cryptotracker.config.logging import configure_logging
from cryptotracker.core.exceptions import DatabaseConnectionError
from cryptotracker.data.supabase.client import SupabaseClient
from cryptotracker.data.supabase.repositories.history_repo import PriceHistoryRepository
from cryptotracker.data.supabase.repositories.token_repo import TokenRepository
from cryptotracker.services.coingecko.client import CoinGeckoClient
from cryptotracker.services.market.rate_gate import RateGate
from cryptotracker.services.market.service import MarketDataService

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle.

    On startup: Connect to Supabase (gracefully handle failures) and build
    the shared rate gate and market data service.
    On shutdown: Drain background cache writes, close all connections.
    """
    settings = get_settings()
    configure_logging(settings)

    supabase = SupabaseClient(settings)
    try:
        await supabase.connect()
        log.info("startup_supabase_connected")
    except DatabaseConnectionError as e:
        # Reads degrade to "nothing cached" until the store comes back
        log.warning("startup_supabase_failed", error=str(e))

    coingecko = CoinGeckoClient(settings)
    rate_gate = RateGate(
        min_interval_seconds=settings.min_request_interval_seconds,
        backoff_seconds=settings.rate_limit_backoff_seconds,
    )

    app.state.supabase = supabase
    app.state.market_service = MarketDataService(
        fetcher=coingecko,
        token_store=TokenRepository(supabase),
        history_store=PriceHistoryRepository(supabase),
        rate_gate=rate_gate,
        top_tokens_limit=settings.top_tokens_limit,
    )
    log.info("application_started", version=settings.app_version)

    yield

    await app.state.market_service.close()
    await coingecko.close()
    await supabase.disconnect()
    log.info("shutdown_complete")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    application = FastAPI(
        title=settings.app_name,
        description="Cached cryptocurrency market data backed by CoinGecko",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(application)

    application.include_router(health.router, prefix="/api")
    application.include_router(tokens.router, prefix="/api")
    application.include_router(history.router, prefix="/api")
    application.include_router(stats.router, prefix="/api")

    return application


# Create the app instance
app = create_app()


def main() -> None:
    """Run the application with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "cryptotracker.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
