"""FastAPI dependencies for dependency injection.

Long-lived collaborators are built once in the application lifespan and
kept on ``app.state``; these dependencies hand them to the routes.
"""

from typing import Annotated

from fastapi import Depends, Request

from cryptotracker.config.settings import Settings, get_settings
from cryptotracker.data.supabase.client import SupabaseClient
from cryptotracker.services.market.service import MarketDataService

SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_market_service(request: Request) -> MarketDataService:
    """Get the shared market data service."""
    service: MarketDataService = request.app.state.market_service
    return service


def get_store_client(request: Request) -> SupabaseClient | None:
    """Get the shared Supabase client, if the app has one."""
    return getattr(request.app.state, "supabase", None)


MarketServiceDep = Annotated[MarketDataService, Depends(get_market_service)]
StoreClientDep = Annotated[SupabaseClient | None, Depends(get_store_client)]
