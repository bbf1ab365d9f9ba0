"""Token API routes: listing, lookup, search and favorites."""

from typing import Annotated

from fastapi import APIRouter, Query

from cryptotracker.api.dependencies import MarketServiceDep
from cryptotracker.core.exceptions import ValidationError
from cryptotracker.data.models.token import FavoriteRequest, Token

router = APIRouter(tags=["tokens"])


@router.get("/tokens", response_model=list[Token])
async def list_tokens(service: MarketServiceDep) -> list[Token]:
    """
    List the top tokens by market cap.

    Served fresh from CoinGecko when the rate gate allows, otherwise from
    the cache. Responds 503 with a retry hint when neither has data.
    """
    return await service.list_tokens()


@router.post("/tokens/favorite", response_model=Token)
async def toggle_favorite(request: FavoriteRequest, service: MarketServiceDep) -> Token:
    """Toggle a cached token's favorite flag."""
    return await service.toggle_favorite(request.token_id)


@router.get("/tokens/{token_id}", response_model=Token)
async def get_token(token_id: str, service: MarketServiceDep) -> Token:
    """Get a single token, from the cache when present."""
    return await service.get_token(token_id)


@router.get("/favorites", response_model=list[Token])
async def list_favorites(service: MarketServiceDep) -> list[Token]:
    """List tokens flagged as favorite."""
    return await service.list_favorites()


@router.get("/search", response_model=list[Token])
async def search_tokens(
    service: MarketServiceDep,
    q: Annotated[str | None, Query(max_length=100)] = None,
) -> list[Token]:
    """Search cached tokens by name, symbol or id. Never calls upstream."""
    if not q or not q.strip():
        raise ValidationError("Search query is required")
    return await service.search_tokens(q.strip())
