"""Market statistics API route."""

from fastapi import APIRouter

from cryptotracker.api.dependencies import MarketServiceDep
from cryptotracker.data.models.token import TokenStats

router = APIRouter(tags=["stats"])


@router.get("/stats", response_model=TokenStats)
async def get_stats(service: MarketServiceDep) -> TokenStats:
    """Aggregate statistics over the cached tokens."""
    return await service.get_stats()
