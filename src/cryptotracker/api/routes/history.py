"""Price history API route."""

from typing import Annotated

from fastapi import APIRouter, Path

from cryptotracker.api.dependencies import MarketServiceDep
from cryptotracker.data.models.history import HistoricalData

router = APIRouter(tags=["history"])


@router.get("/history/{token_id}/{days}", response_model=HistoricalData)
async def get_history(
    token_id: str,
    days: Annotated[int, Path(ge=1, le=3650)],
    service: MarketServiceDep,
) -> HistoricalData:
    """
    Get price, market cap and volume series for a token.

    Responds 503 with a retry hint when the series can neither be fetched
    nor served from the cache.
    """
    return await service.get_history(token_id, days)
