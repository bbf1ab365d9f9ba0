"""Health check endpoint with store and rate gate status."""

from typing import Any

from fastapi import APIRouter

from cryptotracker.api.dependencies import MarketServiceDep, SettingsDep, StoreClientDep

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(
    settings: SettingsDep,
    service: MarketServiceDep,
    store: StoreClientDep,
) -> dict[str, Any]:
    """
    Health check endpoint with store and rate gate status.

    Returns:
        dict with overall status, version, store health and rate gate state.
    """
    if store is None:
        store_health: dict[str, Any] = {"status": "disconnected", "healthy": False}
    else:
        store_health = await store.health_check()

    return {
        "status": "ok" if store_health["healthy"] else "degraded",
        "version": settings.app_version,
        "databases": {"supabase": store_health},
        "rate_gate": service.rate_gate.status(),
        "pending_cache_writes": service.background.pending,
    }
