"""Supabase async client with connection management."""

import time
from typing import Any

import structlog
from supabase._async.client import AsyncClient
from supabase._async.client import create_client as create_async_client
from supabase.lib.client_options import AsyncClientOptions
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from cryptotracker.config.settings import Settings, get_settings
from cryptotracker.core.exceptions import DatabaseConnectionError

log = structlog.get_logger(__name__)

# Cheapest query that proves both the connection and the schema
HEALTH_CHECK_TABLE = "tokens"


def _log_connect_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    log.warning(
        "supabase_connect_retrying",
        attempt=retry_state.attempt_number,
        error=str(error),
    )


class SupabaseClient:
    """Async Supabase client wrapper owned by the application lifespan.

    Repositories go through ``table()``; until ``connect()`` succeeds every
    query raises DatabaseConnectionError, which the repositories treat as
    an unavailable store.

    Example:
        supabase = SupabaseClient(settings)
        await supabase.connect()
        rows = await supabase.table("tokens").select("*").execute()
        await supabase.disconnect()
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._client: AsyncClient | None = None
        self._settings = settings or get_settings()

    async def _create(self) -> AsyncClient:
        try:
            return await create_async_client(
                self._settings.supabase_url,
                self._settings.supabase_key.get_secret_value(),
                options=AsyncClientOptions(schema=self._settings.postgres_schema),
            )
        except Exception as e:
            raise DatabaseConnectionError(f"Supabase: {e}") from e

    async def connect(self) -> None:
        """Establish the connection, retrying with exponential backoff.

        Does nothing if already connected.

        Raises:
            DatabaseConnectionError: If every attempt fails.
        """
        if self._client is not None:
            return

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._settings.supabase_connect_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=4),
            retry=retry_if_exception_type(DatabaseConnectionError),
            before_sleep=_log_connect_retry,
            reraise=True,
        )
        try:
            self._client = await retrying(self._create)
        except DatabaseConnectionError as e:
            log.error("supabase_connection_failed", error=str(e))
            raise

        log.info(
            "supabase_connected",
            url=self._settings.supabase_url,
            schema=self._settings.postgres_schema,
        )

    async def disconnect(self) -> None:
        if self._client is not None:
            self._client = None
            log.info("supabase_disconnected")

    @property
    def client(self) -> AsyncClient:
        """The underlying Supabase client.

        Raises:
            DatabaseConnectionError: If not connected.
        """
        if self._client is None:
            raise DatabaseConnectionError("Supabase: Client not connected")
        return self._client

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def table(self, name: str) -> Any:
        """Start a query against ``name``.

        Raises:
            DatabaseConnectionError: If not connected.
        """
        return self.client.table(name)

    async def health_check(self) -> dict[str, Any]:
        """Run a one-row select and report how it went.

        Returns:
            Dict with status, healthy flag, latency in milliseconds when
            connected, and the error message when the query failed.
        """
        if self._client is None:
            return {"status": "disconnected", "healthy": False}

        started = time.perf_counter()
        try:
            await self._client.table(HEALTH_CHECK_TABLE).select("token_id").limit(1).execute()
        except Exception as e:
            log.error("supabase_health_check_failed", error=str(e))
            return {"status": "error", "healthy": False, "error": str(e)}

        latency_ms = round((time.perf_counter() - started) * 1000, 1)
        return {"status": "connected", "healthy": True, "latency_ms": latency_ms}
