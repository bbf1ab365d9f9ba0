"""Base HTTP client for upstream APIs.

This module provides:
- CircuitState enum for circuit breaker states
- CircuitBreaker dataclass that stops calling an upstream that keeps failing
- BaseAPIClient, an httpx client with bounded retry and a circuit breaker

Only transport errors and 5xx responses are retried. A 4xx response,
429 included, fails on the spot so the caller can decide how to back off.
"""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from cryptotracker.core.exceptions import CircuitBreakerOpenError, ExternalServiceError

log = structlog.get_logger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation, requests allowed
    OPEN = "open"  # Too many failures, requests blocked
    HALF_OPEN = "half_open"  # Cooldown over, one probe request allowed


@dataclass
class CircuitBreaker:
    """Opens after consecutive upstream failures, probes again after a cooldown.

    Attributes:
        failure_threshold: Consecutive failures that open the circuit.
        cooldown_seconds: Time the circuit stays open before a probe.
        clock: Monotonic time source in seconds.
        failure_count: Current consecutive failure count.
        opened_at: Clock reading when the circuit last opened.
        state: Current circuit state.
    """

    failure_threshold: int = 5
    cooldown_seconds: float = 30.0
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    failure_count: int = field(default=0, init=False)
    opened_at: float | None = field(default=None, init=False)
    state: CircuitState = field(default=CircuitState.CLOSED, init=False)

    def record_success(self) -> None:
        if self.state is not CircuitState.CLOSED:
            log.info("circuit_breaker_closed", previous_state=self.state.value)
        self.failure_count = 0
        self.opened_at = None
        self.state = CircuitState.CLOSED

    def record_failure(self) -> None:
        """Count a failure; a failed probe or reaching the threshold opens the circuit."""
        self.failure_count += 1

        if self.state is CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
            self.state = CircuitState.OPEN
            self.opened_at = self.clock()
            log.warning(
                "circuit_breaker_opened",
                failure_count=self.failure_count,
                cooldown_seconds=self.cooldown_seconds,
            )

    def retry_in(self) -> float:
        """Seconds until an open circuit lets a probe through."""
        if self.state is not CircuitState.OPEN or self.opened_at is None:
            return 0.0
        return max(0.0, self.opened_at + self.cooldown_seconds - self.clock())

    def allow_request(self) -> bool:
        """Return True if a request may go out now.

        An open circuit whose cooldown has elapsed moves to HALF_OPEN.
        """
        if self.state is not CircuitState.OPEN:
            return True
        if self.retry_in() > 0:
            return False

        self.state = CircuitState.HALF_OPEN
        log.info("circuit_breaker_half_open")
        return True

    def raise_if_open(self) -> None:
        """Raise if requests are currently blocked.

        Raises:
            CircuitBreakerOpenError: If the circuit is open and cooling down.
        """
        if not self.allow_request():
            raise CircuitBreakerOpenError(
                f"Circuit breaker is open. Next retry in {self.retry_in():.1f} seconds."
            )


class _RetryableError(Exception):
    """A failed attempt worth repeating (transport error or 5xx)."""

    def __init__(self, cause: Exception, status_code: int | None = None) -> None:
        super().__init__(repr(cause))
        self.cause = cause
        self.status_code = status_code


class BaseAPIClient:
    """Base API client with retry and circuit breaker support.

    The underlying httpx.AsyncClient is created on the first request and
    released by ``close()``.

    Example:
        client = BaseAPIClient(
            base_url="https://api.example.com",
            headers={"x-api-key": "token"},
            max_retries=2,
        )
        try:
            response = await client.get("/endpoint", params={"page": 1})
        finally:
            await client.close()
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        max_retries: int = 3,
        circuit_breaker_threshold: int = 5,
        circuit_breaker_cooldown: float = 30.0,
    ) -> None:
        """Initialize BaseAPIClient.

        Args:
            base_url: Base URL for all requests.
            timeout: Per-request timeout in seconds.
            headers: Default headers for all requests.
            max_retries: Attempts per request; 1 disables retry.
            circuit_breaker_threshold: Consecutive failures before the circuit opens.
            circuit_breaker_cooldown: Seconds the circuit stays open.
        """
        self.base_url = base_url
        self.timeout = timeout
        self.headers = headers or {}
        self.max_retries = max_retries
        self._client: httpx.AsyncClient | None = None
        self._circuit_breaker = CircuitBreaker(
            failure_threshold=circuit_breaker_threshold,
            cooldown_seconds=circuit_breaker_cooldown,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self.headers,
            )
            log.debug("httpx_client_created", base_url=self.base_url)
        return self._client

    async def close(self) -> None:
        """Close the httpx client and release resources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            log.debug("httpx_client_closed", base_url=self.base_url)

    @staticmethod
    async def _sleep(seconds: float) -> None:
        await asyncio.sleep(seconds)

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        log.warning(
            "request_retrying",
            base_url=self.base_url,
            attempt=retry_state.attempt_number,
            max_retries=self.max_retries,
            error=str(error),
            wait_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
        )

    async def _send(
        self, client: httpx.AsyncClient, method: str, path: str, **kwargs: Any
    ) -> httpx.Response:
        """Make one attempt, sorting failures into retryable and final."""
        try:
            response = await client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            if status_code < 500:
                log.warning(
                    "request_client_error",
                    method=method,
                    path=path,
                    status_code=status_code,
                )
                raise ExternalServiceError(
                    service=self.base_url,
                    message=f"HTTP {status_code}: {e.response.reason_phrase}",
                    status_code=status_code,
                ) from e
            self._circuit_breaker.record_failure()
            raise _RetryableError(e, status_code) from e
        except httpx.RequestError as e:
            self._circuit_breaker.record_failure()
            raise _RetryableError(e) from e

        self._circuit_breaker.record_success()
        return response

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Make an HTTP request with retry and circuit breaker.

        Args:
            method: HTTP method (GET, POST, ...).
            path: Request path (appended to base_url).
            **kwargs: Additional arguments passed to httpx.request.

        Returns:
            httpx.Response on success.

        Raises:
            CircuitBreakerOpenError: If circuit breaker is open.
            ExternalServiceError: On a 4xx response, or once all attempts fail.
        """
        self._circuit_breaker.raise_if_open()
        client = await self._get_client()

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, max=4),
            retry=retry_if_exception_type(_RetryableError),
            before_sleep=self._log_retry,
            sleep=self._sleep,
            reraise=True,
        )

        try:
            return await retrying(self._send, client, method, path, **kwargs)
        except _RetryableError as e:
            log.error(
                "request_max_retries_exceeded",
                method=method,
                path=path,
                max_retries=self.max_retries,
                error=str(e),
            )
            raise ExternalServiceError(
                service=self.base_url,
                message=f"Request failed after {self.max_retries} attempt(s): {e}",
                status_code=e.status_code,
            ) from e.cause

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        """Make a GET request."""
        return await self._request("GET", path, **kwargs)
