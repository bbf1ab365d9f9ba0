"""Process-wide gate for upstream market data calls.

One RateGate instance is shared by every request handler. It enforces a
minimum spacing between upstream calls and a longer backoff window once
the provider signals throttling. State lives in memory only and resets
on restart.
"""

import asyncio
import time
from collections.abc import Callable
from typing import Any

import structlog

from cryptotracker.constants.market import (
    MIN_REQUEST_INTERVAL_SECONDS,
    RATE_LIMIT_BACKOFF_SECONDS,
    RATE_LIMIT_MARKERS,
)

log = structlog.get_logger(__name__)


def is_rate_limit_error(error: BaseException) -> bool:
    """Return True if an upstream failure means we are being throttled.

    An HTTP status, when known, decides. Otherwise a rate-limit marker in
    the error text does.
    """
    status_code = getattr(error, "status_code", None)
    if status_code is not None:
        return status_code == 429
    text = str(error).lower()
    return any(marker in text for marker in RATE_LIMIT_MARKERS)


class RateGate:
    """Minimum-interval plus backoff throttle for upstream calls.

    All operations take the same asyncio.Lock, so a check and the matching
    record can never interleave with another request's.

    Example:
        ```python
        gate = RateGate(min_interval_seconds=2, backoff_seconds=60)

        if await gate.try_acquire():
            try:
                tokens = await fetcher.fetch_top_tokens(100)
            except ExternalServiceError as e:
                if is_rate_limit_error(e):
                    await gate.record_throttled()
        ```
    """

    def __init__(
        self,
        min_interval_seconds: float = MIN_REQUEST_INTERVAL_SECONDS,
        backoff_seconds: float = RATE_LIMIT_BACKOFF_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize an open gate.

        Args:
            min_interval_seconds: Minimum spacing between upstream calls.
            backoff_seconds: Gate-closed window after a throttling signal.
            clock: Monotonic time source in seconds (injectable for tests).
        """
        self.min_interval_seconds = min_interval_seconds
        self.backoff_seconds = backoff_seconds
        self._clock = clock
        self._lock = asyncio.Lock()
        self._last_call_at: float | None = None
        self._rate_limited_until: float | None = None

    def _is_open(self, now: float) -> bool:
        if self._rate_limited_until is not None and now < self._rate_limited_until:
            log.info(
                "rate_gate_backing_off",
                remaining_seconds=round(self._rate_limited_until - now, 1),
            )
            return False

        if (
            self._last_call_at is not None
            and now - self._last_call_at < self.min_interval_seconds
        ):
            log.debug(
                "rate_gate_interval_not_elapsed",
                since_last_call_seconds=round(now - self._last_call_at, 3),
            )
            return False

        return True

    async def may_call(self) -> bool:
        """Return True if an upstream call may be attempted now."""
        async with self._lock:
            return self._is_open(self._clock())

    async def record_call(self) -> None:
        """Mark an upstream call as attempted now.

        Called before the attempt, so failed calls consume the interval too.
        """
        async with self._lock:
            self._last_call_at = self._clock()

    async def record_throttled(self) -> None:
        """Close the gate for the backoff window."""
        async with self._lock:
            self._rate_limited_until = self._clock() + self.backoff_seconds
        log.warning("rate_gate_throttled", backoff_seconds=self.backoff_seconds)

    async def try_acquire(self) -> bool:
        """Check the gate and record a call in one atomic step.

        Returns:
            True if the caller may make the upstream call now.
        """
        async with self._lock:
            now = self._clock()
            if not self._is_open(now):
                return False
            self._last_call_at = now
            return True

    def status(self) -> dict[str, Any]:
        """Snapshot of the gate for health reporting."""
        now = self._clock()
        backoff_remaining = (
            max(0.0, self._rate_limited_until - now)
            if self._rate_limited_until is not None
            else 0.0
        )
        since_last_call = (
            now - self._last_call_at if self._last_call_at is not None else None
        )
        return {
            "open": backoff_remaining == 0.0
            and (since_last_call is None or since_last_call >= self.min_interval_seconds),
            "backoff_remaining_seconds": round(backoff_remaining, 1),
            "seconds_since_last_call": (
                round(since_last_call, 1) if since_last_call is not None else None
            ),
        }
