"""Fire-and-forget cache writes.

Writes scheduled here are best-effort and eventually consistent: the
request that scheduled them has already been answered, so a failure is
logged and dropped.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any

import structlog

log = structlog.get_logger(__name__)


class BackgroundWriter:
    """Runs cache writes as detached asyncio tasks.

    Tasks are held in a set until done so the event loop does not
    garbage-collect them mid-flight.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str) -> asyncio.Task[Any]:
        """Schedule ``coro`` without awaiting it."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        log.debug("background_write_scheduled", task=name)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)

        if task.cancelled():
            log.warning("background_write_cancelled", task=task.get_name())
            return

        error = task.exception()
        if error is not None:
            log.error(
                "background_write_failed",
                task=task.get_name(),
                error=str(error),
                error_type=type(error).__name__,
            )
            return

        log.debug("background_write_completed", task=task.get_name())

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for pending writes to finish (used on shutdown and in tests)."""
        if not self._tasks:
            return

        _, still_pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        if still_pending:
            log.warning("background_writes_still_pending", count=len(still_pending))
