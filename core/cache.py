"""Freshness policy and single-flight coordination shared by the client caches.

Updates:
  v0.3.0 - 2026-10-18 - Run the shared operation in its own task; cancelled callers never abort it.
  v0.2.0 - 2026-10-12 - Always release the in-flight flag and waiters when a fetch fails.
  v0.1.0 - 2026-10-07 - Add pure fetch decision helper and single-flight coordinator.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, Generic, TypeVar

from config.settings import DEFAULT_PROMPT_CACHE_TTL_SECONDS

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger("prompthub.cache")

T = TypeVar("T")


class FetchDecision(str, Enum):
    """Outcome of :func:`needs_fetch`."""
    USE_CACHE = "use_cache"
    JOIN_IN_FLIGHT = "join_in_flight"
    FETCH = "fetch"


def is_fresh(now: float, last_fetched_at: float | None, ttl_seconds: float) -> bool:
    """Return ``True`` when a fetch at *last_fetched_at* is still inside the window."""
    if last_fetched_at is None:
        return False
    return now - last_fetched_at < ttl_seconds


def needs_fetch(
    now: float,
    last_fetched_at: float | None,
    in_progress: bool,
    ttl_seconds: float = DEFAULT_PROMPT_CACHE_TTL_SECONDS,
) -> FetchDecision:
    """Decide whether a caller may use the cache, must join a fetch, or must fetch.

    Freshness wins over an in-flight fetch: a caller holding fresh data never
    waits on a refresh.
    """
    if is_fresh(now, last_fetched_at, ttl_seconds):
        return FetchDecision.USE_CACHE
    if in_progress:
        return FetchDecision.JOIN_IN_FLIGHT
    return FetchDecision.FETCH


class SingleFlight(Generic[T]):
    """Run at most one operation at a time; overlapping callers share its outcome.

    The operation runs in its own task, so cancelling any caller (the one that
    started it included) only stops that caller from waiting. The flag is
    cleared and every waiter released when the task returns, raises, or is
    cancelled.
    """

    def __init__(self, name: str = "operation") -> None:
        self._name = name
        self._task: asyncio.Future[T] | None = None
        self._waiters: list[asyncio.Future[T]] = []

    @property
    def in_progress(self) -> bool:
        """Return ``True`` while an operation is running."""
        return self._task is not None

    @property
    def waiting(self) -> int:
        """Return the number of callers queued on the running operation."""
        return len(self._waiters)

    async def join(self) -> T:
        """Wait for the running operation and return its result."""
        if self._task is None:
            raise RuntimeError(f"No {self._name} in progress")
        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._waiters.append(future)
        logger.debug("Joining in-flight %s", self._name, extra={"waiting": len(self._waiters)})
        return await future

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Start *operation*, or join the one already in progress."""
        if self._task is not None:
            return await self.join()
        task = asyncio.ensure_future(operation())
        self._task = task
        task.add_done_callback(self._settle)
        return await asyncio.shield(task)

    def _settle(self, task: asyncio.Future[T]) -> None:
        if self._task is task:
            self._task = None
        waiters, self._waiters = self._waiters, []
        pending = [future for future in waiters if not future.done()]
        if task.cancelled():
            logger.debug("%s cancelled", self._name.capitalize())
            for future in pending:
                future.cancel()
            return
        exc = task.exception()
        for future in pending:
            if exc is not None:
                future.set_exception(exc)
            else:
                future.set_result(task.result())


__all__ = [
    "FetchDecision",
    "SingleFlight",
    "is_fresh",
    "needs_fetch",
]
