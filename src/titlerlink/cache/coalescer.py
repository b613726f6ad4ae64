"""Request coalescing — at most one in-flight fetch per cache key."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from titlerlink.cache.memory import TTLCache

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestCoalescer:
    """Shares one pending fetch between every caller asking for the same key.

    A fresh cache entry short-circuits the fetch. Otherwise the first caller
    starts ``fetch_fn`` and later callers await the same task until it settles.
    Successful results are written back to the cache; failures are not cached,
    so the next caller retries.
    """

    def __init__(self, cache: TTLCache, max_age: float | None = None) -> None:
        self._cache = cache
        self._max_age = max_age
        self._in_flight: dict[str, asyncio.Task[Any]] = {}
        self._fetches = 0

    @property
    def cache(self) -> TTLCache:
        return self._cache

    @property
    def fetch_count(self) -> int:
        """Number of fetches actually started."""
        return self._fetches

    def in_flight(self, key: str) -> bool:
        return key in self._in_flight

    async def resolve(
        self,
        key: str,
        fetch_fn: Callable[[], Awaitable[T]],
        *,
        use_cache: bool = True,
        store: bool = True,
    ) -> T:
        """Return the cached value for key, or the result of a single shared fetch.

        ``store=False`` leaves writing the result to the caller. A caller that
        joins an existing fetch inherits that fetch's store setting.
        """
        if use_cache:
            entry = self._cache.lookup(key)
            if entry is not None:
                return entry.value

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch(key, fetch_fn, store))
            task.add_done_callback(_consume_exception)
            self._in_flight[key] = task
            self._fetches += 1
        else:
            logger.debug("Joining in-flight fetch for %s", key)

        # A cancelled caller must not cancel the fetch other callers share
        return await asyncio.shield(task)

    async def _fetch(self, key: str, fetch_fn: Callable[[], Awaitable[T]], store: bool) -> T:
        try:
            value = await fetch_fn()
            if store:
                self._cache.store(key, value, self._max_age)
            return value
        finally:
            self._in_flight.pop(key, None)


def _consume_exception(task: asyncio.Task[Any]) -> None:
    """Mark a failed fetch as retrieved; every waiting caller already re-raises it."""
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Fetch failed: %s", task.exception())
