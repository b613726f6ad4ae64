"""Miss reconciliation — bulk refresh of cache keys known to be stale or absent."""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from titlerlink.cache.coalescer import RequestCoalescer
from titlerlink.types import PendingKey

logger = logging.getLogger(__name__)

QueryFn = Callable[[PendingKey], Awaitable[Any]]
ResolvedFn = Callable[[list[str]], None]


class PendingKeySet:
    """Cache keys that need a refresh, with the parts needed to re-query them."""

    def __init__(self) -> None:
        self._pending: dict[str, PendingKey] = {}

    def add(self, key: str, item: PendingKey) -> None:
        self._pending[key] = item

    def discard(self, key: str) -> None:
        self._pending.pop(key, None)

    def drain(self) -> dict[str, PendingKey]:
        """Remove and return every pending key."""
        batch = self._pending
        self._pending = {}
        return batch

    def keys(self) -> list[str]:
        return list(self._pending)

    def __contains__(self, key: object) -> bool:
        return key in self._pending

    def __len__(self) -> int:
        return len(self._pending)


class MissReconciler:
    """Drains the pending set and re-queries each key once.

    Queries go through the coalescer, so a key already being fetched by a
    poll is not fetched twice. Results are stored here rather than by the
    coalescer, then reported through ``on_resolved``. Keys that fail are
    dropped for this pass; the next cache miss queues them again.
    """

    def __init__(
        self,
        coalescer: RequestCoalescer,
        pending: PendingKeySet,
        query_fn: QueryFn,
        on_resolved: ResolvedFn | None = None,
        max_age: float | None = None,
    ) -> None:
        self._coalescer = coalescer
        self._pending = pending
        self._query_fn = query_fn
        self._on_resolved = on_resolved
        self._max_age = max_age
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def reconcile(self) -> list[str]:
        """Run one pass. Returns the keys that resolved.

        A call made while a pass is running returns immediately.
        """
        if self._running:
            logger.debug("Reconciliation already running, skipping")
            return []

        self._running = True
        try:
            return await self._reconcile()
        finally:
            self._running = False

    async def _reconcile(self) -> list[str]:
        cache = self._coalescer.cache
        batch = {key: item for key, item in self._pending.drain().items() if key not in cache}
        if not batch:
            return []

        logger.debug("Reconciling %d pending keys", len(batch))
        keys = list(batch)
        results = await asyncio.gather(
            *(
                self._coalescer.resolve(
                    key,
                    functools.partial(self._query_fn, item),
                    use_cache=False,
                    store=False,
                )
                for key, item in batch.items()
            ),
            return_exceptions=True,
        )

        resolved: list[str] = []
        for key, result in zip(keys, results):
            if isinstance(result, BaseException):
                logger.warning("Could not resolve %s: %s", key, result)
                continue
            cache.store(key, result, self._max_age)
            resolved.append(key)

        if resolved and self._on_resolved is not None:
            self._on_resolved(resolved)
        return resolved
