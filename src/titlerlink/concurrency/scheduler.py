"""Keyed debounce scheduler with cancel-and-replace semantics."""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

Action = Callable[[], Any]


class Scheduler:
    """Runs an action after a delay, at most one pending action per key.

    Scheduling under a key that already has a pending action cancels it, so
    only the most recent action for a key ever runs. Actions may be plain
    callables or return an awaitable, which is run as a task. Failures are
    logged, never raised into the event loop.
    """

    def __init__(self) -> None:
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._tasks: set[asyncio.Task[Any]] = set()

    def schedule(self, key: str, action: Action, delay: float = 1.0) -> None:
        self.cancel(key)
        loop = asyncio.get_running_loop()
        self._timers[key] = loop.call_later(delay, self._fire, key, action)

    def cancel(self, key: str) -> bool:
        timer = self._timers.pop(key, None)
        if timer is None:
            return False
        timer.cancel()
        return True

    def cancel_all(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

    def is_scheduled(self, key: str) -> bool:
        return key in self._timers

    async def drain(self) -> None:
        """Wait for actions that have fired and are still running."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def __len__(self) -> int:
        return len(self._timers)

    def _fire(self, key: str, action: Action) -> None:
        self._timers.pop(key, None)
        try:
            result = action()
        except Exception:
            logger.exception("Scheduled action '%s' failed", key)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(functools.partial(self._finished, key))

    def _finished(self, key: str, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Scheduled action '%s' failed: %s", key, exc)
