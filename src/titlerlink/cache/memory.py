"""In-memory TTL store with lazy expiry."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from titlerlink.cache.stats import CacheEntry, CacheStats

_DEFAULT_MAX_AGE = 0.25  # seconds


class TTLCache:
    """Key → timestamped value mapping.

    Entries are replaced, never mutated. Expired entries are dropped when they
    are read; there is no background sweep and no size bound.
    """

    def __init__(
        self,
        default_max_age: float = _DEFAULT_MAX_AGE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store: dict[str, CacheEntry] = {}
        self._default_max_age = default_max_age
        self._clock = clock
        self._stats = CacheStats()

    @property
    def default_max_age(self) -> float:
        return self._default_max_age

    def store(self, key: str, value: Any, max_age: float | None = None) -> CacheEntry:
        entry = CacheEntry(
            value=value,
            stored_at=self._clock(),
            max_age=self._default_max_age if max_age is None else max_age,
        )
        self._store[key] = entry
        return entry

    def lookup(self, key: str) -> CacheEntry | None:
        """Return the fresh entry for key, or None if missing or expired."""
        entry = self._store.get(key)
        if entry is None:
            self._stats.misses += 1
            return None
        if entry.is_expired(self._clock()):
            del self._store[key]
            self._stats.expired += 1
            self._stats.misses += 1
            return None
        self._stats.hits += 1
        return entry

    def get(self, key: str, default: Any = None) -> Any:
        entry = self.lookup(key)
        return default if entry is None else entry.value

    def remove(self, key: str) -> bool:
        return self._store.pop(key, None) is not None

    def remove_by_prefix(self, prefix: str) -> int:
        """Remove every key starting with prefix. Returns count deleted."""
        to_remove = [key for key in self._store if key.startswith(prefix)]
        for key in to_remove:
            del self._store[key]
        return len(to_remove)

    def clear(self) -> None:
        self._store.clear()
        self._stats = CacheStats()

    def keys(self) -> list[str]:
        """All stored keys, expired ones included."""
        return list(self._store)

    def stats(self) -> CacheStats:
        return CacheStats(
            entries=len(self._store),
            hits=self._stats.hits,
            misses=self._stats.misses,
            expired=self._stats.expired,
        )

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        entry = self._store.get(key)
        return entry is not None and not entry.is_expired(self._clock())
