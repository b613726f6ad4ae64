"""Cache entry and statistics models."""

from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CacheEntry(BaseModel):
    """A stored value with the time it was stored and how long it stays fresh.

    ``max_age`` of zero or less never expires.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    value: Any = None
    stored_at: float = Field(default_factory=time.monotonic)
    max_age: float = 0.0

    def is_expired(self, now: float | None = None) -> bool:
        if self.max_age <= 0:
            return False
        now = time.monotonic() if now is None else now
        return now - self.stored_at > self.max_age


class CacheStats(BaseModel):
    """Aggregate cache statistics."""

    entries: int = 0
    hits: int = 0
    misses: int = 0
    expired: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0
