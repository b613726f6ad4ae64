"""Cache subsystem — TTL store, option-hashed keys and request coalescing."""

from titlerlink.cache.coalescer import RequestCoalescer
from titlerlink.cache.keys import derive_key, make_logical_id, split_logical_id
from titlerlink.cache.memory import TTLCache
from titlerlink.cache.stats import CacheEntry, CacheStats

__all__ = [
    "CacheEntry",
    "CacheStats",
    "RequestCoalescer",
    "TTLCache",
    "derive_key",
    "make_logical_id",
    "split_logical_id",
]
