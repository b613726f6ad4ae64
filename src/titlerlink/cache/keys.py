"""Cache key derivation — logical id plus a content hash of the option set."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import Any

ID_SEPARATOR = "~"
OPTIONS_SEPARATOR = "+"


def make_logical_id(actor_id: str, feedback_id: str) -> str:
    """Join an actor id and a feedback id into a logical id (``actor~feedback``)."""
    return ID_SEPARATOR.join(part for part in (actor_id, feedback_id) if part)


def split_logical_id(logical_id: str) -> tuple[str, str]:
    """Inverse of make_logical_id. A bare id is treated as a feedback id."""
    actor_id, sep, feedback_id = logical_id.partition(ID_SEPARATOR)
    if not sep:
        return "", actor_id
    return actor_id, feedback_id


def derive_key(logical_id: str, options: Mapping[str, Any] | None = None) -> str:
    """Derive the cache key for a logical id narrowed by an option set.

    Empty options leave the logical id unchanged. Otherwise an MD5 digest of
    the options is appended after ``+``. Options are serialized in their
    iteration order, so the same pairs in a different order give a different key.
    """
    if not options:
        return logical_id
    return f"{logical_id}{OPTIONS_SEPARATOR}{hash_options(options)}"


def hash_options(options: Mapping[str, Any]) -> str:
    """128-bit hex digest of the compact JSON form of an option mapping."""
    serialized = json.dumps(dict(options), separators=(",", ":"), ensure_ascii=False, default=str)
    return hashlib.md5(serialized.encode("utf-8"), usedforsecurity=False).hexdigest()
