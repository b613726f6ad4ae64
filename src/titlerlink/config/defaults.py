"""Package-level default configuration values."""

from __future__ import annotations

from typing import Any

# Remote application endpoint
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 9023

# Feedback cache settings (seconds)
DEFAULT_CACHE_LIFETIME = 0.25

# Image settings
DEFAULT_IMAGE_SIZE = 72
DEFAULT_IMAGE_MAX_BYTES = 50 * 1024 * 1024
DEFAULT_IMAGE_FETCH_TIMEOUT = 5.0

# Debounce delays (seconds)
DEFAULT_RECONCILE_DELAY = 0.1
DEFAULT_RECHECK_ALL_DELAY = 0.5
DEFAULT_REGISTRY_REFRESH_DELAY = 1.0

# Remote key-value namespaces
DEFAULT_PLAY_STATE_NAMESPACE = "newblue.automation.layerstate"
DEFAULT_IMAGE_SET_NAMESPACE = "automation.glow.base"

# Log level
DEFAULT_LOG_LEVEL = "WARNING"


def get_defaults() -> dict[str, Any]:
    """Return all defaults as a flat dictionary for merging."""
    return {
        "host": DEFAULT_HOST,
        "port": DEFAULT_PORT,
        "cache_lifetime": DEFAULT_CACHE_LIFETIME,
        "image_size": DEFAULT_IMAGE_SIZE,
        "image_max_bytes": DEFAULT_IMAGE_MAX_BYTES,
        "image_fetch_timeout": DEFAULT_IMAGE_FETCH_TIMEOUT,
        "reconcile_delay": DEFAULT_RECONCILE_DELAY,
        "recheck_all_delay": DEFAULT_RECHECK_ALL_DELAY,
        "registry_refresh_delay": DEFAULT_REGISTRY_REFRESH_DELAY,
        "play_state_namespace": DEFAULT_PLAY_STATE_NAMESPACE,
        "image_set_namespace": DEFAULT_IMAGE_SET_NAMESPACE,
        "log_level": DEFAULT_LOG_LEVEL,
    }
