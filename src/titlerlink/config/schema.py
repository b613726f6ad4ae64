"""Pydantic model for engine configuration."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from titlerlink.config import defaults


class EngineConfig(BaseModel):
    """Validated settings for one feedback session. Durations are in seconds."""

    model_config = ConfigDict(extra="ignore")

    host: str = defaults.DEFAULT_HOST
    port: int = Field(default=defaults.DEFAULT_PORT, ge=1, le=65535)
    cache_lifetime: float = Field(default=defaults.DEFAULT_CACHE_LIFETIME, ge=0)
    image_size: int = Field(default=defaults.DEFAULT_IMAGE_SIZE, gt=0)
    image_max_bytes: int = Field(default=defaults.DEFAULT_IMAGE_MAX_BYTES, gt=0)
    image_fetch_timeout: float = Field(default=defaults.DEFAULT_IMAGE_FETCH_TIMEOUT, gt=0)
    reconcile_delay: float = Field(default=defaults.DEFAULT_RECONCILE_DELAY, ge=0)
    recheck_all_delay: float = Field(default=defaults.DEFAULT_RECHECK_ALL_DELAY, ge=0)
    registry_refresh_delay: float = Field(default=defaults.DEFAULT_REGISTRY_REFRESH_DELAY, ge=0)
    play_state_namespace: str = defaults.DEFAULT_PLAY_STATE_NAMESPACE
    image_set_namespace: str = defaults.DEFAULT_IMAGE_SET_NAMESPACE
    log_level: str = defaults.DEFAULT_LOG_LEVEL

    @classmethod
    def load(cls, **runtime_overrides: Any) -> EngineConfig:
        """Build from defaults, YAML files, environment and overrides."""
        from titlerlink.config.hierarchy import load_config_hierarchy

        return cls(**load_config_hierarchy(**runtime_overrides))
