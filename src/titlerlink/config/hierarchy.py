"""Configuration hierarchy — merges sources in priority order.

Precedence (later overrides earlier):
  1. Package defaults
  2. Global config   (~/.titlerlink/config.yaml)
  3. Project config   (./titlerlink.yaml)
  4. Environment variables (TITLERLINK_*)
  5. Runtime arguments
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from titlerlink.config.defaults import get_defaults

logger = logging.getLogger(__name__)

_GLOBAL_CONFIG_PATH = Path.home() / ".titlerlink" / "config.yaml"
_PROJECT_CONFIG_NAME = "titlerlink.yaml"

# Map of environment variables to config keys
_ENV_MAP: dict[str, str] = {
    "TITLERLINK_HOST": "host",
    "TITLERLINK_PORT": "port",
    "TITLERLINK_CACHE_LIFETIME": "cache_lifetime",
    "TITLERLINK_IMAGE_SIZE": "image_size",
    "TITLERLINK_IMAGE_MAX_BYTES": "image_max_bytes",
    "TITLERLINK_IMAGE_FETCH_TIMEOUT": "image_fetch_timeout",
    "TITLERLINK_RECONCILE_DELAY": "reconcile_delay",
    "TITLERLINK_RECHECK_ALL_DELAY": "recheck_all_delay",
    "TITLERLINK_REGISTRY_REFRESH_DELAY": "registry_refresh_delay",
    "TITLERLINK_PLAY_STATE_NAMESPACE": "play_state_namespace",
    "TITLERLINK_IMAGE_SET_NAMESPACE": "image_set_namespace",
    "TITLERLINK_LOG_LEVEL": "log_level",
}

# Keys that should be parsed as specific types
_TYPE_MAP: dict[str, type] = {
    "port": int,
    "cache_lifetime": float,
    "image_size": int,
    "image_max_bytes": int,
    "image_fetch_timeout": float,
    "reconcile_delay": float,
    "recheck_all_delay": float,
    "registry_refresh_delay": float,
}


def load_config_hierarchy(**runtime_overrides: Any) -> dict[str, Any]:
    """Load and merge configuration from all sources.

    Returns a merged dict with the final resolved values.
    """
    config = get_defaults()

    # Layer 2: Global config
    global_cfg = _load_yaml_config(_GLOBAL_CONFIG_PATH)
    if global_cfg:
        config.update(global_cfg)

    # Layer 3: Project config (search from cwd upward)
    project_path = _find_project_config()
    if project_path:
        project_cfg = _load_yaml_config(project_path)
        if project_cfg:
            config.update(project_cfg)

    # Layer 4: Environment variables
    config.update(_load_env_vars())

    # Layer 5: Runtime arguments, only when explicitly set
    for key, value in runtime_overrides.items():
        if value is not None:
            config[key] = value

    return config


def _load_yaml_config(path: Path) -> dict[str, Any] | None:
    """Load a YAML config file if it exists."""
    if not path.exists() or not path.is_file():
        return None
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
        if isinstance(data, dict):
            return data
        logger.warning("Config file %s is not a mapping, ignoring", path)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to load config %s: %s", path, e)
    return None


def _find_project_config() -> Path | None:
    """Search for titlerlink.yaml from cwd upward."""
    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        candidate = parent / _PROJECT_CONFIG_NAME
        if candidate.exists():
            return candidate
    return None


def _load_env_vars() -> dict[str, Any]:
    """Read TITLERLINK_* environment variables."""
    result: dict[str, Any] = {}
    for env_key, config_key in _ENV_MAP.items():
        value = os.environ.get(env_key)
        if value is None:
            continue
        result[config_key] = _coerce_env_value(config_key, value)
    return result


def _coerce_env_value(key: str, value: str) -> Any:
    """Coerce an environment variable string to the appropriate type."""
    target_type = _TYPE_MAP.get(key)
    if target_type:
        try:
            return target_type(value)
        except (ValueError, TypeError):
            logger.warning(
                "Cannot convert env var for '%s' to %s: %s", key, target_type.__name__, value
            )
            return value

    return value
