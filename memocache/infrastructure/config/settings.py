"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a YAML
configuration file (e.g., ~/.memocache/config.yaml), and builds the
CacheConfig the composition root hands to the store.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv
import yaml

from memocache.domain.models.cache import (
    DEFAULT_CLEANUP_INTERVAL_MS,
    DEFAULT_MAX_SIZE,
    DEFAULT_TTL_MS,
    CacheConfig,
)

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".memocache"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "MEMOCACHE_"

# --- Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None, reload: bool = False) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Test overrides (set_config_for_testing)
    2. Environment Variables (MEMOCACHE_<KEY>)
    3. .env file
    4. YAML configuration file
    5. Default values supplied by the caller

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
        reload: Re-read sources even if already loaded.
    """
    global _config, _loaded
    if _loaded and not reload:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. YAML file (lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(flatten_config(yaml_config))
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a mapping.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. .env file; override=False keeps real environment variables on top
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("No .env file found at or above the current directory.")

    # 3. Environment variables are read lazily in get_config

    _loaded = True
    logger.info("Configuration loading process completed.")


def flatten_config(data: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Flattens nested mappings into dotted keys ({'cache': {'max_size': 5}} -> {'cache.max_size': 5})."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, Mapping):
            flat.update(flatten_config(value, prefix=f"{dotted}."))
        else:
            flat[dotted] = value
    return flat


def env_var_name(key: str) -> str:
    """Maps a dotted config key to its environment variable name."""
    return f"{ENV_PREFIX}{key.upper().replace('.', '_')}"


def _coerce_env_value(value: str) -> Any:
    if value.lower() == 'true':
        return True
    if value.lower() == 'false':
        return False
    try:
        if '.' in value:
            return float(value)
        return int(value)
    except ValueError:
        return value


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by dotted key.

    Args:
        key: The configuration key, e.g. 'cache.max_size'
        default: Default value if the key is not found

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = env_var_name(key)
    if env_key in os.environ:
        return _coerce_env_value(os.environ[env_key])

    if key in _config:
        return _config[key]

    logger.debug(f"Config key '{key}' not found in environment or loaded config. Returning default: {default}")
    return default


def set_config(key: str, value: Any) -> None:
    """Sets a configuration value in memory for the current process."""
    logger.debug(f"Setting config: {key} = {value}")
    _config[key] = value


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ('true', '1', 'yes', 'on'):
            return True
        if lowered in ('false', '0', 'no', 'off', ''):
            return False
        logger.warning(f"Unexpected string value for {key}: '{value}'. Treating as False.")
        return False
    return bool(value)


# --- Convenience Functions ---

def load_cache_config() -> CacheConfig:
    """Builds a validated CacheConfig from the loaded settings.

    Raises:
        CacheConfigError: If a configured value is out of range.
    """
    return CacheConfig(
        default_ttl_ms=float(get_config('cache.default_ttl_ms', DEFAULT_TTL_MS)),
        max_size=int(get_config('cache.max_size', DEFAULT_MAX_SIZE)),
        enable_compression=_as_bool(get_config('cache.enable_compression', True), 'cache.enable_compression'),
        cleanup_interval_ms=float(get_config('cache.cleanup_interval_ms', DEFAULT_CLEANUP_INTERVAL_MS)),
        enable_metrics=_as_bool(get_config('cache.enable_metrics', True), 'cache.enable_metrics'),
        coalesce_loads=_as_bool(get_config('cache.coalesce_loads', False), 'cache.coalesce_loads'),
    )


def get_log_settings() -> Dict[str, Any]:
    """Returns logging level name, format and optional file path."""
    return {
        'level': str(get_config('logging.level', 'INFO')).upper(),
        'format': get_config('logging.format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
        'file': get_config('logging.file'),
    }


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")


def reset_configuration() -> None:
    """Forgets loaded sources so the next load_configuration reads them again."""
    global _loaded
    _config.clear()
    _loaded = False
