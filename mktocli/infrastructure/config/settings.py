"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
configuration file (~/.mktocli/config.yaml). Nothing is loaded at import
time; the composition root calls ``load_configuration``.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".mktocli"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"

DEFAULT_PARTITION_ID = 1
DEFAULT_TIMEOUT_SECONDS = 30.0

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}  # For testing purposes
_loaded = False


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Test overrides (``set_config_for_testing``)
    2. Environment Variables (including those from the .env file)
    3. YAML configuration file
    4. Default values passed to ``get_config``

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
    """
    global _config, _loaded
    if _loaded:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. YAML file (lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(yaml_config)
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
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
            logger.debug(f"No variables loaded from {dotenv_path}.")
    else:
        logger.debug("Skipping .env file loading (no file found).")

    _loaded = True
    logger.info("Configuration loading process completed.")


def _coerce(value: str) -> Any:
    if value.lower() == 'true':
        return True
    if value.lower() == 'false':
        return False
    try:
        if '.' in value:
            return float(value)
        return int(value)
    except (ValueError, TypeError):
        return value


def _lookup_nested(key: str) -> Any:
    """Resolves a dotted key (``marketo.endpoint``) against the loaded YAML tree."""
    if key in _config:
        return _config[key]
    node: Any = _config
    for part in key.split('.'):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def get_config(key: str, default: Any = None, coerce: bool = True) -> Any:
    """Resolves a setting.

    Test overrides win, then the upper-cased environment variable, then the
    YAML tree (dotted keys walk nested sections), then ``default``.
    Environment strings are coerced to bool, int or float where they parse,
    unless ``coerce`` is False.
    """
    if key in _test_config:
        return _test_config[key]

    env_key = key.upper()
    if env_key in os.environ:
        raw = os.environ[env_key]
        return _coerce(raw) if coerce else raw

    value = _lookup_nested(key)
    if value is not None:
        return value

    logger.debug(f"Config key '{key}' not found in environment or loaded config. Returning default: {default}")
    return default


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


# --- Convenience Functions ---

def _get_string(env_key: str, yaml_key: str) -> Optional[str]:
    # Credentials are read verbatim; "00123" must not become "123"
    value = get_config(env_key, coerce=False) or get_config(yaml_key)
    return str(value) if value is not None else None


def get_endpoint() -> Optional[str]:
    """REST API domain, without the trailing ``/rest``."""
    return _get_string('MKTO_ENDPOINT', 'marketo.endpoint')


def get_client_id() -> Optional[str]:
    return _get_string('MKTO_CLIENT_ID', 'marketo.client_id')


def get_client_secret() -> Optional[str]:
    """OAuth client secret. Numeric-looking secrets in YAML must be quoted."""
    return _get_string('MKTO_CLIENT_SECRET', 'marketo.client_secret')


def get_delay_seconds() -> float:
    """Delay applied before every API call. Invalid or negative values fall back to 0."""
    raw = get_config('MKTO_DELAY_SECONDS')
    if raw is None:
        raw = get_config('marketo.delay_seconds', 0)
    try:
        delay = float(raw)
    except (TypeError, ValueError):
        logger.warning(f"Invalid delay setting '{raw}'. Throttling disabled.")
        return 0.0
    if delay < 0:
        logger.warning(f"Negative delay setting '{raw}'. Throttling disabled.")
        return 0.0
    return delay


def get_default_partition_id() -> int:
    raw = get_config('MKTO_PARTITION_ID')
    if raw is None:
        raw = get_config('marketo.partition_id', DEFAULT_PARTITION_ID)
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.warning(f"Invalid partition id setting '{raw}'. Using {DEFAULT_PARTITION_ID}.")
        return DEFAULT_PARTITION_ID


def get_timeout() -> float:
    raw = get_config('MKTO_TIMEOUT')
    if raw is None:
        raw = get_config('marketo.timeout', DEFAULT_TIMEOUT_SECONDS)
    try:
        return float(raw)
    except (TypeError, ValueError):
        logger.warning(f"Invalid timeout setting '{raw}'. Using {DEFAULT_TIMEOUT_SECONDS}s.")
        return DEFAULT_TIMEOUT_SECONDS


def set_config(key: str, value: Any) -> None:
    """Stores a value in the loaded configuration (below env and test overrides)."""
    logger.debug(f"Setting config: {key} = {value}, type: {type(value)}")
    _config[key] = value


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """Overrides settings until ``clear_test_config`` is called."""
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Drops every test override."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")
