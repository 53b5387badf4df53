"""
Configuration access for the maps client.

Loads a .env file into the process environment and provides typed
accessors for the settings the request pipeline consumes.
"""

import os
import logging
from typing import Any, List, Optional
from dotenv import load_dotenv


class ConfigError(Exception):
    """Raised when a configuration value is missing or cannot be parsed."""
    pass


def load_config(env_path: str = ".env") -> None:
    """
    Load environment variables from a .env file.

    Values in the file override variables already present in the
    environment.

    Args:
        env_path: Path to the .env file (default: ".env")
    """
    logger = logging.getLogger(__name__)

    if os.path.exists(env_path):
        load_dotenv(env_path, override=True)
        logger.info(f"Loaded configuration from {env_path}")
    else:
        logger.warning(f"Configuration file {env_path} not found, using system environment variables only")


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value from environment variables.

    Args:
        key: Environment variable key
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    value = os.getenv(key)
    if value is None:
        logging.getLogger(__name__).debug(f"Configuration key '{key}' not set, using default: {default!r}")
        return default
    return value


def get_float(key: str, default: Optional[float] = None) -> Optional[float]:
    """Read a float setting, raising ConfigError when it is not a number."""
    value = get_config(key)
    if value is None or str(value).strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigError(f"Configuration key '{key}' must be a number, got {value!r}")


def get_int(key: str, default: Optional[int] = None) -> Optional[int]:
    """Read an integer setting, raising ConfigError when it is not an integer."""
    value = get_config(key)
    if value is None or str(value).strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"Configuration key '{key}' must be an integer, got {value!r}")


def get_bool(key: str, default: bool = False) -> bool:
    """Read a boolean setting ("1", "true", "yes", "on" are true)."""
    value = get_config(key)
    if value is None or str(value).strip() == "":
        return default
    normalized = str(value).strip().lower()
    if normalized in ("1", "true", "yes", "on"):
        return True
    if normalized in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"Configuration key '{key}' must be a boolean, got {value!r}")


def validate_config(required_keys: List[str]) -> None:
    """
    Validate that all required configuration keys are present and non-empty.

    Args:
        required_keys: List of required environment variable keys

    Raises:
        ConfigError: If any required key is missing or empty
    """
    logger = logging.getLogger(__name__)
    missing_keys = []
    empty_keys = []

    for key in required_keys:
        value = os.getenv(key)
        if value is None:
            missing_keys.append(key)
        elif value.strip() == "":
            empty_keys.append(key)

    if missing_keys or empty_keys:
        error_msg = "Configuration validation failed:"
        if missing_keys:
            error_msg += f" Missing keys: {', '.join(missing_keys)}."
        if empty_keys:
            error_msg += f" Empty keys: {', '.join(empty_keys)}."

        logger.error(error_msg)
        raise ConfigError(error_msg)

    logger.info(f"Configuration validation passed for keys: {', '.join(required_keys)}")
