import collections.abc
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from git_context.config.loader import load_config
from git_context.config.models import Settings
from git_context.utils.errors import ConfigError
from git_context.utils.logger import logger

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"
USER_CONFIG_PATH = Path.home() / ".config" / "git-context" / "config.yaml"
CONFIG_PATH_ENV_VAR = "GIT_CONTEXT_CONFIG"


def deep_merge(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merges two dictionaries.
    Arrays are replaced, not merged.
    """
    for key, value in source.items():
        if isinstance(value, collections.abc.Mapping) and key in target and isinstance(target[key], collections.abc.Mapping):
            target[key] = deep_merge(dict(target[key]), dict(value))
        else:
            target[key] = value
    return target


def _config_paths(custom_config_path: Optional[Union[str, Path]]) -> List[Path]:
    if not DEFAULT_CONFIG_PATH.is_file():
        raise ConfigError("Default configuration file not found.")
    paths = [DEFAULT_CONFIG_PATH]

    if USER_CONFIG_PATH.is_file():
        paths.append(USER_CONFIG_PATH)

    # Files inside the inspected repository are deliberately not consulted:
    # repository content is untrusted input.
    explicit = custom_config_path or os.getenv(CONFIG_PATH_ENV_VAR)
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise ConfigError(f"Config file not found at: {path}")
        paths.append(path)
    return paths


def load_settings(custom_config_path: Optional[Union[str, Path]] = None) -> Settings:
    """
    Loads the default, user and explicit configuration files and merges them,
    later files taking precedence.

    Args:
        custom_config_path: Optional explicit config file. Falls back to the
            ``GIT_CONTEXT_CONFIG`` environment variable.

    Returns:
        The validated settings.

    Raises:
        ConfigError: If an explicit file is missing, or the merged result is invalid.
    """
    merged_config: Dict[str, Any] = {}
    for path in _config_paths(custom_config_path):
        logger.debug(f"Loading configuration from: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                merged_config = deep_merge(merged_config, load_config(f))
        except (OSError, ConfigError) as e:
            if path == DEFAULT_CONFIG_PATH:
                raise ConfigError(f"Could not load default configuration: {e}") from e
            logger.warning(f"Could not load or parse config at {path}: {e}")

    try:
        return Settings(**merged_config)
    except PydanticValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e
