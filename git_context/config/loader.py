import os
import re
from typing import IO, Any, Dict

import yaml

from git_context.utils.errors import ConfigError

# ${VAR} or ${VAR:-default}, anywhere inside a plain scalar.
ENV_VAR_MATCHER = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")
ENV_VAR_SCALAR = re.compile(r".*\$\{\w+(?::-[^}]*)?\}")


class _EnvSafeLoader(yaml.SafeLoader):
    """SafeLoader with environment substitution, kept off the global SafeLoader."""


def _substitute(match: "re.Match[str]") -> str:
    name, default = match.group(1), match.group(2)
    value = os.getenv(name, default)
    if value is None:
        raise ConfigError(f"Environment variable '{name}' not found for substitution in config.")
    return value


def _env_var_constructor(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> str:
    """
    Substitutes environment variables in a scalar, e.g.
    ``git_binary: ${GIT_CONTEXT_GIT:-git}``.
    """
    return ENV_VAR_MATCHER.sub(_substitute, loader.construct_scalar(node))


_EnvSafeLoader.add_constructor("!env", _env_var_constructor)
_EnvSafeLoader.add_implicit_resolver("!env", ENV_VAR_SCALAR, None)


def load_config(config_file: IO[str]) -> Dict[str, Any]:
    """
    Loads a YAML configuration file.

    Args:
        config_file: A file-like object representing the YAML configuration.

    Returns:
        A dictionary containing the configuration; empty for an empty file.

    Raises:
        ConfigError: If the file cannot be parsed, a referenced environment
            variable is unset, or the root is not a mapping.
    """
    try:
        config = yaml.load(config_file, Loader=_EnvSafeLoader)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML configuration: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError("Configuration root must be a mapping.")
    return config
