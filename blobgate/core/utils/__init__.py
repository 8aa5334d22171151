"""Utility functions for blobgate."""

from blobgate.core.utils.config import (
    ConfigError,
    load_and_resolve_config,
    load_config_from_module,
    resolve_config_inheritance,
)
from blobgate.core.utils.env import env_flag, env_int, env_str, load_env_file_if_present

__all__ = [
    "load_env_file_if_present",
    "env_str",
    "env_flag",
    "env_int",
    "load_config_from_module",
    "load_and_resolve_config",
    "resolve_config_inheritance",
    "ConfigError",
]
