"""Configuration loading from Python modules.

Configuration lives in plain Python modules (``configs/*.py``) that expose a
``CONFIGURATION`` dict of named profiles. Profiles may extend one another
with the ``"__inherits__"`` key.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any

logger = logging.getLogger(__name__)

INHERITS_KEY = "__inherits__"


class ConfigError(Exception):
    """Raised when configuration loading or resolution fails."""

    pass


def load_config_from_module(
    module_path: str,
    config_name: str = "CONFIGURATION",
    default: Any | None = None,
) -> Any:
    """Import ``module_path`` and return its ``config_name`` attribute.

    A module that cannot be imported, or lacks the attribute, yields
    ``default``. Errors raised while the module itself executes propagate.

    Examples:
        >>> backends = load_config_from_module("configs.blob_backends")
    """
    try:
        module = importlib.import_module(module_path)
    except ModuleNotFoundError as e:
        logger.warning(f"Could not import config module '{module_path}': {e}")
        return default

    if not hasattr(module, config_name):
        logger.warning(f"Module '{module_path}' does not define '{config_name}'")
        return default

    logger.debug(f"Loaded configuration from {module_path}.{config_name}")
    return getattr(module, config_name)


def resolve_config_inheritance(config_dict: dict[str, dict[str, Any]]) -> dict[str, dict[str, Any]]:
    """Expand ``"__inherits__"`` links into fully populated profiles.

    A child profile starts from a copy of its resolved parent and overrides
    the keys it sets itself. The ``"__inherits__"`` key is not carried over.

    Raises:
        ConfigError: On a cycle or a parent that doesn't exist

    Examples:
        >>> resolved = resolve_config_inheritance({
        ...     "default": {"backend": "local", "key_policy": "sanitized_dated"},
        ...     "opaque": {"__inherits__": "default", "key_policy": "random_opaque"},
        ... })
        >>> resolved["opaque"]["backend"]
        'local'
    """
    resolved: dict[str, dict[str, Any]] = {}

    def _resolve(name: str, chain: tuple[str, ...]) -> dict[str, Any]:
        if name in chain:
            cycle = " -> ".join((*chain, name))
            raise ConfigError(f"Circular inheritance detected: {cycle}")
        if name in resolved:
            return resolved[name]

        config = config_dict[name]
        parent_name = config.get(INHERITS_KEY)
        if parent_name is None:
            merged = dict(config)
        else:
            if parent_name not in config_dict:
                raise ConfigError(
                    f"Configuration '{name}' inherits from '{parent_name}', "
                    f"but '{parent_name}' not found"
                )
            merged = dict(_resolve(parent_name, (*chain, name)))
            merged.update({k: v for k, v in config.items() if k != INHERITS_KEY})
            logger.debug(f"Resolved inheritance for '{name}' from '{parent_name}'")

        resolved[name] = merged
        return merged

    for profile_name in config_dict:
        _resolve(profile_name, ())

    return resolved


def load_and_resolve_config(
    module_path: str,
    config_name: str = "CONFIGURATION",
    default: dict[str, dict[str, Any]] | None = None,
) -> dict[str, dict[str, Any]]:
    """Load a profile dict from a module and resolve its inheritance.

    Raises:
        ConfigError: If the loaded object isn't a dict or inheritance is broken
    """
    raw_config = load_config_from_module(module_path, config_name, default)

    if raw_config is None:
        return {}
    if not isinstance(raw_config, dict):
        raise ConfigError(
            f"{module_path}.{config_name} must be a dict, got {type(raw_config).__name__}"
        )

    resolved = resolve_config_inheritance(raw_config)
    logger.info(f"Loaded and resolved {len(resolved)} configurations from {module_path}")
    return resolved
