"""Gateway deployment settings.

A deployment is described by one profile of ``configs/gateway.py``. The
profile is selected with ``BLOBGATE_PROFILE`` (default: ``default``); single
fields can be overridden with ``BLOBGATE_BACKEND`` and ``BLOBGATE_KEY_POLICY``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from datetime import timedelta
from typing import Any

from blobgate.core.utils.config import ConfigError, load_and_resolve_config
from blobgate.core.utils.env import env_str
from blobgate.gateway.keys import KeyPolicy
from blobgate.gateway.signing import (
    READ_URL_LIFETIME,
    WRITE_URL_LIFETIME,
    WRITE_URL_METHOD,
)

logger = logging.getLogger(__name__)

GATEWAY_CONFIG_MODULE = "configs.gateway"
DEFAULT_PROFILE = "default"
DEFAULT_MAX_UPLOAD_BYTES = 100 * 1024 * 1024
SIGNABLE_METHODS = ("GET", "PUT")


@dataclass(frozen=True)
class GatewaySettings:
    """Settings for one gateway deployment."""

    backend: str = "local"
    key_policy: KeyPolicy = KeyPolicy.SANITIZED_DATED
    read_url_ttl_seconds: int = int(READ_URL_LIFETIME.total_seconds())
    write_url_ttl_seconds: int = int(WRITE_URL_LIFETIME.total_seconds())
    write_url_method: str = WRITE_URL_METHOD
    indeterminate_as_absent: bool = True
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    cors_origins: tuple[str, ...] = ("*",)
    service_name: str = "Blob Upload Gateway"

    def __post_init__(self) -> None:
        if not isinstance(self.key_policy, KeyPolicy):
            raise ConfigError(f"key_policy must be a KeyPolicy, got {self.key_policy!r}")
        if self.read_url_ttl_seconds <= 0 or self.write_url_ttl_seconds <= 0:
            raise ConfigError("Signed URL lifetimes must be positive")
        if self.write_url_method not in SIGNABLE_METHODS:
            raise ConfigError(
                f"write_url_method must be one of {SIGNABLE_METHODS}, got {self.write_url_method!r}"
            )
        if self.max_upload_bytes <= 0:
            raise ConfigError("max_upload_bytes must be positive")

    @property
    def read_url_lifetime(self) -> timedelta:
        return timedelta(seconds=self.read_url_ttl_seconds)

    @property
    def write_url_lifetime(self) -> timedelta:
        return timedelta(seconds=self.write_url_ttl_seconds)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> GatewaySettings:
        """Build settings from a resolved profile dict.

        Raises:
            ConfigError: On unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(config) - known)
        if unknown:
            raise ConfigError(f"Unknown gateway settings: {', '.join(unknown)}")

        values = dict(config)
        if "key_policy" in values:
            try:
                values["key_policy"] = KeyPolicy(values["key_policy"])
            except ValueError as e:
                raise ConfigError(f"Unknown key policy: {values['key_policy']!r}") from e
        if "write_url_method" in values:
            values["write_url_method"] = str(values["write_url_method"]).upper()
        if "cors_origins" in values:
            values["cors_origins"] = tuple(values["cors_origins"])

        return cls(**values)


def load_settings(
    profile: str | None = None, module_path: str = GATEWAY_CONFIG_MODULE
) -> GatewaySettings:
    """Load the settings of a deployment profile.

    Raises:
        ConfigError: If the profile doesn't exist or is invalid
    """
    profile = profile or env_str("BLOBGATE_PROFILE") or DEFAULT_PROFILE
    profiles = load_and_resolve_config(module_path, default={})

    if profile not in profiles:
        if profile == DEFAULT_PROFILE and not profiles:
            logger.warning(f"No gateway profiles found in {module_path}, using defaults")
            config: dict[str, Any] = {}
        else:
            available = ", ".join(profiles) or "none"
            raise ConfigError(f"Gateway profile '{profile}' not found. Available: {available}")
    else:
        config = dict(profiles[profile])

    backend_override = env_str("BLOBGATE_BACKEND")
    if backend_override:
        config["backend"] = backend_override
    policy_override = env_str("BLOBGATE_KEY_POLICY")
    if policy_override:
        config["key_policy"] = policy_override

    settings = GatewaySettings.from_config(config)
    logger.info(
        f"Gateway profile '{profile}': backend={settings.backend}, "
        f"key_policy={settings.key_policy.value}"
    )
    return settings
