"""Backend registry for named blob storage backends."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from blobgate.core.storage.backends.filesystem_backend import FilesystemBackend
from blobgate.core.storage.backends.minio_backend import MinIOBackend
from blobgate.core.storage.blob import BlobStorageBackend
from blobgate.core.utils.config import load_and_resolve_config

logger = logging.getLogger(__name__)

BACKENDS_CONFIG_MODULE = "configs.blob_backends"


class BackendConfigError(Exception):
    """Raised when backend configuration is invalid."""

    pass


class BackendNotFoundError(Exception):
    """Raised when a named backend is not found in configuration."""

    pass


class BlobBackendRegistry:
    """Registry resolving backend names to configured backend instances.

    Backends are created lazily and cached, so every request served by the
    process shares one client per name.

    Examples:
        >>> registry = BlobBackendRegistry()
        >>> backend = registry.get_backend("minio")
    """

    def __init__(self, configuration: dict[str, dict[str, Any]] | None = None):
        """Initialize the registry.

        Args:
            configuration: Backend configuration dict. If None, loads and resolves
                           configs/blob_backends.py
        """
        if configuration is None:
            configuration = load_and_resolve_config(BACKENDS_CONFIG_MODULE, default={})

        self._config = configuration
        self._backend_cache: dict[str, BlobStorageBackend] = {}

    def create_backend(self, config: dict[str, Any]) -> BlobStorageBackend:
        """Create a backend instance from configuration.

        Args:
            config: Backend configuration dict with "type" and backend-specific params

        Raises:
            BackendConfigError: If configuration is invalid
        """
        backend_type = config.get("type")

        if not backend_type:
            raise BackendConfigError("Backend configuration must specify 'type'")

        if backend_type == "filesystem":
            base_path = config.get("base_path")
            if not base_path:
                raise BackendConfigError("Filesystem backend requires 'base_path'")

            return FilesystemBackend(base_path=Path(base_path))

        elif backend_type == "minio":
            required_fields = ["endpoint", "access_key", "secret_key", "bucket"]
            missing = [f for f in required_fields if not config.get(f)]
            if missing:
                raise BackendConfigError(
                    f"MinIO backend missing required fields: {', '.join(missing)}"
                )

            return MinIOBackend(
                endpoint=config["endpoint"],
                access_key=config["access_key"],
                secret_key=config["secret_key"],
                bucket=config["bucket"],
                secure=config.get("secure", True),
                region=config.get("region"),
            )

        else:
            raise BackendConfigError(f"Unknown backend type: {backend_type}")

    def get_backend(self, name: str, use_cache: bool = True) -> BlobStorageBackend:
        """Get a backend instance by name.

        Raises:
            BackendNotFoundError: If the name is not configured
            BackendConfigError: If backend configuration is invalid
        """
        if use_cache and name in self._backend_cache:
            return self._backend_cache[name]

        if name not in self._config:
            available = ", ".join(self._config.keys())
            raise BackendNotFoundError(
                f"Backend '{name}' not found in configuration. "
                f"Available backends: {available or 'none'}"
            )

        backend = self.create_backend(self._config[name])
        if use_cache:
            self._backend_cache[name] = backend

        logger.info(f"Created backend '{name}' ({self._config[name]['type']})")
        return backend

    def list_backends(self) -> list[str]:
        """List all configured backend names."""
        return list(self._config.keys())

    def register(self, name: str, config: dict[str, Any]) -> None:
        """Register (or replace) a backend configuration."""
        self._config[name] = config
        self._backend_cache.pop(name, None)

    def clear_cache(self) -> None:
        """Clear the backend instance cache."""
        self._backend_cache.clear()


# Global registry instance
_default_registry: BlobBackendRegistry | None = None


def get_default_registry() -> BlobBackendRegistry:
    """Get the default global registry instance."""
    global _default_registry
    if _default_registry is None:
        _default_registry = BlobBackendRegistry()
    return _default_registry


def get_blob_backend(name: str) -> BlobStorageBackend:
    """Get a blob backend by name from the default registry.

    Examples:
        >>> from blobgate.core.storage import get_blob_backend
        >>> backend = get_blob_backend("local")
    """
    return get_default_registry().get_backend(name)
