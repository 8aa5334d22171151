"""Blob storage backend configuration.

This module defines the CONFIGURATION dict which maps backend names to their
connection parameters. The gateway picks one of them by name through the
``backend`` field of its deployment profile (configs/gateway.py).

Example usage:
    from blobgate.core.storage import BlobStorage

    storage = BlobStorage.from_name("minio")

Environment:
    MINIO_ENDPOINT, MINIO_ACCESS_KEY, MINIO_SECRET_KEY, MINIO_BUCKET,
    MINIO_SECURE and MINIO_REGION configure the "minio" backend.
    BLOB_STORAGE_PATH moves the root of the "local" backend.

Configuration inheritance:
    Use the "__inherits__" key to start from another backend's settings:

    "minio.archive": {
        "__inherits__": "minio",
        "bucket": "uploads-archive",
    }
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from blobgate.core.utils.env import env_flag, env_str, load_env_file_if_present

load_env_file_if_present()
PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _resolve_default_base_path() -> Path:
    """Return the default filesystem storage root."""
    configured_path = env_str("BLOB_STORAGE_PATH")
    if configured_path:
        return Path(configured_path).expanduser()

    return PROJECT_ROOT / "var" / "uploads"


DEFAULT_BASE_PATH = _resolve_default_base_path()


def _build_minio_config() -> dict[str, Any]:
    config: dict[str, Any] = {
        "type": "minio",
        "endpoint": env_str("MINIO_ENDPOINT", "localhost:9000"),
        "access_key": env_str("MINIO_ACCESS_KEY", "minioadmin"),
        "secret_key": env_str("MINIO_SECRET_KEY", "minioadmin"),
        "bucket": env_str("MINIO_BUCKET", "uploads"),
        "secure": env_flag("MINIO_SECURE", default=False),
    }
    region = env_str("MINIO_REGION")
    if region:
        config["region"] = region
    return config


CONFIGURATION = {
    # Files on local disk, for development
    "local": {
        "type": "filesystem",
        "base_path": str(DEFAULT_BASE_PATH),
    },
    # MinIO reachable with the MINIO_* variables
    "minio": _build_minio_config(),
    # S3-compatible production store, TLS always on
    "prod": {
        "__inherits__": "minio",
        "secure": True,
    },
    # Scratch storage
    "tmp": {
        "type": "filesystem",
        "base_path": "/tmp/blobgate",
    },
}
