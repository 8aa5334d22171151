"""Storage backend implementations."""

from blobgate.core.storage.backends.filesystem_backend import FilesystemBackend
from blobgate.core.storage.backends.minio_backend import MinIOBackend

__all__ = [
    "FilesystemBackend",
    "MinIOBackend",
]
