"""Storage abstractions for uploaded blobs."""

from blobgate.core.storage.blob import (
    BlobListResult,
    BlobMetadata,
    BlobNotFoundError,
    BlobStorage,
    BlobStorageBackend,
    BlobStorageConnectionError,
    BlobStorageError,
    InvalidBlobKeyError,
)
from blobgate.core.storage.registry import (
    BackendConfigError,
    BackendNotFoundError,
    BlobBackendRegistry,
    get_blob_backend,
    get_default_registry,
)

__all__ = [
    # Blob storage
    "BlobStorage",
    "BlobStorageBackend",
    "BlobMetadata",
    "BlobListResult",
    "BlobStorageError",
    "BlobNotFoundError",
    "BlobStorageConnectionError",
    "InvalidBlobKeyError",
    # Registry
    "BlobBackendRegistry",
    "BackendConfigError",
    "BackendNotFoundError",
    "get_default_registry",
    "get_blob_backend",
]
