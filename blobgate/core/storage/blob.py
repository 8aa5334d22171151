"""Blob storage abstraction for uploaded objects.

Provides the capability interface the gateway consumes (put, get, stat,
delete, list, presign) and a high-level facade over a pluggable backend
(MinIO/S3 in production, the local filesystem for development).
"""

from __future__ import annotations

import builtins
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import BinaryIO

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class BlobMetadata:
    """Metadata for a stored object. Identity is the key."""

    key: str
    size: int
    content_type: str | None
    last_modified: datetime
    etag: str | None
    custom_metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class BlobListResult:
    """One page of a listing."""

    blobs: list[BlobMetadata]
    prefixes: list[str]  # Common prefixes (synthetic directories)
    is_truncated: bool
    next_marker: str | None


class BlobStorageBackend(ABC):
    """Abstract base class for blob storage backends.

    Keys are opaque strings. ``/`` is a naming convention only; directories
    are inferred by the store from common prefixes.
    """

    @abstractmethod
    def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        length: int | None = None,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Store an object, replacing any previous object under the key.

        Args:
            key: Object key
            data: Binary data or file-like object
            length: Size in bytes, or None when unknown (chunked transfer)
            content_type: MIME type of the content
            metadata: Custom metadata key-value pairs

        Returns:
            ETag of the stored object
        """
        pass

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Retrieve a whole object.

        Raises:
            BlobNotFoundError: If the object doesn't exist
        """
        pass

    @abstractmethod
    def get_stream(self, key: str) -> BinaryIO:
        """Retrieve an object as a stream. The caller closes it.

        Raises:
            BlobNotFoundError: If the object doesn't exist
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete an object.

        Raises:
            BlobNotFoundError: If the backend can tell the object doesn't exist
        """
        pass

    @abstractmethod
    def get_metadata(self, key: str) -> BlobMetadata:
        """Stat an object without downloading it.

        Raises:
            BlobNotFoundError: If the object doesn't exist
        """
        pass

    @abstractmethod
    def list_blobs(
        self,
        prefix: str | None = None,
        delimiter: str | None = None,
        max_results: int = 1000,
        marker: str | None = None,
    ) -> BlobListResult:
        """List one page of objects.

        Listed metadata may lack ``content_type`` and ``custom_metadata``
        where the store doesn't report them in listings (S3 doesn't).

        Args:
            prefix: Only list objects with this prefix
            delimiter: Group by this delimiter; None lists recursively
            max_results: Maximum number of objects in the page
            marker: Continuation token from the previous page

        Returns:
            List result with objects, common prefixes and pagination info
        """
        pass

    @abstractmethod
    def generate_presigned_url(
        self, key: str, expiration: timedelta = timedelta(hours=1), method: str = "GET"
    ) -> str:
        """Generate a presigned URL for temporary access.

        Args:
            key: Object key
            expiration: How long the URL should be valid
            method: HTTP method the URL authorizes (GET or PUT)

        Returns:
            Presigned URL string
        """
        pass


class BlobStorage:
    """High-level blob storage interface with pluggable backends."""

    def __init__(self, backend: BlobStorageBackend):
        """Initialize blob storage.

        Args:
            backend: Storage backend implementation
        """
        self._backend = backend

    @classmethod
    def from_name(cls, name: str) -> BlobStorage:
        """Create storage for a backend configured in configs/blob_backends.py."""
        from blobgate.core.storage.registry import get_blob_backend

        return cls(get_blob_backend(name))

    @property
    def backend(self) -> BlobStorageBackend:
        return self._backend

    def put(
        self,
        key: str,
        data: bytes | BinaryIO | Path,
        length: int | None = None,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Store an object from bytes, a stream, or a local file path."""
        if isinstance(data, Path):
            with open(data, "rb") as f:
                return self._backend.put(
                    key, f, data.stat().st_size, content_type, metadata
                )
        if isinstance(data, bytes) and length is None:
            length = len(data)
        return self._backend.put(key, data, length, content_type, metadata)

    def get(self, key: str) -> bytes:
        """Retrieve an object."""
        return self._backend.get(key)

    def get_stream(self, key: str) -> BinaryIO:
        """Retrieve an object as a stream."""
        return self._backend.get_stream(key)

    def delete(self, key: str) -> None:
        """Delete an object."""
        self._backend.delete(key)

    def get_metadata(self, key: str) -> BlobMetadata:
        """Stat an object."""
        return self._backend.get_metadata(key)

    def list(self, prefix: str | None = None, max_results: int = 1000) -> Iterator[BlobMetadata]:
        """Iterate recursively over objects under a prefix.

        The iterator is lazy and walks the store page by page. Calling it again
        starts a fresh scan.

        Yields:
            BlobMetadata for each object, in store order
        """
        marker = None
        while True:
            result = self._backend.list_blobs(prefix, None, max_results, marker)
            yield from result.blobs

            if not result.is_truncated:
                break
            marker = result.next_marker

    def list_prefixes(self, prefix: str | None = None, delimiter: str = "/") -> builtins.list[str]:
        """List common prefixes (synthetic directories) directly under a prefix."""
        result = self._backend.list_blobs(prefix, delimiter)
        return sorted(result.prefixes)

    def generate_presigned_url(
        self, key: str, expiration: timedelta = timedelta(hours=1), method: str = "GET"
    ) -> str:
        """Generate a presigned URL for temporary access."""
        return self._backend.generate_presigned_url(key, expiration, method)


# Custom exceptions


class BlobStorageError(Exception):
    """Base exception for blob storage errors."""

    pass


class BlobNotFoundError(BlobStorageError):
    """Raised when an object is not found."""

    pass


class BlobStorageConnectionError(BlobStorageError):
    """Raised when the storage backend cannot be reached."""

    pass


class InvalidBlobKeyError(BlobStorageError):
    """Raised when a key is malformed for the backend."""

    pass
