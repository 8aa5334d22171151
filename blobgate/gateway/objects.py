"""Retrieval, listing and deletion of stored objects."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import BinaryIO

from blobgate.core.storage.blob import (
    BlobMetadata,
    BlobNotFoundError,
    BlobStorage,
    BlobStorageError,
    InvalidBlobKeyError,
)
from blobgate.gateway.errors import ErrorKind, GatewayError
from blobgate.gateway.models import ListedObject, ObjectInfo
from blobgate.gateway.probe import ExistenceProbe
from blobgate.gateway.signing import SignedUrl, UrlIntent, UrlSigner

logger = logging.getLogger(__name__)


def _classify(e: BlobStorageError, key: str | None, operation: str) -> GatewayError:
    if isinstance(e, BlobNotFoundError):
        return GatewayError(ErrorKind.NOT_FOUND, f"File not found: {key}", key, operation)
    if isinstance(e, InvalidBlobKeyError):
        return GatewayError(ErrorKind.INVALID_INPUT, str(e), key, operation)
    return GatewayError(ErrorKind.STORE_UNAVAILABLE, f"Error during {operation}: {e}", key, operation)


def _require_key(key: str | None, operation: str) -> str:
    if not key or not key.strip():
        raise GatewayError(ErrorKind.INVALID_INPUT, "A file path is required", key, operation)
    return key


class ObjectService:
    """Reads, lists and deletes objects by key."""

    def __init__(self, storage: BlobStorage, probe: ExistenceProbe, signer: UrlSigner):
        self._storage = storage
        self._probe = probe
        self._signer = signer

    def stat(self, key: str) -> BlobMetadata:
        key = _require_key(key, "stat")
        try:
            return self._storage.get_metadata(key)
        except BlobStorageError as e:
            logger.error(f"Error getting file info: {e}")
            raise _classify(e, key, "stat") from e

    def get(self, key: str) -> tuple[BlobMetadata, BinaryIO]:
        """Return the object's metadata and an open stream over its bytes.

        Raises:
            GatewayError: NOT_FOUND if the key is absent
        """
        metadata = self.stat(key)
        try:
            stream = self._storage.get_stream(key)
        except BlobStorageError as e:
            logger.error(f"Error downloading file: {e}")
            raise _classify(e, key, "get") from e
        return metadata, stream

    def describe(self, key: str) -> ObjectInfo:
        metadata = self.stat(key)
        return ObjectInfo(metadata=metadata, url=self._signer.issue(key, UrlIntent.READ))

    def signed_read_url(self, key: str) -> SignedUrl:
        """Sign a read URL for an existing key.

        Raises:
            GatewayError: NOT_FOUND if the probe doesn't see the key
        """
        key = _require_key(key, "sign")
        if not self._probe.exists(key):
            raise GatewayError(ErrorKind.NOT_FOUND, f"File not found: {key}", key, "sign")
        return self._signer.issue(key, UrlIntent.READ)

    def list(self, prefix: str | None = None) -> Iterator[ListedObject]:
        """Lazily list leaf objects under ``prefix`` with a read URL each.

        Order is the store's listing order. Directory markers are skipped.
        Each entry costs one signing call. Calling again rescans from scratch.
        """
        try:
            for metadata in self._storage.list(prefix or None):
                if metadata.key.endswith("/"):
                    continue
                yield ListedObject.from_metadata(
                    metadata, self._signer.issue(metadata.key, UrlIntent.READ)
                )
        except BlobStorageError as e:
            logger.error(f"Error listing files: {e}")
            raise _classify(e, prefix, "list") from e

    def delete(self, key: str) -> None:
        """Delete an existing object.

        Raises:
            GatewayError: NOT_FOUND if the probe doesn't see the key
        """
        key = _require_key(key, "delete")
        if not self._probe.exists(key):
            raise GatewayError(ErrorKind.NOT_FOUND, f"File not found: {key}", key, "delete")

        try:
            self._storage.delete(key)
        except BlobStorageError as e:
            logger.error(f"Error deleting file: {e}")
            raise _classify(e, key, "delete") from e
        logger.info(f"File deleted successfully: {key}")
