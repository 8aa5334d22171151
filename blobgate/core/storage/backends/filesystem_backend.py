"""Filesystem backend implementation for blob storage."""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import BinaryIO
from urllib.parse import urlencode

from blobgate.core.storage.blob import (
    DEFAULT_CONTENT_TYPE,
    BlobListResult,
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBackend,
    BlobStorageError,
    InvalidBlobKeyError,
)

logger = logging.getLogger(__name__)

METADATA_DIR = ".meta"
CHUNK_SIZE = 64 * 1024


class FilesystemBackend(BlobStorageBackend):
    """Filesystem implementation of blob storage backend.

    Stores objects as files under a base directory. Metadata lives in a
    reserved ``.meta`` directory at the root, one JSON file per key named by
    the key's hash, so no object key can collide with it. Intended for
    development and tests.
    """

    def __init__(self, base_path: str | Path):
        """Initialize filesystem backend.

        Args:
            base_path: Base directory path for storing objects
        """
        self._base_path = Path(base_path).resolve()
        self._metadata_root = self._base_path / METADATA_DIR
        self._metadata_root.mkdir(parents=True, exist_ok=True)
        logger.info(f"Initialized filesystem backend at: {self._base_path}")

    def _get_blob_path(self, key: str) -> Path:
        """Get the full path for an object, refusing keys that escape the base."""
        if not key or key.endswith("/"):
            raise InvalidBlobKeyError(f"Invalid key: {key!r}")

        blob_path = (self._base_path / key).resolve()
        if not blob_path.is_relative_to(self._base_path) or blob_path == self._base_path:
            raise InvalidBlobKeyError(f"Key escapes storage root: {key!r}")
        if blob_path.is_relative_to(self._metadata_root):
            raise InvalidBlobKeyError(f"Key uses the reserved {METADATA_DIR} directory: {key!r}")
        return blob_path

    def _get_metadata_path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._metadata_root / f"{digest}.json"

    def _save_metadata(
        self,
        key: str,
        size: int,
        etag: str,
        content_type: str | None = None,
        custom_metadata: dict[str, str] | None = None,
    ) -> None:
        metadata = {
            "key": key,
            "size": size,
            "etag": etag,
            "content_type": content_type or DEFAULT_CONTENT_TYPE,
            "last_modified": datetime.now(UTC).isoformat(),
            "custom_metadata": custom_metadata or {},
        }

        self._write_atomically(
            self._get_metadata_path(key), json.dumps(metadata, indent=2).encode("utf-8")
        )

    def _write_atomically(self, path: Path, data: bytes | BinaryIO) -> tuple[int, str]:
        """Write ``data`` to a temporary file and move it over ``path``.

        A failed write leaves any previous file at ``path`` untouched.

        Returns:
            Number of bytes written and their MD5 hex digest
        """
        fd, tmp_name = tempfile.mkstemp(dir=self._metadata_root, suffix=".part")
        tmp_path = Path(tmp_name)
        digest = hashlib.md5()
        size = 0
        try:
            with os.fdopen(fd, "wb") as f:
                if isinstance(data, bytes):
                    f.write(data)
                    digest.update(data)
                    size = len(data)
                else:
                    while chunk := data.read(CHUNK_SIZE):
                        f.write(chunk)
                        digest.update(chunk)
                        size += len(chunk)
            os.replace(tmp_path, path)
        finally:
            tmp_path.unlink(missing_ok=True)
        return size, digest.hexdigest()

    def _load_metadata(self, key: str) -> dict:
        blob_path = self._get_blob_path(key)
        if not blob_path.is_file():
            raise BlobNotFoundError(f"Blob not found: {key}")

        metadata_path = self._get_metadata_path(key)
        if not metadata_path.exists():
            # Object written outside the backend; fall back to file stats
            stat = blob_path.stat()
            return {
                "key": key,
                "size": stat.st_size,
                "etag": None,
                "content_type": DEFAULT_CONTENT_TYPE,
                "last_modified": datetime.fromtimestamp(stat.st_mtime, UTC).isoformat(),
                "custom_metadata": {},
            }

        with open(metadata_path) as f:
            return json.load(f)

    def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        length: int | None = None,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Store an object in the filesystem."""
        blob_path = self._get_blob_path(key)

        try:
            blob_path.parent.mkdir(parents=True, exist_ok=True)
            size, etag = self._write_atomically(blob_path, data)
            self._save_metadata(key, size, etag, content_type, metadata)
            logger.info(f"Stored blob: {key} ({size} bytes)")
            return etag

        except OSError as e:
            raise BlobStorageError(f"Failed to store blob {key}: {e}") from e

    def get(self, key: str) -> bytes:
        """Retrieve an object from the filesystem."""
        with self.get_stream(key) as stream:
            return stream.read()

    def get_stream(self, key: str) -> BinaryIO:
        """Retrieve an object as a stream from the filesystem."""
        blob_path = self._get_blob_path(key)
        if not blob_path.is_file():
            raise BlobNotFoundError(f"Blob not found: {key}")

        try:
            return open(blob_path, "rb")
        except OSError as e:
            raise BlobStorageError(f"Failed to retrieve blob stream {key}: {e}") from e

    def delete(self, key: str) -> None:
        """Delete an object from the filesystem."""
        blob_path = self._get_blob_path(key)
        if not blob_path.is_file():
            raise BlobNotFoundError(f"Blob not found: {key}")

        try:
            blob_path.unlink()
            self._get_metadata_path(key).unlink(missing_ok=True)
            self._cleanup_empty_dirs(blob_path.parent)
            logger.info(f"Deleted blob: {key}")

        except OSError as e:
            raise BlobStorageError(f"Failed to delete blob {key}: {e}") from e

    def _cleanup_empty_dirs(self, path: Path) -> None:
        """Remove empty parent directories up to base_path."""
        while path != self._base_path and path.exists() and not any(path.iterdir()):
            path.rmdir()
            path = path.parent

    def get_metadata(self, key: str) -> BlobMetadata:
        """Stat an object in the filesystem."""
        try:
            metadata_dict = self._load_metadata(key)
        except (OSError, ValueError) as e:
            raise BlobStorageError(f"Failed to get metadata for {key}: {e}") from e

        return BlobMetadata(
            key=key,
            size=metadata_dict["size"],
            content_type=metadata_dict.get("content_type"),
            last_modified=datetime.fromisoformat(metadata_dict["last_modified"]),
            etag=metadata_dict.get("etag"),
            custom_metadata=metadata_dict.get("custom_metadata", {}),
        )

    def _iter_keys(self) -> list[str]:
        keys = []
        for path in self._base_path.rglob("*"):
            if path.is_dir() or path.is_relative_to(self._metadata_root):
                continue
            keys.append(path.relative_to(self._base_path).as_posix())
        return sorted(keys)

    def list_blobs(
        self,
        prefix: str | None = None,
        delimiter: str | None = None,
        max_results: int = 1000,
        marker: str | None = None,
    ) -> BlobListResult:
        """List objects in the filesystem in lexicographic key order."""
        prefix = prefix or ""
        blobs: list[BlobMetadata] = []
        prefixes = set()

        try:
            for key in self._iter_keys():
                if not key.startswith(prefix):
                    continue
                if marker is not None and key <= marker:
                    continue

                # Simulate directory listing
                if delimiter:
                    remaining = key[len(prefix) :]
                    if delimiter in remaining:
                        prefixes.add(prefix + remaining.split(delimiter)[0] + delimiter)
                        continue

                if len(blobs) >= max_results:
                    return BlobListResult(
                        blobs=blobs,
                        prefixes=list(prefixes),
                        is_truncated=True,
                        next_marker=blobs[-1].key,
                    )

                blobs.append(self.get_metadata(key))

        except OSError as e:
            raise BlobStorageError(f"Failed to list blobs: {e}") from e

        return BlobListResult(
            blobs=blobs, prefixes=list(prefixes), is_truncated=False, next_marker=None
        )

    def generate_presigned_url(
        self, key: str, expiration: timedelta = timedelta(hours=1), method: str = "GET"
    ) -> str:
        """Generate a presigned URL for the filesystem.

        Note: This returns a file:// URL since filesystem storage doesn't
        support HTTP-based presigned URLs. The method and expiry are carried
        as query parameters for API compatibility only.
        """
        blob_path = self._get_blob_path(key)
        method = method.upper()

        if method == "GET" and not blob_path.is_file():
            raise BlobNotFoundError(f"Blob not found: {key}")

        expires = int((datetime.now(UTC) + expiration).timestamp())
        query = urlencode({"method": method, "expires": expires})
        return f"{blob_path.as_uri()}?{query}"
