"""MinIO backend implementation for blob storage."""

from __future__ import annotations

import logging
from datetime import timedelta
from io import BytesIO
from typing import BinaryIO

from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import HTTPError

from blobgate.core.storage.blob import (
    DEFAULT_CONTENT_TYPE,
    BlobListResult,
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBackend,
    BlobStorageConnectionError,
    BlobStorageError,
    InvalidBlobKeyError,
)

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = frozenset({"NoSuchKey", "NoSuchObject"})

# Multipart part size used when the object length is unknown (minimum is 5 MiB)
UNKNOWN_LENGTH_PART_SIZE = 10 * 1024 * 1024

PRESIGN_METHODS = frozenset({"GET", "PUT"})


def _translate(e: S3Error, action: str, key: str) -> BlobStorageError:
    if e.code in NOT_FOUND_CODES:
        return BlobNotFoundError(f"Blob not found: {key}")
    return BlobStorageError(f"Failed to {action} {key}: {e}")


class MinIOBackend(BlobStorageBackend):
    """MinIO implementation of blob storage backend.

    The underlying ``Minio`` client is thread-safe, so one backend instance is
    shared by all in-flight requests.
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        secure: bool = True,
        region: str | None = None,
    ):
        """Initialize MinIO backend and make sure the bucket exists.

        Args:
            endpoint: MinIO server endpoint (e.g., 'localhost:9000')
            access_key: Access key (user ID)
            secret_key: Secret key (password)
            bucket: Bucket name to use
            secure: Use HTTPS if True
            region: Optional region name

        Raises:
            BlobStorageConnectionError: If the bucket can't be checked or created
        """
        self._bucket = bucket

        try:
            self._client = Minio(
                endpoint=endpoint,
                access_key=access_key,
                secret_key=secret_key,
                secure=secure,
                region=region,
            )

            if not self._client.bucket_exists(bucket):
                self._client.make_bucket(bucket, location=region)
                logger.info(f"Bucket '{bucket}' created successfully")
            else:
                logger.info(f"Bucket '{bucket}' already exists")

        except (S3Error, HTTPError, OSError, ValueError) as e:
            logger.error(f"Error creating bucket: {e}")
            raise BlobStorageConnectionError(f"Could not initialize MinIO bucket {bucket}: {e}") from e

    @property
    def bucket(self) -> str:
        return self._bucket

    def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        length: int | None = None,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Store an object in MinIO."""
        if isinstance(data, bytes):
            stream: BinaryIO = BytesIO(data)
            length = len(data)
        else:
            stream = data

        try:
            if length is None or length < 0:
                result = self._client.put_object(
                    bucket_name=self._bucket,
                    object_name=key,
                    data=stream,
                    length=-1,
                    part_size=UNKNOWN_LENGTH_PART_SIZE,
                    content_type=content_type or DEFAULT_CONTENT_TYPE,
                    metadata=metadata,
                )
            else:
                result = self._client.put_object(
                    bucket_name=self._bucket,
                    object_name=key,
                    data=stream,
                    length=length,
                    content_type=content_type or DEFAULT_CONTENT_TYPE,
                    metadata=metadata,
                )

            logger.info(f"Stored blob: {key} (etag: {result.etag})")
            return result.etag

        except S3Error as e:
            raise _translate(e, "store blob", key) from e
        except ValueError as e:
            raise InvalidBlobKeyError(f"Invalid key {key!r}: {e}") from e
        except (HTTPError, OSError) as e:
            raise BlobStorageConnectionError(f"Failed to store blob {key}: {e}") from e

    def get(self, key: str) -> bytes:
        """Retrieve an object from MinIO."""
        response = self.get_stream(key)
        try:
            return response.read()
        finally:
            response.close()
            response.release_conn()

    def get_stream(self, key: str) -> BinaryIO:
        """Retrieve an object as a stream from MinIO.

        The returned urllib3 response must be closed and its connection
        released by the caller.
        """
        try:
            return self._client.get_object(self._bucket, key)

        except S3Error as e:
            raise _translate(e, "retrieve blob", key) from e
        except ValueError as e:
            raise InvalidBlobKeyError(f"Invalid key {key!r}: {e}") from e
        except (HTTPError, OSError) as e:
            raise BlobStorageConnectionError(f"Failed to retrieve blob {key}: {e}") from e

    def delete(self, key: str) -> None:
        """Delete an object from MinIO.

        S3 deletes are idempotent, so a missing key is not reported here.
        """
        try:
            self._client.remove_object(self._bucket, key)
            logger.info(f"Deleted blob: {key}")

        except S3Error as e:
            raise _translate(e, "delete blob", key) from e
        except ValueError as e:
            raise InvalidBlobKeyError(f"Invalid key {key!r}: {e}") from e
        except (HTTPError, OSError) as e:
            raise BlobStorageConnectionError(f"Failed to delete blob {key}: {e}") from e

    def get_metadata(self, key: str) -> BlobMetadata:
        """Stat an object in MinIO."""
        try:
            stat = self._client.stat_object(self._bucket, key)

            return BlobMetadata(
                key=key,
                size=stat.size,
                content_type=stat.content_type,
                last_modified=stat.last_modified,
                etag=stat.etag,
                custom_metadata=dict(stat.metadata or {}),
            )

        except S3Error as e:
            raise _translate(e, "get metadata for", key) from e
        except ValueError as e:
            raise InvalidBlobKeyError(f"Invalid key {key!r}: {e}") from e
        except (HTTPError, OSError) as e:
            raise BlobStorageConnectionError(f"Failed to get metadata for {key}: {e}") from e

    def list_blobs(
        self,
        prefix: str | None = None,
        delimiter: str | None = None,
        max_results: int = 1000,
        marker: str | None = None,
    ) -> BlobListResult:
        """List objects in MinIO."""
        try:
            objects = self._client.list_objects(
                bucket_name=self._bucket,
                prefix=prefix or None,
                recursive=(delimiter is None),
                start_after=marker,
            )

            blobs: list[BlobMetadata] = []
            prefixes = set()

            for obj in objects:
                # Directory entries and zero-byte "folder/" marker objects
                if getattr(obj, "is_dir", False) or obj.object_name.endswith("/"):
                    prefixes.add(obj.object_name)
                    continue

                if len(blobs) >= max_results:
                    # MinIO doesn't support limit, so we break manually
                    return BlobListResult(
                        blobs=blobs,
                        prefixes=list(prefixes),
                        is_truncated=True,
                        next_marker=blobs[-1].key,
                    )

                blobs.append(
                    BlobMetadata(
                        key=obj.object_name,
                        size=obj.size,
                        content_type=None,  # S3 listings don't report it
                        last_modified=obj.last_modified,
                        etag=obj.etag,
                    )
                )

            return BlobListResult(
                blobs=blobs, prefixes=list(prefixes), is_truncated=False, next_marker=None
            )

        except S3Error as e:
            raise BlobStorageError(f"Failed to list blobs under {prefix!r}: {e}") from e
        except (HTTPError, OSError) as e:
            raise BlobStorageConnectionError(f"Failed to list blobs under {prefix!r}: {e}") from e

    def generate_presigned_url(
        self, key: str, expiration: timedelta = timedelta(hours=1), method: str = "GET"
    ) -> str:
        """Generate a presigned URL for MinIO, signed for the given method."""
        method = method.upper()
        if method not in PRESIGN_METHODS:
            raise BlobStorageError(f"Unsupported presign method {method} for {key}")

        try:
            return self._client.get_presigned_url(
                method=method,
                bucket_name=self._bucket,
                object_name=key,
                expires=expiration,
            )

        except S3Error as e:
            raise BlobStorageError(f"Failed to generate presigned URL for {key}: {e}") from e
        except ValueError as e:
            raise InvalidBlobKeyError(f"Cannot presign {key!r}: {e}") from e
        except (HTTPError, OSError) as e:
            raise BlobStorageConnectionError(
                f"Failed to generate presigned URL for {key}: {e}"
            ) from e
