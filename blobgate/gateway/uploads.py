"""Upload orchestration.

One upload runs: validate -> derive key -> probe existence -> put -> sign a
read URL -> build the result. The existence probe only picks the reported
outcome (created/replaced); it never blocks the put. The put is a full
overwrite with no retry. Concurrent uploads to the same key race and the last
write to complete wins.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import BinaryIO

from blobgate.core.storage.blob import (
    DEFAULT_CONTENT_TYPE,
    BlobStorage,
    BlobStorageError,
    InvalidBlobKeyError,
)
from blobgate.gateway.errors import ErrorKind, GatewayError
from blobgate.gateway.keys import KeyDeriver
from blobgate.gateway.models import (
    BatchItemResult,
    BatchUploadReport,
    IncomingFile,
    UploadOutcome,
    UploadResult,
)
from blobgate.gateway.probe import ExistenceProbe
from blobgate.gateway.signing import UrlIntent, UrlSigner

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 100 * 1024 * 1024
PEEK_SIZE = 64 * 1024


class _ReplayStream:
    """Serves already-read leading bytes before the rest of a stream."""

    def __init__(self, head: bytes, rest: BinaryIO):
        self._head = head
        self._rest = rest

    def read(self, size: int | None = -1) -> bytes:
        if size is None or size < 0:
            data, self._head = self._head + self._rest.read(), b""
            return data
        if self._head:
            data, self._head = self._head[:size], self._head[size:]
            return data
        return self._rest.read(size)


def _remaining_length(stream: BinaryIO) -> int | None:
    """Bytes left in a seekable stream, or None if it can't seek."""
    seekable = getattr(stream, "seekable", None)
    if seekable is None or not seekable():
        return None
    start_pos = stream.tell()
    end_pos = stream.seek(0, 2)
    stream.seek(start_pos)
    return end_pos - start_pos


class UploadService:
    """Stores uploaded files under policy-derived keys."""

    def __init__(
        self,
        storage: BlobStorage,
        keys: KeyDeriver,
        probe: ExistenceProbe,
        signer: UrlSigner,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    ):
        self._storage = storage
        self._keys = keys
        self._probe = probe
        self._signer = signer
        self._max_upload_bytes = max_upload_bytes

    @property
    def max_upload_bytes(self) -> int:
        return self._max_upload_bytes

    def _check_size(self, size: int, original_name: str | None) -> None:
        if size > self._max_upload_bytes:
            raise GatewayError(
                ErrorKind.SIZE_LIMIT_EXCEEDED,
                f"File size {size} exceeds the maximum allowed limit "
                f"({self._max_upload_bytes} bytes): {original_name}",
                operation="upload",
            )

    def upload_one(
        self,
        stream: BinaryIO,
        size: int | None,
        content_type: str | None,
        original_name: str | None,
        dir_hint: str | None = None,
    ) -> UploadResult:
        """Upload one file and return its result record.

        Args:
            stream: File content
            size: Declared size in bytes, None if unknown
            content_type: Declared MIME type
            original_name: Client-supplied file name (untrusted)
            dir_hint: Optional directory to place the key under

        Raises:
            GatewayError: SIZE_LIMIT_EXCEEDED or INVALID_INPUT before touching the
                store, UPLOAD_FAILED when the put fails, or a signing error
        """
        if size is not None and size < 0:
            size = None
        if size is not None:
            self._check_size(size, original_name)
        else:
            size = _remaining_length(stream)
            if size is not None:
                self._check_size(size, original_name)

        if size is None:
            head = stream.read(PEEK_SIZE)
            if not head:
                raise GatewayError(
                    ErrorKind.INVALID_INPUT, "Please select a file to upload", operation="upload"
                )
            stream = _ReplayStream(head, stream)
        elif size == 0:
            raise GatewayError(
                ErrorKind.INVALID_INPUT, "Please select a file to upload", operation="upload"
            )

        content_type = content_type or DEFAULT_CONTENT_TYPE
        key = self._keys.derive(original_name, dir_hint)

        is_replacement = self._probe.exists(key)
        if is_replacement:
            logger.info(f"File exists, will be replaced: {key}")

        try:
            etag = self._storage.put(key, stream, size, content_type)
        except InvalidBlobKeyError as e:
            raise GatewayError(ErrorKind.INVALID_INPUT, str(e), key, "upload") from e
        except BlobStorageError as e:
            logger.error(f"Error uploading file {key}: {e}")
            raise GatewayError(
                ErrorKind.UPLOAD_FAILED, f"Error uploading file: {e}", key, "upload"
            ) from e

        outcome = UploadOutcome.REPLACED if is_replacement else UploadOutcome.CREATED
        logger.info(f"File {outcome.value} successfully: {key}")

        return UploadResult(
            key=key,
            original_name=original_name,
            content_type=content_type,
            size=size,
            signed_read_url=self._signer.issue(key, UrlIntent.READ),
            outcome=outcome,
            etag=etag,
        )

    def upload_file(self, incoming: IncomingFile, dir_hint: str | None = None) -> UploadResult:
        return self.upload_one(
            incoming.stream,
            incoming.size,
            incoming.content_type,
            incoming.original_name,
            dir_hint,
        )

    def upload_many(
        self, files: Iterable[IncomingFile], dir_hint: str | None = None
    ) -> list[UploadResult]:
        """Upload files one after another, stopping at the first failure.

        There is no batch transaction: files uploaded before the failing one
        stay in the store and files after it are never attempted.
        """
        results = []
        for incoming in files:
            results.append(self.upload_file(incoming, dir_hint))
        return results

    def upload_many_isolated(
        self, files: Iterable[IncomingFile], dir_hint: str | None = None
    ) -> BatchUploadReport:
        """Attempt every file and report success or failure per file.

        Nothing is rolled back: successful files stay committed whatever
        happens to the others.
        """
        items = []
        for incoming in files:
            try:
                result = self.upload_file(incoming, dir_hint)
            except GatewayError as e:
                logger.error(f"Upload of {incoming.original_name!r} failed: {e.kind.value}: {e}")
                items.append(BatchItemResult(original_name=incoming.original_name, error=e))
            else:
                items.append(BatchItemResult(original_name=incoming.original_name, result=result))

        report = BatchUploadReport(items=tuple(items))
        logger.info(f"Uploaded {len(report.succeeded)} of {len(items)} files")
        return report
