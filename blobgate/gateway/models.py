"""Records produced by the gateway. None of these are persisted."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import BinaryIO

from blobgate.core.storage.blob import BlobMetadata
from blobgate.gateway.errors import GatewayError
from blobgate.gateway.signing import SignedUrl


class UploadOutcome(str, Enum):
    """Whether an upload wrote a new key or overwrote an existing one."""

    CREATED = "created"
    REPLACED = "replaced"

    @property
    def message(self) -> str:
        if self is UploadOutcome.REPLACED:
            return "File replaced successfully"
        return "File uploaded successfully"


@dataclass
class IncomingFile:
    """One file handed to the upload orchestrator.

    ``size`` is the declared length in bytes, or None when unknown.
    """

    stream: BinaryIO
    size: int | None
    content_type: str | None
    original_name: str | None


@dataclass(frozen=True)
class UploadResult:
    key: str
    original_name: str | None
    content_type: str
    size: int | None
    signed_read_url: SignedUrl
    outcome: UploadOutcome
    etag: str | None = None


@dataclass(frozen=True)
class BatchItemResult:
    """Outcome of one file in an isolated batch upload."""

    original_name: str | None
    result: UploadResult | None = None
    error: GatewayError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class BatchUploadReport:
    """Per-file results of a batch. Successful items are committed even when others fail."""

    items: tuple[BatchItemResult, ...]

    @property
    def succeeded(self) -> list[UploadResult]:
        return [item.result for item in self.items if item.result is not None]

    @property
    def failed(self) -> list[BatchItemResult]:
        return [item for item in self.items if not item.ok]

    @property
    def all_succeeded(self) -> bool:
        return not self.failed


@dataclass(frozen=True)
class ListedObject:
    """A leaf object from a prefix listing with a read URL attached.

    ``content_type`` is whatever the store's listing reports. S3 listings
    don't include it, so entries from the MinIO backend carry None while
    the filesystem backend fills it in. Use ``stat`` for an authoritative type.
    """

    key: str
    size: int
    content_type: str | None
    last_modified: datetime
    etag: str | None
    url: SignedUrl

    @classmethod
    def from_metadata(cls, metadata: BlobMetadata, url: SignedUrl) -> ListedObject:
        return cls(
            key=metadata.key,
            size=metadata.size,
            content_type=metadata.content_type,
            last_modified=metadata.last_modified,
            etag=metadata.etag,
            url=url,
        )


@dataclass(frozen=True)
class ObjectInfo:
    """Stat result of one object plus a read URL."""

    metadata: BlobMetadata
    url: SignedUrl
