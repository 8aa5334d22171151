"""Response bodies of the HTTP boundary. Field names are camelCase on the wire."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from blobgate.gateway.models import BatchItemResult, BatchUploadReport, ListedObject, ObjectInfo, UploadResult
from blobgate.gateway.signing import SignedUrl


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(CamelModel):
    error: str
    message: str
    status: int
    timestamp: datetime
    key: str | None = None
    operation: str | None = None


class UploadResponse(CamelModel):
    file_name: str
    original_file_name: str | None
    content_type: str
    size: int | None
    url: str
    url_expires_at: datetime
    outcome: str
    message: str
    etag: str | None = None

    @classmethod
    def from_result(cls, result: UploadResult) -> UploadResponse:
        return cls(
            file_name=result.key,
            original_file_name=result.original_name,
            content_type=result.content_type,
            size=result.size,
            url=result.signed_read_url.url,
            url_expires_at=result.signed_read_url.expires_at,
            outcome=result.outcome.value,
            message=result.outcome.message,
            etag=result.etag,
        )


class BatchItemResponse(CamelModel):
    original_file_name: str | None
    ok: bool
    result: UploadResponse | None = None
    error: str | None = None
    message: str | None = None

    @classmethod
    def from_item(cls, item: BatchItemResult) -> BatchItemResponse:
        if item.result is not None:
            return cls(
                original_file_name=item.original_name,
                ok=True,
                result=UploadResponse.from_result(item.result),
            )
        return cls(
            original_file_name=item.original_name,
            ok=False,
            error=item.error.kind.value,
            message=item.error.message,
        )


class BatchUploadResponse(CamelModel):
    succeeded: int
    failed: int
    items: list[BatchItemResponse]

    @classmethod
    def from_report(cls, report: BatchUploadReport) -> BatchUploadResponse:
        return cls(
            succeeded=len(report.succeeded),
            failed=len(report.failed),
            items=[BatchItemResponse.from_item(item) for item in report.items],
        )


class FileInfoResponse(CamelModel):
    file_name: str
    size: int
    content_type: str | None
    last_modified: datetime
    etag: str | None
    url: str

    @classmethod
    def from_info(cls, info: ObjectInfo) -> FileInfoResponse:
        return cls(
            file_name=info.metadata.key,
            size=info.metadata.size,
            content_type=info.metadata.content_type,
            last_modified=info.metadata.last_modified,
            etag=info.metadata.etag,
            url=info.url.url,
        )


class ListedFileResponse(CamelModel):
    file_name: str
    size: int
    content_type: str | None
    last_modified: datetime
    url: str
    url_expires_at: datetime

    @classmethod
    def from_listed(cls, listed: ListedObject) -> ListedFileResponse:
        return cls(
            file_name=listed.key,
            size=listed.size,
            content_type=listed.content_type,
            last_modified=listed.last_modified,
            url=listed.url.url,
            url_expires_at=listed.url.expires_at,
        )


class PresignedUrlResponse(CamelModel):
    file_name: str
    url: str
    method: str
    expires_at: datetime

    @classmethod
    def from_signed(cls, signed: SignedUrl) -> PresignedUrlResponse:
        return cls(
            file_name=signed.key,
            url=signed.url,
            method=signed.method,
            expires_at=signed.expires_at,
        )


class PresignedUploadResponse(CamelModel):
    file_name: str
    upload_url: str
    method: str
    expires_at: datetime
    message: str

    @classmethod
    def from_signed(cls, signed: SignedUrl) -> PresignedUploadResponse:
        return cls(
            file_name=signed.key,
            upload_url=signed.url,
            method=signed.method,
            expires_at=signed.expires_at,
            message=f"Use {signed.method} request to upload file to this URL",
        )


class DeleteResponse(CamelModel):
    message: str
    file_name: str


class HealthResponse(CamelModel):
    status: str
    service: str
