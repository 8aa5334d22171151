"""HTTP routes of the upload gateway, mounted under ``/uploads``."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Annotated, BinaryIO
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import StreamingResponse

from blobgate.api.schemas import (
    BatchUploadResponse,
    DeleteResponse,
    FileInfoResponse,
    HealthResponse,
    ListedFileResponse,
    PresignedUploadResponse,
    PresignedUrlResponse,
    UploadResponse,
)
from blobgate.core.storage.blob import DEFAULT_CONTENT_TYPE
from blobgate.gateway.models import IncomingFile
from blobgate.gateway.service import ObjectGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/uploads", tags=["Uploads"])

DOWNLOAD_CHUNK_SIZE = 64 * 1024


def get_gateway(request: Request) -> ObjectGateway:
    return request.app.state.gateway


Gateway = Annotated[ObjectGateway, Depends(get_gateway)]
KeyParam = Annotated[str, Query(alias="path", description="Key of the stored file")]


def _iter_and_close(stream: BinaryIO) -> Iterator[bytes]:
    try:
        while chunk := stream.read(DOWNLOAD_CHUNK_SIZE):
            yield chunk
    finally:
        stream.close()
        release_conn = getattr(stream, "release_conn", None)
        if release_conn is not None:
            release_conn()


def _stream_file(gateway: ObjectGateway, key: str, disposition: str) -> StreamingResponse:
    metadata, stream = gateway.get(key)
    file_name = key.rsplit("/", 1)[-1]
    headers = {
        "Content-Disposition": f"{disposition}; filename*=UTF-8''{quote(file_name)}",
        "Content-Length": str(metadata.size),
    }
    return StreamingResponse(
        _iter_and_close(stream),
        media_type=metadata.content_type or DEFAULT_CONTENT_TYPE,
        headers=headers,
    )


def _incoming(upload: UploadFile) -> IncomingFile:
    return IncomingFile(
        stream=upload.file,
        size=upload.size,
        content_type=upload.content_type,
        original_name=upload.filename,
    )


@router.post("/file", summary="Upload a single file")
def upload_file(
    gateway: Gateway,
    file: Annotated[UploadFile, File(description="File to upload")],
    dir: Annotated[str | None, Form(description="Directory to place the file under")] = None,
) -> UploadResponse:
    result = gateway.upload_one(file.file, file.size, file.content_type, file.filename, dir)
    return UploadResponse.from_result(result)


@router.post("/files", summary="Upload several files")
def upload_files(
    gateway: Gateway,
    files: Annotated[list[UploadFile], File(description="Files to upload")],
    dir: Annotated[str | None, Form(description="Directory to place the files under")] = None,
    isolate: Annotated[
        bool, Query(description="Attempt every file and report failures per file")
    ] = False,
) -> list[UploadResponse] | BatchUploadResponse:
    incoming = [_incoming(upload) for upload in files]
    if isolate:
        return BatchUploadResponse.from_report(gateway.upload_many_isolated(incoming, dir))
    return [UploadResponse.from_result(result) for result in gateway.upload_many(incoming, dir)]


@router.get("/download", summary="Download a file as an attachment")
def download_file(gateway: Gateway, key: KeyParam) -> StreamingResponse:
    return _stream_file(gateway, key, "attachment")


@router.get("/view", summary="Serve a file for inline display")
def view_file(gateway: Gateway, key: KeyParam) -> StreamingResponse:
    return _stream_file(gateway, key, "inline")


@router.delete("/delete", summary="Delete a file")
def delete_file(gateway: Gateway, key: KeyParam) -> DeleteResponse:
    gateway.delete(key)
    return DeleteResponse(message="File deleted successfully", file_name=key)


@router.get("/files", summary="List files under a prefix")
def list_files(
    gateway: Gateway,
    prefix: Annotated[str | None, Query(description="Only list keys starting with this")] = None,
) -> list[ListedFileResponse]:
    return [ListedFileResponse.from_listed(listed) for listed in gateway.list(prefix)]


@router.get("/file/info", summary="Get file metadata")
def file_info(gateway: Gateway, key: KeyParam) -> FileInfoResponse:
    return FileInfoResponse.from_info(gateway.describe(key))


@router.get("/presigned-url", summary="Get a signed read URL")
def presigned_url(gateway: Gateway, key: KeyParam) -> PresignedUrlResponse:
    return PresignedUrlResponse.from_signed(gateway.signed_read_url(key))


@router.post("/presigned-upload", summary="Get a signed direct-upload URL")
def presigned_upload(
    gateway: Gateway,
    file_name: Annotated[str, Query(alias="fileName", description="Name of the file to upload")],
    dir: Annotated[str | None, Query(description="Directory to place the file under")] = None,
) -> PresignedUploadResponse:
    return PresignedUploadResponse.from_signed(gateway.signed_upload_url(file_name, dir))


@router.get("/health", summary="Service health")
def health(gateway: Gateway) -> HealthResponse:
    return HealthResponse(status="UP", service=gateway.service_name)
