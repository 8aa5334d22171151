"""ObjectGateway: the gateway operations wired together for one deployment."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from datetime import datetime
from typing import BinaryIO

from blobgate.core.storage.blob import BlobMetadata, BlobStorage
from blobgate.gateway.keys import KeyDeriver
from blobgate.gateway.models import (
    BatchUploadReport,
    IncomingFile,
    ListedObject,
    ObjectInfo,
    UploadResult,
)
from blobgate.gateway.objects import ObjectService
from blobgate.gateway.probe import ExistenceProbe
from blobgate.gateway.signing import SignedUrl, UrlIntent, UrlSigner
from blobgate.gateway.uploads import UploadService
from blobgate.settings import GatewaySettings

logger = logging.getLogger(__name__)


class ObjectGateway:
    """Facade over upload, retrieval, listing and signing.

    Holds no per-request state; one instance serves all requests concurrently.
    """

    def __init__(
        self,
        storage: BlobStorage,
        keys: KeyDeriver,
        probe: ExistenceProbe,
        signer: UrlSigner,
        max_upload_bytes: int,
        service_name: str = "Blob Upload Gateway",
    ):
        self.storage = storage
        self.keys = keys
        self.probe = probe
        self.signer = signer
        self.service_name = service_name
        self.uploads = UploadService(storage, keys, probe, signer, max_upload_bytes)
        self.objects = ObjectService(storage, probe, signer)

    @classmethod
    def from_settings(
        cls,
        settings: GatewaySettings,
        storage: BlobStorage | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> ObjectGateway:
        """Build a gateway for ``settings``; ``storage`` defaults to the configured backend."""
        if storage is None:
            storage = BlobStorage.from_name(settings.backend)

        key_kwargs = {"clock": clock} if clock else {}
        signer_kwargs = {"clock": clock} if clock else {}

        gateway = cls(
            storage=storage,
            keys=KeyDeriver(policy=settings.key_policy, **key_kwargs),
            probe=ExistenceProbe(storage, settings.indeterminate_as_absent),
            signer=UrlSigner(
                storage,
                read_lifetime=settings.read_url_lifetime,
                write_lifetime=settings.write_url_lifetime,
                write_method=settings.write_url_method,
                **signer_kwargs,
            ),
            max_upload_bytes=settings.max_upload_bytes,
            service_name=settings.service_name,
        )
        logger.info(f"Gateway ready (key policy: {settings.key_policy.value})")
        return gateway

    # Uploads

    def upload_one(
        self,
        stream: BinaryIO,
        size: int | None,
        content_type: str | None,
        original_name: str | None,
        dir_hint: str | None = None,
    ) -> UploadResult:
        return self.uploads.upload_one(stream, size, content_type, original_name, dir_hint)

    def upload_many(
        self, files: Iterable[IncomingFile], dir_hint: str | None = None
    ) -> list[UploadResult]:
        return self.uploads.upload_many(files, dir_hint)

    def upload_many_isolated(
        self, files: Iterable[IncomingFile], dir_hint: str | None = None
    ) -> BatchUploadReport:
        return self.uploads.upload_many_isolated(files, dir_hint)

    # Retrieval and listing

    def get(self, key: str) -> tuple[BlobMetadata, BinaryIO]:
        return self.objects.get(key)

    def stat(self, key: str) -> BlobMetadata:
        return self.objects.stat(key)

    def describe(self, key: str) -> ObjectInfo:
        return self.objects.describe(key)

    def list(self, prefix: str | None = None) -> Iterator[ListedObject]:
        return self.objects.list(prefix)

    def delete(self, key: str) -> None:
        self.objects.delete(key)

    def exists(self, key: str) -> bool:
        return self.probe.exists(key)

    # Signing

    def signed_read_url(self, key: str) -> SignedUrl:
        return self.objects.signed_read_url(key)

    def signed_upload_url(self, file_name: str | None, dir_hint: str | None = None) -> SignedUrl:
        """Sign a direct-upload URL for the key the deployment policy gives ``file_name``."""
        key = self.keys.derive(file_name, dir_hint)
        return self.signer.issue(key, UrlIntent.WRITE)
