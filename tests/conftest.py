from __future__ import annotations

from datetime import UTC, datetime, timedelta
from io import BytesIO

import pytest

from blobgate.core.storage import BlobStorage
from blobgate.core.storage.backends import FilesystemBackend
from blobgate.gateway.models import IncomingFile
from blobgate.gateway.service import ObjectGateway
from blobgate.settings import GatewaySettings

GATEWAY_ENV_KEYS = [
    "BLOBGATE_PROFILE",
    "BLOBGATE_BACKEND",
    "BLOBGATE_KEY_POLICY",
    "BLOBGATE_DEFAULT_BACKEND",
    "MINIO_ENDPOINT",
    "MINIO_ACCESS_KEY",
    "MINIO_SECRET_KEY",
    "MINIO_BUCKET",
    "MINIO_SECURE",
    "MINIO_REGION",
    "BLOB_STORAGE_PATH",
]


class FakeClock:
    """Settable clock for key partitions and URL expiry."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class NonSeekableStream:
    """A read-only stream whose length can't be measured up front."""

    def __init__(self, data: bytes):
        self._buffer = BytesIO(data)

    def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)


def incoming(name: str | None, data: bytes, content_type: str | None = "text/plain") -> IncomingFile:
    return IncomingFile(
        stream=BytesIO(data), size=len(data), content_type=content_type, original_name=name
    )


@pytest.fixture
def clean_env(monkeypatch):
    """Remove gateway and storage variables from the environment."""
    for key in GATEWAY_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 4, 2, 9, 30, tzinfo=UTC))


@pytest.fixture
def storage(tmp_path):
    """Filesystem-backed blob storage in a temporary directory."""
    return BlobStorage(FilesystemBackend(base_path=tmp_path / "blobs"))


@pytest.fixture
def settings():
    return GatewaySettings()


@pytest.fixture
def gateway(storage, settings, clock):
    """Gateway over temporary filesystem storage with a fixed clock."""
    return ObjectGateway.from_settings(settings, storage=storage, clock=clock)


@pytest.fixture
def make_gateway(storage, clock):
    """Build a gateway over the temporary storage with custom settings."""

    def _make(**overrides) -> ObjectGateway:
        return ObjectGateway.from_settings(GatewaySettings(**overrides), storage=storage, clock=clock)

    return _make
