"""Tests for retrieval, listing and deletion."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from io import BytesIO
from unittest.mock import Mock

import pytest

from blobgate.core.storage import BlobStorage
from blobgate.core.storage.blob import (
    BlobMetadata,
    BlobStorageBackend,
    BlobStorageConnectionError,
)
from blobgate.gateway.errors import ErrorKind, GatewayError
from blobgate.gateway.objects import ObjectService
from blobgate.gateway.probe import ExistenceProbe
from blobgate.gateway.signing import UrlIntent, UrlSigner


def _metadata(key: str, size: int = 1) -> BlobMetadata:
    return BlobMetadata(
        key=key,
        size=size,
        content_type=None,
        last_modified=datetime(2024, 4, 1, tzinfo=UTC),
        etag="etag",
    )


@pytest.fixture
def uploaded(gateway):
    """Three files in two directories."""
    gateway.upload_one(BytesIO(b"invoice one"), 11, "application/pdf", "one.pdf", "invoices")
    gateway.upload_one(BytesIO(b"invoice two"), 11, "application/pdf", "two.pdf", "invoices")
    gateway.upload_one(BytesIO(b"hello"), 5, "text/plain", "readme.txt", "docs")
    return gateway


class TestRetrieval:
    """Test getting and describing objects."""

    def test_round_trip(self, gateway):
        """Test that uploaded bytes come back unchanged with their type."""
        data = bytes(range(256)) * 40
        result = gateway.upload_one(BytesIO(data), len(data), "image/png", "pixels.png")

        metadata, stream = gateway.get(result.key)
        with stream:
            assert stream.read() == data
        assert metadata.size == len(data)
        assert metadata.content_type == "image/png"

    def test_get_missing(self, gateway):
        """Test that a missing key is not found."""
        with pytest.raises(GatewayError) as exc_info:
            gateway.get("202404/missing.txt")

        assert exc_info.value.kind is ErrorKind.NOT_FOUND
        assert exc_info.value.message == "File not found: 202404/missing.txt"

    @pytest.mark.parametrize("key", ["", "   ", None])
    def test_blank_key(self, gateway, key):
        """Test that a blank key is invalid input."""
        with pytest.raises(GatewayError) as exc_info:
            gateway.stat(key)

        assert exc_info.value.kind is ErrorKind.INVALID_INPUT

    def test_describe(self, uploaded, clock):
        """Test the metadata and read URL of one object."""
        info = uploaded.describe("docs/202404/readme.txt")

        assert info.metadata.size == 5
        assert info.metadata.content_type == "text/plain"
        assert info.url.intent is UrlIntent.READ
        assert info.url.expires_at == clock.now + timedelta(days=7)

    def test_signed_read_url(self, uploaded):
        """Test signing an existing key."""
        signed = uploaded.signed_read_url("docs/202404/readme.txt")

        assert signed.key == "docs/202404/readme.txt"
        assert signed.method == "GET"

    def test_signed_read_url_missing(self, gateway):
        """Test that a missing key can't be signed for reading."""
        with pytest.raises(GatewayError) as exc_info:
            gateway.signed_read_url("nowhere.txt")

        assert exc_info.value.kind is ErrorKind.NOT_FOUND

    def test_store_unreachable(self, clock):
        """Test that a failing stat is classified as store unavailable."""
        backend = Mock(spec=BlobStorageBackend)
        backend.get_metadata.side_effect = BlobStorageConnectionError("refused")
        storage = BlobStorage(backend)
        objects = ObjectService(storage, ExistenceProbe(storage), UrlSigner(storage, clock=clock))

        with pytest.raises(GatewayError) as exc_info:
            objects.stat("a.txt")

        assert exc_info.value.kind is ErrorKind.STORE_UNAVAILABLE


class TestListing:
    """Test prefix listings."""

    def test_prefix(self, uploaded):
        """Test that only keys under the prefix are listed."""
        keys = [listed.key for listed in uploaded.list("invoices/")]
        assert keys == ["invoices/202404/one.pdf", "invoices/202404/two.pdf"]

    def test_everything(self, uploaded):
        """Test that no prefix lists every object."""
        assert len(list(uploaded.list())) == 3

    def test_entries_carry_read_urls(self, uploaded, clock):
        """Test that every entry has its own read URL."""
        for listed in uploaded.list("invoices/"):
            assert listed.url.key == listed.key
            assert listed.url.intent is UrlIntent.READ
            assert listed.url.expires_at == clock.now + timedelta(days=7)
            assert listed.size == 11

    def test_lazy(self, uploaded):
        """Test that listing returns an iterator, not a materialized list."""
        assert isinstance(uploaded.list("docs/"), Iterator)

    def test_repeatable(self, uploaded):
        """Test that listing twice without writes gives the same keys."""
        first = [listed.key for listed in uploaded.list()]
        second = [listed.key for listed in uploaded.list()]
        assert first == second

    def test_unknown_prefix(self, uploaded):
        """Test that a prefix with nothing under it lists nothing."""
        assert list(uploaded.list("archive/")) == []

    def test_directory_markers_skipped(self, clock):
        """Test that folder marker objects are not listed."""
        storage = Mock(spec=BlobStorage)
        storage.list.return_value = iter([_metadata("photos/"), _metadata("photos/a.jpg")])
        storage.generate_presigned_url.return_value = "https://store.example/signed"
        objects = ObjectService(storage, ExistenceProbe(storage), UrlSigner(storage, clock=clock))

        assert [listed.key for listed in objects.list("photos/")] == ["photos/a.jpg"]
        storage.generate_presigned_url.assert_called_once()

    def test_listing_failure(self, clock):
        """Test that a failed listing is classified."""
        storage = Mock(spec=BlobStorage)
        storage.list.side_effect = BlobStorageConnectionError("refused")
        objects = ObjectService(storage, ExistenceProbe(storage), UrlSigner(storage, clock=clock))

        with pytest.raises(GatewayError) as exc_info:
            list(objects.list("x/"))

        assert exc_info.value.kind is ErrorKind.STORE_UNAVAILABLE
        assert exc_info.value.operation == "list"


class TestDelete:
    """Test deletion and existence."""

    def test_delete(self, uploaded):
        """Test that a deleted key no longer exists."""
        uploaded.delete("docs/202404/readme.txt")

        assert uploaded.exists("docs/202404/readme.txt") is False
        assert [listed.key for listed in uploaded.list("docs/")] == []

    def test_delete_missing(self, gateway):
        """Test that deleting a missing key is not found."""
        with pytest.raises(GatewayError) as exc_info:
            gateway.delete("202404/missing.txt")

        assert exc_info.value.kind is ErrorKind.NOT_FOUND
        assert exc_info.value.operation == "delete"

    def test_exists_after_upload(self, gateway):
        """Test that an uploaded key exists."""
        result = gateway.upload_one(BytesIO(b"x"), 1, "text/plain", "x.txt")
        assert gateway.exists(result.key) is True

    def test_delete_leaves_siblings(self, uploaded):
        """Test that deleting one key leaves the others in its directory."""
        uploaded.delete("invoices/202404/one.pdf")

        assert [listed.key for listed in uploaded.list("invoices/")] == ["invoices/202404/two.pdf"]
