"""Tests for BlobStorage over the filesystem backend."""

from __future__ import annotations

from datetime import timedelta
from io import BytesIO
from urllib.parse import parse_qs, urlparse

import pytest

from blobgate.core.storage import BackendNotFoundError, BlobStorage
from blobgate.core.storage.backends import FilesystemBackend
from blobgate.core.storage.blob import BlobNotFoundError, BlobStorageError, InvalidBlobKeyError


class BrokenStream:
    """A stream whose connection drops after the first chunk."""

    def __init__(self, first_chunk: bytes):
        self._first_chunk = first_chunk
        self._sent = False

    def read(self, size: int = -1) -> bytes:
        if self._sent:
            raise OSError("connection reset by peer")
        self._sent = True
        return self._first_chunk


class TestBlobStorage:
    """Test suite for BlobStorage high-level API."""

    @pytest.fixture
    def temp_storage(self, tmp_path):
        """Create a temporary filesystem-backed blob storage."""
        backend = FilesystemBackend(base_path=tmp_path)
        return BlobStorage(backend)

    def test_put_and_get_bytes(self, temp_storage):
        """Test storing and retrieving bytes."""
        data = b"Hello, blob storage!"
        etag = temp_storage.put("test.txt", data)

        assert etag is not None
        assert temp_storage.get("test.txt") == data

    def test_put_and_get_with_path(self, temp_storage, tmp_path):
        """Test storing data from a file path."""
        test_file = tmp_path / "source.txt"
        test_file.write_bytes(b"File content")

        etag = temp_storage.put("stored.txt", test_file)

        assert etag is not None
        assert temp_storage.get("stored.txt") == b"File content"

    def test_put_from_stream(self, temp_storage):
        """Test storing blob from a stream."""
        data = b"Stream input data"
        temp_storage.put("from_stream.txt", BytesIO(data))

        assert temp_storage.get("from_stream.txt") == data

    def test_etag_is_content_hash(self, temp_storage):
        """Test that equal content gives equal etags."""
        assert temp_storage.put("a.txt", b"same") == temp_storage.put("b.txt", b"same")
        assert temp_storage.put("c.txt", b"other") != temp_storage.put("d.txt", b"same")

    def test_get_metadata(self, temp_storage):
        """Test retrieving blob metadata."""
        data = b"test data for metadata"
        metadata = {"uploaded-by": "gateway"}

        temp_storage.put("test.txt", data, content_type="text/plain", metadata=metadata)
        blob_meta = temp_storage.get_metadata("test.txt")

        assert blob_meta.key == "test.txt"
        assert blob_meta.size == len(data)
        assert blob_meta.content_type == "text/plain"
        assert blob_meta.custom_metadata == metadata
        assert blob_meta.last_modified.tzinfo is not None

    def test_default_content_type(self, temp_storage):
        """Test that objects stored without a type are octet-stream."""
        temp_storage.put("raw.bin", b"\x00\x01")
        assert temp_storage.get_metadata("raw.bin").content_type == "application/octet-stream"

    def test_get_stream(self, temp_storage):
        """Test retrieving blob as a stream."""
        data = b"Stream data content"
        temp_storage.put("stream.txt", data)

        with temp_storage.get_stream("stream.txt") as stream:
            assert stream.read() == data

    def test_delete(self, temp_storage, tmp_path):
        """Test deleting a blob and its empty directories."""
        temp_storage.put("a/b/to_delete.txt", b"delete me")

        temp_storage.delete("a/b/to_delete.txt")

        with pytest.raises(BlobNotFoundError):
            temp_storage.get_metadata("a/b/to_delete.txt")
        assert not (tmp_path / "a").exists()

    def test_delete_nonexistent(self, temp_storage):
        """Test deleting a non-existent blob raises error."""
        with pytest.raises(BlobNotFoundError):
            temp_storage.delete("nonexistent.txt")

    def test_get_nonexistent_blob(self, temp_storage):
        """Test getting non-existent blob raises error."""
        with pytest.raises(BlobNotFoundError):
            temp_storage.get("nonexistent.txt")

    def test_get_metadata_nonexistent(self, temp_storage):
        """Test getting metadata for non-existent blob raises error."""
        with pytest.raises(BlobNotFoundError):
            temp_storage.get_metadata("nonexistent.txt")

    def test_overwrite_blob(self, temp_storage):
        """Test overwriting an existing blob."""
        temp_storage.put("overwrite.txt", b"original")
        temp_storage.put("overwrite.txt", b"updated")

        assert temp_storage.get("overwrite.txt") == b"updated"
        assert temp_storage.get_metadata("overwrite.txt").size == 7

    def test_nested_paths(self, temp_storage):
        """Test deeply nested blob paths."""
        key = "level1/level2/level3/level4/file.txt"
        temp_storage.put(key, b"nested data")

        assert temp_storage.get(key) == b"nested data"

    @pytest.mark.parametrize(
        "key", ["", "dir/", "../outside.txt", "a/../../outside.txt", ".meta/x.json"]
    )
    def test_invalid_keys(self, temp_storage, key):
        """Test that keys outside the storage root are refused."""
        with pytest.raises(InvalidBlobKeyError):
            temp_storage.put(key, b"data")

    def test_meta_suffix_keys_are_ordinary(self, temp_storage):
        """Test that keys ending in .meta are stored and listed like any other."""
        temp_storage.put("a", b"first", content_type="text/plain")
        temp_storage.put("a.meta", b"second")

        assert [blob.key for blob in temp_storage.list()] == ["a", "a.meta"]
        assert temp_storage.get("a") == b"first"
        assert temp_storage.get_metadata("a").content_type == "text/plain"
        assert temp_storage.get_metadata("a.meta").size == 6
        assert [blob.content_type for blob in temp_storage.list()] == [
            "text/plain",
            "application/octet-stream",
        ]

    def test_failed_put_keeps_previous_object(self, temp_storage):
        """Test that a stream failing midway leaves the old object whole."""
        temp_storage.put("report.txt", b"version one", content_type="text/plain")
        before = temp_storage.get_metadata("report.txt")

        with pytest.raises(BlobStorageError):
            temp_storage.put("report.txt", BrokenStream(b"x" * 100_000))

        assert temp_storage.get("report.txt") == b"version one"
        assert temp_storage.get_metadata("report.txt").etag == before.etag
        assert [blob.key for blob in temp_storage.list()] == ["report.txt"]

    def test_failed_first_put_leaves_nothing(self, temp_storage):
        """Test that a failed put of a new key doesn't create it."""
        with pytest.raises(BlobStorageError):
            temp_storage.put("new.txt", BrokenStream(b"x" * 100_000))

        with pytest.raises(BlobNotFoundError):
            temp_storage.get_metadata("new.txt")
        assert list(temp_storage.list()) == []

    def test_list(self, temp_storage):
        """Test recursive listing in key order."""
        temp_storage.put("docs/readme.txt", b"readme")
        temp_storage.put("docs/guide.txt", b"guide")
        temp_storage.put("images/photo.jpg", b"photo")
        temp_storage.put("root.txt", b"root")

        keys = [blob.key for blob in temp_storage.list()]

        assert keys == ["docs/guide.txt", "docs/readme.txt", "images/photo.jpg", "root.txt"]

    def test_list_with_prefix(self, temp_storage):
        """Test listing blobs with prefix filter."""
        temp_storage.put("docs/readme.txt", b"readme")
        temp_storage.put("docs/guide.txt", b"guide")
        temp_storage.put("docsets/other.txt", b"other")

        keys = {blob.key for blob in temp_storage.list(prefix="docs/")}

        assert keys == {"docs/readme.txt", "docs/guide.txt"}

    def test_list_pages(self, temp_storage):
        """Test that listing walks every page."""
        for i in range(7):
            temp_storage.put(f"page/{i}.txt", b"x")

        keys = [blob.key for blob in temp_storage.list("page/", max_results=3)]

        assert keys == [f"page/{i}.txt" for i in range(7)]

    def test_list_prefixes(self, temp_storage):
        """Test listing prefixes (directory-like structure)."""
        temp_storage.put("docs/readme.txt", b"readme")
        temp_storage.put("images/photo.jpg", b"photo")
        temp_storage.put("videos/clip.mp4", b"video")

        assert temp_storage.list_prefixes() == ["docs/", "images/", "videos/"]

    def test_presigned_url(self, temp_storage):
        """Test the file URL carries method and expiry."""
        temp_storage.put("a.txt", b"data")

        url = temp_storage.generate_presigned_url("a.txt", timedelta(hours=2), "get")
        parsed = urlparse(url)
        query = parse_qs(parsed.query)

        assert parsed.scheme == "file"
        assert parsed.path.endswith("/a.txt")
        assert query["method"] == ["GET"]
        assert int(query["expires"][0]) > 0

    def test_presigned_get_url_for_missing_blob(self, temp_storage):
        """Test that a read URL requires the object."""
        with pytest.raises(BlobNotFoundError):
            temp_storage.generate_presigned_url("missing.txt")


class TestBlobStorageFromName:
    """Test BlobStorage.from_name() class method."""

    def test_from_name(self, tmp_path, monkeypatch):
        """Test creating storage from a named backend."""
        from blobgate.core.storage import registry

        monkeypatch.setattr(
            registry,
            "_default_registry",
            registry.BlobBackendRegistry(
                {"scratch": {"type": "filesystem", "base_path": str(tmp_path)}}
            ),
        )

        storage = BlobStorage.from_name("scratch")
        storage.put("test.txt", b"data")

        assert (tmp_path / "test.txt").read_bytes() == b"data"

    def test_from_name_nonexistent_backend(self, monkeypatch):
        """Test error when using non-existent backend."""
        from blobgate.core.storage import registry

        monkeypatch.setattr(registry, "_default_registry", registry.BlobBackendRegistry({}))

        with pytest.raises(BackendNotFoundError):
            BlobStorage.from_name("nonexistent_backend")
