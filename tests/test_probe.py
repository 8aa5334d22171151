"""Tests for existence probing."""

from __future__ import annotations

import logging
from unittest.mock import Mock

import pytest

from blobgate.core.storage import BlobStorage
from blobgate.core.storage.blob import (
    BlobNotFoundError,
    BlobStorageBackend,
    BlobStorageConnectionError,
)
from blobgate.gateway.errors import ErrorKind, GatewayError
from blobgate.gateway.probe import ExistenceProbe, Presence, probe


@pytest.fixture
def unreachable_storage():
    """Storage whose stat always fails with a connection error."""
    backend = Mock(spec=BlobStorageBackend)
    backend.get_metadata.side_effect = BlobStorageConnectionError("connection refused")
    return BlobStorage(backend)


class TestProbe:
    """Test the tri-state probe."""

    def test_present(self, storage):
        """Test that a stored key is present."""
        storage.put("a/b.txt", b"data")
        assert probe(storage, "a/b.txt") is Presence.PRESENT

    def test_absent(self, storage):
        """Test that a missing key is absent."""
        assert probe(storage, "missing.txt") is Presence.ABSENT

    def test_store_failure_is_indeterminate(self, unreachable_storage, caplog):
        """Test that a failed stat is neither present nor absent, and is logged."""
        with caplog.at_level(logging.WARNING):
            assert probe(unreachable_storage, "a.txt") is Presence.INDETERMINATE

        assert "Could not check file existence for a.txt" in caplog.text

    def test_not_found_from_backend(self):
        """Test that the backend's not-found error means absent."""
        backend = Mock(spec=BlobStorageBackend)
        backend.get_metadata.side_effect = BlobNotFoundError("nope")

        assert probe(BlobStorage(backend), "a.txt") is Presence.ABSENT


class TestExistenceProbe:
    """Test the boolean existence check."""

    def test_exists(self, storage):
        """Test true and false answers against real storage."""
        storage.put("here.txt", b"x")
        existence = ExistenceProbe(storage)

        assert existence.exists("here.txt") is True
        assert existence.exists("gone.txt") is False

    def test_indeterminate_reads_as_absent_by_default(self, unreachable_storage):
        """Test that an unreachable store reports the key as missing."""
        assert ExistenceProbe(unreachable_storage).exists("a.txt") is False

    def test_indeterminate_raises_when_strict(self, unreachable_storage):
        """Test that a strict probe surfaces the store failure."""
        existence = ExistenceProbe(unreachable_storage, indeterminate_as_absent=False)

        with pytest.raises(GatewayError) as exc_info:
            existence.exists("a.txt")

        assert exc_info.value.kind is ErrorKind.STORE_UNAVAILABLE
        assert exc_info.value.key == "a.txt"
        assert exc_info.value.operation == "exists"

    def test_presence_is_not_collapsed(self, unreachable_storage):
        """Test that presence() still tells indeterminate apart."""
        existence = ExistenceProbe(unreachable_storage)
        assert existence.presence("a.txt") is Presence.INDETERMINATE

    def test_probe_has_no_side_effects(self, storage):
        """Test that probing doesn't create anything in the store."""
        ExistenceProbe(storage).exists("never/written.txt")
        assert list(storage.list()) == []
