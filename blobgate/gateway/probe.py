"""Existence probing on top of the store's stat primitive."""

from __future__ import annotations

import logging
from enum import Enum

from blobgate.core.storage.blob import BlobNotFoundError, BlobStorage, BlobStorageError
from blobgate.gateway.errors import ErrorKind, GatewayError

logger = logging.getLogger(__name__)


class Presence(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    INDETERMINATE = "indeterminate"


def probe(storage: BlobStorage, key: str) -> Presence:
    """Stat ``key`` and classify the answer. Store failures are logged, not raised."""
    try:
        storage.get_metadata(key)
        return Presence.PRESENT
    except BlobNotFoundError:
        return Presence.ABSENT
    except BlobStorageError as e:
        logger.warning(f"Could not check file existence for {key}: {e}")
        return Presence.INDETERMINATE


class ExistenceProbe:
    """Boolean existence check with a policy for indeterminate answers.

    With ``indeterminate_as_absent`` (the default) a transient store failure
    reads as "does not exist", so callers can't tell absence from an
    unreachable store. Without it, the failure is raised as STORE_UNAVAILABLE.
    """

    def __init__(self, storage: BlobStorage, indeterminate_as_absent: bool = True):
        self._storage = storage
        self._indeterminate_as_absent = indeterminate_as_absent

    def presence(self, key: str) -> Presence:
        return probe(self._storage, key)

    def exists(self, key: str) -> bool:
        presence = self.presence(key)
        if presence is Presence.INDETERMINATE:
            if self._indeterminate_as_absent:
                logger.warning(f"Assuming {key} does not exist")
                return False
            raise GatewayError(
                ErrorKind.STORE_UNAVAILABLE,
                f"Could not determine whether {key} exists",
                key,
                "exists",
            )
        return presence is Presence.PRESENT
