"""Signed URL issuance.

Signing intent is an explicit input with its own method and lifetime:

* READ  -> ``GET``, valid for ``READ_URL_LIFETIME`` (7 days)
* WRITE -> ``PUT``, valid for ``WRITE_URL_LIFETIME`` (1 day)

Earlier deployments signed "upload" URLs with ``GET``, which grants read
access rather than write access. ``LEGACY_WRITE_URL_METHOD`` names that
behaviour; a deployment that depends on it sets ``write_url_method: "GET"``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

from blobgate.core.storage.blob import (
    BlobNotFoundError,
    BlobStorage,
    BlobStorageError,
    InvalidBlobKeyError,
)
from blobgate.gateway.errors import ErrorKind, GatewayError

logger = logging.getLogger(__name__)

READ_URL_LIFETIME = timedelta(days=7)
WRITE_URL_LIFETIME = timedelta(days=1)
READ_URL_METHOD = "GET"
WRITE_URL_METHOD = "PUT"
LEGACY_WRITE_URL_METHOD = "GET"


class UrlIntent(str, Enum):
    READ = "read"
    WRITE = "write"


@dataclass(frozen=True)
class SignedUrl:
    key: str
    url: str
    intent: UrlIntent
    method: str
    expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(UTC)


class UrlSigner:
    """Mints a fresh signed URL on every call; nothing is cached."""

    def __init__(
        self,
        storage: BlobStorage,
        read_lifetime: timedelta = READ_URL_LIFETIME,
        write_lifetime: timedelta = WRITE_URL_LIFETIME,
        write_method: str = WRITE_URL_METHOD,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if read_lifetime <= timedelta(0) or write_lifetime <= timedelta(0):
            raise ValueError("Signed URL lifetimes must be positive")

        self._storage = storage
        self._lifetimes = {UrlIntent.READ: read_lifetime, UrlIntent.WRITE: write_lifetime}
        self._methods = {UrlIntent.READ: READ_URL_METHOD, UrlIntent.WRITE: write_method.upper()}
        self._clock = clock

        if self._methods[UrlIntent.WRITE] == LEGACY_WRITE_URL_METHOD:
            logger.warning("Upload URLs are signed with GET and grant read access only")

    def lifetime(self, intent: UrlIntent) -> timedelta:
        return self._lifetimes[intent]

    def method(self, intent: UrlIntent) -> str:
        return self._methods[intent]

    def issue(self, key: str, intent: UrlIntent) -> SignedUrl:
        """Sign ``key`` for ``intent``.

        Raises:
            GatewayError: INVALID_INPUT for an empty or malformed key,
                NOT_FOUND when the store only signs existing objects,
                SIGNING_FAILED when the store refuses to sign
        """
        if not key:
            raise GatewayError(ErrorKind.INVALID_INPUT, "Key must not be empty", key, "sign")

        lifetime = self._lifetimes[intent]
        method = self._methods[intent]
        issued_at = self._clock()

        try:
            url = self._storage.generate_presigned_url(key, lifetime, method)
        except BlobNotFoundError as e:
            raise GatewayError(ErrorKind.NOT_FOUND, f"File not found: {key}", key, "sign") from e
        except InvalidBlobKeyError as e:
            raise GatewayError(ErrorKind.INVALID_INPUT, str(e), key, "sign") from e
        except BlobStorageError as e:
            logger.error(f"Error generating presigned {intent.value} URL for {key}: {e}")
            raise GatewayError(
                ErrorKind.SIGNING_FAILED, f"Error generating presigned URL: {e}", key, "sign"
            ) from e

        if not url:
            raise GatewayError(
                ErrorKind.SIGNING_FAILED, "Store returned an empty presigned URL", key, "sign"
            )

        return SignedUrl(
            key=key,
            url=url,
            intent=intent,
            method=method,
            expires_at=issued_at + lifetime,
        )
