"""Error kinds raised by the gateway.

Every failure leaving the gateway is a ``GatewayError`` tagged with one
``ErrorKind``. The boundary maps kinds to protocol outcomes in one place.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Classification of gateway failures."""

    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"
    SIZE_LIMIT_EXCEEDED = "SIZE_LIMIT_EXCEEDED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    SIGNING_FAILED = "SIGNING_FAILED"
    UPLOAD_FAILED = "UPLOAD_FAILED"


class GatewayError(Exception):
    """A classified gateway failure with the key and operation it concerns."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        key: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.key = key
        self.operation = operation

    def __repr__(self) -> str:
        return (
            f"GatewayError(kind={self.kind.value}, key={self.key!r}, "
            f"operation={self.operation!r}, message={self.message!r})"
        )
