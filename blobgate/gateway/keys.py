"""Storage key derivation for uploaded files.

Client file names are never used as literal paths. Each deployment picks one
``KeyPolicy``:

* ``SANITIZED_DATED``: ``[<dir>/]<YYYYMM>/<sanitized name>``. Re-uploading
  the same name in the same month lands on the same key and overwrites it.
* ``RANDOM_OPAQUE``: ``[<dir>/]<random hex><.ext>``. Keys never collide.

Derivation is total: degenerate input yields a safe fallback key, never an
error.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

PLACEHOLDER_NAME = "unnamed_file"

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^A-Za-z0-9._-]")
_REPEATED_SEPARATORS = re.compile(r"([._-])\1+")
_EDGE_SEPARATORS = "._-"
_EXTENSION_DISALLOWED = re.compile(r"[^A-Za-z0-9]")


class KeyPolicy(str, Enum):
    SANITIZED_DATED = "sanitized_dated"
    RANDOM_OPAQUE = "random_opaque"


def _sanitize_segment(value: str) -> str:
    value = _WHITESPACE.sub("_", value)
    value = _DISALLOWED.sub("", value)
    value = _REPEATED_SEPARATORS.sub(r"\1", value)
    return value.strip(_EDGE_SEPARATORS)


def sanitize_filename(name: str | None) -> str:
    """Reduce a client file name to ``[A-Za-z0-9._-]``.

    Whitespace runs become ``_``, every other character outside the allowed
    set is dropped, repeated ``_``/``-``/``.`` collapse to one, and separators
    are trimmed from both ends. An empty result becomes ``unnamed_file``.

    Examples:
        >>> sanitize_filename("My Report (final).pdf")
        'My_Report_final.pdf'
        >>> sanitize_filename("../../etc/passwd")
        'etcpasswd'
        >>> sanitize_filename("   ")
        'unnamed_file'
    """
    if not name:
        return PLACEHOLDER_NAME
    return _sanitize_segment(name) or PLACEHOLDER_NAME


def normalize_dir_hint(hint: str | None) -> str | None:
    """Normalize a directory hint, or return None when nothing is left.

    Leading and trailing slashes are trimmed, each segment is sanitized like a
    file name, and empty, ``.`` and ``..`` segments are dropped.

    Examples:
        >>> normalize_dir_hint("/invoices/2024/")
        'invoices/2024'
        >>> normalize_dir_hint("//") is None
        True
    """
    if not hint:
        return None
    segments = [_sanitize_segment(segment) for segment in hint.strip("/").split("/")]
    kept = [segment for segment in segments if segment]
    return "/".join(kept) or None


def file_extension(name: str | None) -> str:
    """Return ``.ext`` for the text after the last dot, or ``""`` when there is none."""
    if not name or "." not in name:
        return ""
    ext = _EXTENSION_DISALLOWED.sub("", name.rpartition(".")[2])
    return f".{ext}" if ext else ""


def month_partition(moment: datetime) -> str:
    """``YYYYMM`` partition segment; aware datetimes are converted to UTC first."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(UTC)
    return f"{moment.year:04d}{moment.month:02d}"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _random_token() -> str:
    return uuid.uuid4().hex


def derive_key(
    original_name: str | None,
    dir_hint: str | None = None,
    policy: KeyPolicy = KeyPolicy.SANITIZED_DATED,
    now: datetime | None = None,
    token_factory: Callable[[], str] | None = None,
) -> str:
    """Derive the storage key for an uploaded file.

    Examples:
        >>> derive_key("report.pdf", now=datetime(2024, 4, 2))
        '202404/report.pdf'
        >>> derive_key("a b.png", "/team/", KeyPolicy.RANDOM_OPAQUE, token_factory=lambda: "f00")
        'team/f00.png'
    """
    hint = normalize_dir_hint(dir_hint)

    if KeyPolicy(policy) is KeyPolicy.RANDOM_OPAQUE:
        token = (token_factory or _random_token)()
        parts = [hint, token + file_extension(original_name)]
    else:
        moment = now or _utcnow()
        parts = [hint, month_partition(moment), sanitize_filename(original_name)]

    return "/".join(part for part in parts if part)


@dataclass(frozen=True)
class KeyDeriver:
    """A key policy bound to its clock and token source for one deployment."""

    policy: KeyPolicy = KeyPolicy.SANITIZED_DATED
    clock: Callable[[], datetime] = field(default=_utcnow)
    token_factory: Callable[[], str] = field(default=_random_token)

    def derive(self, original_name: str | None, dir_hint: str | None = None) -> str:
        return derive_key(
            original_name,
            dir_hint,
            policy=self.policy,
            now=self.clock(),
            token_factory=self.token_factory,
        )
