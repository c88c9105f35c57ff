"""Deterministic file canonicalization and content addressing.

Plain-text files (by suffix) are normalised to their UTF-8 text with
surrounding whitespace trimmed and exactly one trailing newline; every other
file is taken byte-for-byte. The SHA-256 of those canonical bytes is the
``content_hash``; ``content_id`` wraps it in a lightweight multihash /
multibase style identifier for audit output.
"""

from __future__ import annotations

import base64
import hashlib
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from ledger_attest.errors import MissingFileError

__all__ = [
    "CanonicalDescriptor",
    "FORMAT_VERSION",
    "PLAIN_TEXT_SUFFIXES",
    "canonical_bytes",
    "canonicalize",
    "describe_bytes",
    "content_id",
    "hash_bytes",
]

FORMAT_VERSION: Final[str] = "canon-v1"
PLAIN_TEXT_SUFFIXES: Final[frozenset[str]] = frozenset({".txt", ".text", ".log"})

# Multihash code for sha2-256 (0x12) with a 32 byte length (0x20).
_SHA256_MULTIHASH_PREFIX: Final[str] = "1220"
# Multibase marker prefixed to the encoded identifier.
_MULTIBASE_MARKER: Final[str] = "b"
_TEXT_MIME: Final[str] = "text/plain; charset=utf-8"
_FALLBACK_MIME: Final[str] = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class CanonicalDescriptor:
    """Derived description of a file's canonical form."""

    source_file_name: str
    original_byte_size: int
    canonical_byte_size: int
    mime_hint: str
    content_hash: str
    content_id: str
    format_version_tag: str = FORMAT_VERSION

    def to_dict(self) -> dict[str, object]:
        return {
            "source_file_name": self.source_file_name,
            "original_byte_size": self.original_byte_size,
            "canonical_byte_size": self.canonical_byte_size,
            "mime_hint": self.mime_hint,
            "content_hash": self.content_hash,
            "content_id": self.content_id,
            "format_version_tag": self.format_version_tag,
        }


def _is_plain_text(path: Path) -> bool:
    return path.suffix.lower() in PLAIN_TEXT_SUFFIXES


def _mime_hint(path: Path) -> str:
    if _is_plain_text(path):
        return _TEXT_MIME
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or _FALLBACK_MIME


def canonical_bytes(raw: bytes, *, plain_text: bool) -> bytes:
    """Return the canonical byte form of ``raw``.

    Undecodable bytes survive the round trip via ``surrogateescape`` so
    malformed text is trimmed on a best-effort basis rather than rejected.
    """

    if not plain_text:
        return raw
    text = raw.decode("utf-8", errors="surrogateescape")
    return (text.strip() + "\n").encode("utf-8", errors="surrogateescape")


def hash_bytes(data: bytes) -> str:
    """Return the lowercase SHA-256 hex digest of ``data``."""

    return hashlib.sha256(data).hexdigest()


def content_id(content_hash: str) -> str:
    """Return the self-describing identifier for a SHA-256 hex digest.

    The multihash prefix is joined to the hex text and the resulting ASCII
    bytes are base64 encoded, unpadded and lowercased, then tagged with the
    multibase marker. The layout is fixed because audit output depends on it.
    """

    framed = (_SHA256_MULTIHASH_PREFIX + content_hash).encode("ascii")
    encoded = base64.b64encode(framed).decode("ascii").rstrip("=").lower()
    return _MULTIBASE_MARKER + encoded


def canonicalize(path: str | Path) -> CanonicalDescriptor:
    """Describe the canonical form of the file at ``path``.

    Args:
        path: File to canonicalize.

    Returns:
        A :class:`CanonicalDescriptor` computed purely from the file's bytes
        and suffix.

    Raises:
        MissingFileError: If ``path`` does not exist.
    """

    source = Path(path)
    try:
        raw = source.read_bytes()
    except FileNotFoundError as exc:
        raise MissingFileError(source) from exc
    return describe_bytes(source, raw)


def describe_bytes(path: str | Path, raw: bytes) -> CanonicalDescriptor:
    """Describe ``raw`` as the content of ``path`` without touching the disk."""

    source = Path(path)
    canonical = canonical_bytes(raw, plain_text=_is_plain_text(source))
    digest = hash_bytes(canonical)
    return CanonicalDescriptor(
        source_file_name=source.name,
        original_byte_size=len(raw),
        canonical_byte_size=len(canonical),
        mime_hint=_mime_hint(source),
        content_hash=digest,
        content_id=content_id(digest),
    )
