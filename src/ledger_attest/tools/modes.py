"""Payload modes shared by :mod:`~ledger_attest.tools.signer` and :mod:`~ledger_attest.tools.verify`."""

from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Final, TypeAlias

from ledger_attest.errors import InvalidHashError

__all__ = ["ExplicitHash", "PayloadMode", "WholeDocument", "parse_digest"]

_HEX_DIGITS: Final[frozenset[str]] = frozenset(string.hexdigits)
DIGEST_HEX_LENGTH: Final[int] = 64


@dataclass(frozen=True, slots=True)
class WholeDocument:
    """Sign or verify the raw bytes of the ledger JSON document."""


@dataclass(frozen=True, slots=True)
class ExplicitHash:
    """Sign or verify a caller-supplied SHA-256 digest.

    Attributes:
        digest: 64 hexadecimal characters, either case.
        signature: Base64 DER signature; required for verification, ignored
            when signing.
    """

    digest: str
    signature: str | None = None


PayloadMode: TypeAlias = WholeDocument | ExplicitHash


def parse_digest(digest: str) -> bytes:
    """Decode a 64-character hex digest into its 32 raw bytes.

    Raises:
        InvalidHashError: On any other length or a non-hex character.
    """

    if len(digest) != DIGEST_HEX_LENGTH or not _HEX_DIGITS.issuperset(digest):
        raise InvalidHashError(digest)
    return bytes.fromhex(digest)
