"""RFC 7468 PEM framing for PKCS#8 private keys and SPKI public keys."""

from __future__ import annotations

import base64
import binascii
import textwrap
from pathlib import Path
from typing import Final

from ledger_attest.errors import InvalidPemError

PRIVATE_KEY_LABEL: Final[str] = "PRIVATE KEY"
PUBLIC_KEY_LABEL: Final[str] = "PUBLIC KEY"

_LINE_WIDTH: Final[int] = 64


def _begin(label: str) -> str:
    return f"-----BEGIN {label}-----"


def _end(label: str) -> str:
    return f"-----END {label}-----"


def encode_pem(label: str, der: bytes) -> str:
    """Wrap DER bytes in PEM framing with a 64-column base64 body."""

    body = base64.b64encode(der).decode("ascii")
    lines = textwrap.wrap(body, _LINE_WIDTH)
    return "\n".join([_begin(label), *lines, _end(label)]) + "\n"


def has_pem_markers(text: str, label: str) -> bool:
    """Return ``True`` when ``text`` holds a BEGIN marker followed by its END marker."""

    start = text.find(_begin(label))
    if start < 0:
        return False
    return text.find(_end(label), start + len(_begin(label))) >= 0


def decode_pem(text: str, label: str, *, path: str | Path | None = None) -> bytes:
    """Return the DER payload framed by ``label`` markers.

    Args:
        text: PEM document.
        label: Expected label, e.g. ``"PRIVATE KEY"``.
        path: Source path, used only in error messages.

    Raises:
        InvalidPemError: If the markers are missing or out of order, or the
            body is empty or not valid base64.
    """

    begin, end = _begin(label), _end(label)
    start = text.find(begin)
    if start < 0:
        raise InvalidPemError(path, f"missing '{begin}' marker")
    stop = text.find(end, start + len(begin))
    if stop < 0:
        raise InvalidPemError(path, f"missing '{end}' marker")

    body = "".join(text[start + len(begin) : stop].split())
    if not body:
        raise InvalidPemError(path, "empty key body")
    try:
        return base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidPemError(path, "key body is not valid base64") from exc
