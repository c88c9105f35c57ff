"""Typed failures raised by the ledger attestation components.

Every error carries a ``category`` so the outermost boundary can tell
"fix your input" (``usage``), "fix your environment" (``environment``) and
"this signature is not trustworthy" (``trust``) apart without string matching.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

__all__ = [
    "ErrorCategory",
    "LedgerAttestError",
    "MissingFileError",
    "MissingFilesError",
    "InvalidPemError",
    "KeyParseError",
    "InvalidHashError",
    "SignatureMismatchError",
    "MalformedSignatureError",
    "ScriptNotFoundError",
    "ExecutionFailedError",
    "RecordDecodeError",
]

ErrorCategory = Literal["usage", "environment", "trust"]


class LedgerAttestError(Exception):
    """Base class for all ledger attestation failures."""

    category: ErrorCategory = "environment"


class MissingFileError(LedgerAttestError):
    """Raised when a required file does not exist."""

    label = "Missing file"

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__(f"{self.label}: {self.path}")


class MissingFilesError(MissingFileError):
    """Raised by verification when the document, signature or public key is absent."""

    label = "Missing files"


class InvalidPemError(LedgerAttestError):
    """Raised when key material lacks valid PEM framing or base64 body."""

    def __init__(self, path: str | Path | None, reason: str) -> None:
        self.path = Path(path) if path is not None else None
        self.reason = reason
        where = f" ({self.path})" if self.path is not None else ""
        super().__init__(f"Invalid PEM{where}: {reason}")


class KeyParseError(LedgerAttestError):
    """Raised when PEM framing is intact but the DER key material is not a P-256 key."""

    def __init__(self, path: str | Path | None, reason: str) -> None:
        self.path = Path(path) if path is not None else None
        self.reason = reason
        where = f" ({self.path})" if self.path is not None else ""
        super().__init__(f"Failed to parse key{where}: {reason}")


class InvalidHashError(LedgerAttestError):
    """Raised when a caller-supplied digest is not 64 hexadecimal characters."""

    category: ErrorCategory = "usage"

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(
            f"Invalid hash: expected 64 hex characters, got {len(value)} characters"
        )


class SignatureMismatchError(LedgerAttestError):
    """Raised when a signature does not verify against the current public key."""

    category: ErrorCategory = "trust"
    structural: bool = False

    def __init__(self, message: str = "Signature mismatch") -> None:
        super().__init__(message)


class MalformedSignatureError(SignatureMismatchError):
    """Raised when an inline signature cannot even be decoded.

    Callers catching :class:`SignatureMismatchError` still see it as a failed
    verification, while ``structural`` marks it as a usage problem rather than
    a cryptographic one.
    """

    category: ErrorCategory = "usage"
    structural: bool = True


class ScriptNotFoundError(LedgerAttestError):
    """Raised when the ledger-generation script is missing or not executable."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__(
            f"Ledger script not found at {self.path}. Set LEDGER_ATTEST_SCRIPT."
        )


class ExecutionFailedError(LedgerAttestError):
    """Raised when the ledger-generation script exits with a non-zero status."""

    def __init__(self, status: int, stderr: str) -> None:
        self.status = status
        self.stderr = stderr
        super().__init__(f"Script failed (status {status}): {stderr}")


class RecordDecodeError(LedgerAttestError):
    """Raised when the ledger JSON cannot be parsed into a record."""

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Could not decode ledger record {self.path}: {reason}")
