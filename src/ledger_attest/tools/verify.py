"""Detached signature verification against the current public key.

Verification always uses the *current* ``keys/ledger.pub``. Signatures made
with a key that has since been rotated into an archive no longer verify.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed

from ledger_attest.config import LedgerConfig
from ledger_attest.errors import (
    MalformedSignatureError,
    MissingFileError,
    MissingFilesError,
    SignatureMismatchError,
)
from ledger_attest.tools.canonicalize import CanonicalDescriptor, describe_bytes
from ledger_attest.tools.keystore import KeyStore
from ledger_attest.tools.modes import ExplicitHash, PayloadMode, WholeDocument, parse_digest

__all__ = ["Verifier", "VerificationReport"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class VerificationReport:
    """Details of a successful verification.

    Attributes:
        mode: ``"whole-document"`` or ``"explicit-hash"``.
        public_key_fingerprint: SHA-256 of the SPKI DER that verified.
        content_hash: Canonical content hash of the document, recomputed for
            display (whole-document mode only).
        digest: Verified digest in lowercase hex (explicit-hash mode only).
        descriptor: Canonical descriptor of the verified bytes (whole-document
            mode only).
    """

    mode: str
    public_key_fingerprint: str
    content_hash: str | None = None
    digest: str | None = None
    verified: bool = True
    descriptor: CanonicalDescriptor | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "verified": self.verified,
            "mode": self.mode,
            "public_key_fingerprint": self.public_key_fingerprint,
            "content_hash": self.content_hash,
            "digest": self.digest,
        }


def _decode_signature(signature: str | None) -> bytes:
    if not signature:
        raise MalformedSignatureError("Signature missing")
    try:
        return base64.b64decode(signature.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedSignatureError("Signature is not valid base64") from exc


class Verifier:
    """Check detached signatures produced by :class:`~ledger_attest.tools.signer.Signer`."""

    def __init__(self, config: LedgerConfig, keystore: KeyStore | None = None) -> None:
        self.config = config
        self.keystore = keystore or KeyStore(config)

    def verify(self, mode: PayloadMode) -> VerificationReport:
        """Verify according to ``mode``; success means no exception.

        Args:
            mode: :class:`WholeDocument` checks ``logs/ledger_merkle.sig``
                against the raw ledger JSON bytes; :class:`ExplicitHash`
                checks its inline base64 signature against its digest.

        Returns:
            A :class:`VerificationReport` for display.

        Raises:
            MissingFilesError: The document, signature or public key is absent.
            InvalidHashError: Explicit-hash mode with a malformed digest.
            InvalidPemError: The public key PEM is malformed.
            KeyParseError: The public key DER is not a P-256 key.
            MalformedSignatureError: The inline signature is not base64.
            SignatureMismatchError: The signature does not verify.
        """

        if isinstance(mode, ExplicitHash):
            digest = parse_digest(mode.digest)
            signature = _decode_signature(mode.signature)
            public_key = self._public_key()
            self._check(
                public_key, signature, digest, ec.ECDSA(Prehashed(hashes.SHA256()))
            )
            report = VerificationReport(
                mode="explicit-hash",
                public_key_fingerprint=self.keystore.public_key_fingerprint(),
                digest=digest.hex(),
            )
        elif isinstance(mode, WholeDocument):
            for required in (
                self.config.ledger_json,
                self.config.signature_path,
                self.config.public_key_path,
            ):
                if not required.exists():
                    raise MissingFilesError(required)
            document = self.config.ledger_json.read_bytes()
            signature = self.config.signature_path.read_bytes()
            public_key = self._public_key()
            descriptor = describe_bytes(self.config.ledger_json, document)
            self._check(public_key, signature, document, ec.ECDSA(hashes.SHA256()))
            report = VerificationReport(
                mode="whole-document",
                public_key_fingerprint=self.keystore.public_key_fingerprint(),
                content_hash=descriptor.content_hash,
                descriptor=descriptor,
            )
        else:
            raise TypeError(f"Unsupported payload mode: {mode!r}")

        logger.info("Signature verified", extra={"mode": report.mode})
        return report

    def _public_key(self) -> ec.EllipticCurvePublicKey:
        try:
            return self.keystore.load_public_key()
        except MissingFileError as exc:
            raise MissingFilesError(exc.path) from exc

    @staticmethod
    def _check(
        public_key: ec.EllipticCurvePublicKey,
        signature: bytes,
        payload: bytes,
        algorithm: ec.ECDSA,
    ) -> None:
        try:
            public_key.verify(signature, payload, algorithm)
        except (InvalidSignature, ValueError) as exc:
            logger.warning("Signature mismatch")
            raise SignatureMismatchError() from exc
