"""Detached ECDSA P-256 signing of the ledger document or an explicit digest."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from pathlib import Path

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed

from ledger_attest.config import LedgerConfig
from ledger_attest.errors import MissingFileError
from ledger_attest.tools.atomic import atomic_write
from ledger_attest.tools.canonicalize import describe_bytes
from ledger_attest.tools.keystore import KeyStore
from ledger_attest.tools.modes import ExplicitHash, PayloadMode, WholeDocument, parse_digest

__all__ = ["Signer", "SignatureReceipt"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SignatureReceipt:
    """Result of a signing run.

    Attributes:
        signature_b64: Base64 of the DER signature written to disk.
        signature_path: Where the DER signature was written.
        mode: ``"whole-document"`` or ``"explicit-hash"``.
        content_hash: Canonical content hash of the document (whole-document
            mode only). Informational; the signature covers the raw bytes.
        digest: The signed digest in lowercase hex (explicit-hash mode only).
    """

    signature_b64: str
    signature_path: Path
    mode: str
    content_hash: str | None = None
    digest: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "mode": self.mode,
            "signature": self.signature_b64,
            "signature_path": str(self.signature_path),
            "content_hash": self.content_hash,
            "digest": self.digest,
        }


class Signer:
    """Produce detached signatures with the key store's current private key.

    Signing lazily provisions a keypair on first use. The signature file is
    overwritten on every successful run.
    """

    def __init__(self, config: LedgerConfig, keystore: KeyStore | None = None) -> None:
        self.config = config
        self.keystore = keystore or KeyStore(config)

    def sign(self, mode: PayloadMode) -> SignatureReceipt:
        """Sign according to ``mode`` and write the DER signature file.

        Args:
            mode: :class:`WholeDocument` to sign the raw ledger JSON bytes, or
                :class:`ExplicitHash` to sign a pre-computed SHA-256 digest.

        Returns:
            A :class:`SignatureReceipt` carrying the base64 signature.

        Raises:
            MissingFileError: Whole-document mode with no ledger JSON.
            InvalidHashError: Explicit-hash mode with a malformed digest.
            InvalidPemError: The private key PEM is malformed.
            KeyParseError: The private key DER is not a P-256 key.
        """

        self.keystore.ensure_keypair(rotate=False)

        if isinstance(mode, ExplicitHash):
            digest = parse_digest(mode.digest)
            private_key = self.keystore.load_private_key()
            der = private_key.sign(digest, ec.ECDSA(Prehashed(hashes.SHA256())))
            receipt = self._finish(der, "explicit-hash", digest=digest.hex())
        elif isinstance(mode, WholeDocument):
            document_path = self.config.ledger_json
            if not document_path.exists():
                raise MissingFileError(document_path)
            private_key = self.keystore.load_private_key()
            document = document_path.read_bytes()
            descriptor = describe_bytes(document_path, document)
            der = private_key.sign(document, ec.ECDSA(hashes.SHA256()))
            receipt = self._finish(
                der, "whole-document", content_hash=descriptor.content_hash
            )
        else:
            raise TypeError(f"Unsupported payload mode: {mode!r}")
        return receipt

    def _finish(
        self,
        der: bytes,
        mode: str,
        *,
        content_hash: str | None = None,
        digest: str | None = None,
    ) -> SignatureReceipt:
        signature_path = self.config.signature_path
        signature_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        atomic_write(signature_path, der)
        logger.info(
            "Wrote ledger signature",
            extra={"mode": mode, "signature_path": str(signature_path)},
        )
        return SignatureReceipt(
            signature_b64=base64.b64encode(der).decode("ascii"),
            signature_path=signature_path,
            mode=mode,
            content_hash=content_hash,
            digest=digest,
        )
