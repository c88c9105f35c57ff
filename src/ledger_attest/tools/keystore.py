"""P-256 keypair lifecycle on disk: generate once, rotate with archival.

Layout under ``keys/``::

    ledger.pem                       PKCS#8 private key (0600)
    ledger.pub                       SPKI public key (0600)
    archive-<UTC timestamp>/         retired pairs (0700), kept indefinitely
    .keystore.lock                   advisory lock for generation and rotation

Verification only ever consults the current ``ledger.pub``; archived pairs
exist for manual recovery.
"""

from __future__ import annotations

import hashlib
import logging
import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Final

import portalocker
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from ledger_attest.config import LedgerConfig
from ledger_attest.errors import InvalidPemError, KeyParseError, MissingFileError
from ledger_attest.tools.atomic import atomic_write
from ledger_attest.tools.pem import (
    PRIVATE_KEY_LABEL,
    PUBLIC_KEY_LABEL,
    decode_pem,
    encode_pem,
    has_pem_markers,
)

__all__ = ["KeyStore", "KeyStoreEvent", "ARCHIVE_PREFIX"]

logger = logging.getLogger(__name__)

ARCHIVE_PREFIX: Final[str] = "archive-"
LOCK_NAME: Final[str] = ".keystore.lock"
_DIR_MODE: Final[int] = 0o700
_FILE_MODE: Final[int] = 0o600


@dataclass(frozen=True, slots=True)
class KeyStoreEvent:
    """Outcome of :meth:`KeyStore.ensure_keypair`."""

    generated: bool
    rotated: bool
    archive_dir: Path | None = None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class KeyStore:
    """Manage the single active signing keypair for a ledger home.

    Generation and rotation are serialised through an exclusive advisory
    lock on ``keys/.keystore.lock`` so concurrent rotations cannot move the
    same files twice.
    """

    def __init__(
        self,
        config: LedgerConfig,
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.config = config
        self._clock = clock

    @property
    def keys_dir(self) -> Path:
        return self.config.keys_dir

    @property
    def private_key_path(self) -> Path:
        return self.config.private_key_path

    @property
    def public_key_path(self) -> Path:
        return self.config.public_key_path

    @contextmanager
    def _locked(self) -> Iterator[IO[bytes]]:
        lock_path = self.keys_dir / LOCK_NAME
        with lock_path.open("a+b") as lock_fp:
            portalocker.lock(lock_fp, portalocker.LOCK_EX)
            try:
                yield lock_fp
            finally:
                portalocker.unlock(lock_fp)

    def _ensure_keys_dir(self) -> None:
        self.keys_dir.mkdir(mode=_DIR_MODE, parents=True, exist_ok=True)
        os.chmod(self.keys_dir, _DIR_MODE)

    def ensure_keypair(self, rotate: bool = False) -> KeyStoreEvent:
        """Make sure a valid keypair exists, optionally rotating it first.

        Args:
            rotate: Archive the current pair and generate a fresh one.

        Returns:
            A :class:`KeyStoreEvent` describing what changed.

        Raises:
            InvalidPemError: If an existing pair (with ``rotate=False``) has
                broken PEM markers.
        """

        self._ensure_keys_dir()
        with self._locked():
            has_private = self.private_key_path.exists()
            has_public = self.public_key_path.exists()

            if has_private and has_public and not rotate:
                self._check_markers()
                return KeyStoreEvent(generated=False, rotated=False)

            archive_dir: Path | None = None
            if has_private or has_public:
                # A lone half of a pair is archived too so nothing is overwritten.
                archive_dir = self._archive_current()

            self._generate()
            rotated = rotate and archive_dir is not None
            if rotated:
                logger.info(
                    "Rotated ledger keypair",
                    extra={"archive_dir": str(archive_dir)},
                )
            elif archive_dir is not None:
                logger.warning(
                    "Archived incomplete keypair before regeneration",
                    extra={"archive_dir": str(archive_dir)},
                )
            return KeyStoreEvent(generated=True, rotated=rotated, archive_dir=archive_dir)

    def _check_markers(self) -> None:
        for path, label in (
            (self.private_key_path, PRIVATE_KEY_LABEL),
            (self.public_key_path, PUBLIC_KEY_LABEL),
        ):
            text = path.read_text(encoding="utf-8", errors="replace")
            if not has_pem_markers(text, label):
                raise InvalidPemError(path, f"missing {label} markers")

    def _archive_dir_name(self) -> Path:
        stamp = self._clock().astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        base = ARCHIVE_PREFIX + stamp.replace(":", "-")
        candidate = self.keys_dir / base
        suffix = 1
        while candidate.exists():
            candidate = self.keys_dir / f"{base}-{suffix}"
            suffix += 1
        return candidate

    def _archive_current(self) -> Path:
        archive_dir = self._archive_dir_name()
        archive_dir.mkdir(mode=_DIR_MODE)
        os.chmod(archive_dir, _DIR_MODE)
        for path in (self.private_key_path, self.public_key_path):
            if path.exists():
                os.replace(path, archive_dir / path.name)
        return archive_dir

    def _generate(self) -> None:
        private_key = ec.generate_private_key(ec.SECP256R1())
        private_der = private_key.private_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        public_der = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        atomic_write(
            self.private_key_path,
            encode_pem(PRIVATE_KEY_LABEL, private_der).encode("ascii"),
            mode=_FILE_MODE,
        )
        atomic_write(
            self.public_key_path,
            encode_pem(PUBLIC_KEY_LABEL, public_der).encode("ascii"),
            mode=_FILE_MODE,
        )
        logger.info(
            "Generated ledger keypair",
            extra={"keys_dir": str(self.keys_dir), "fingerprint": _fingerprint(public_der)},
        )

    def _read_pem(self, path: Path, label: str) -> bytes:
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError as exc:
            raise MissingFileError(path) from exc
        return decode_pem(text, label, path=path)

    def load_private_key(self) -> ec.EllipticCurvePrivateKey:
        """Load the current private key.

        Raises:
            MissingFileError: If ``ledger.pem`` is absent.
            InvalidPemError: If the PEM framing or base64 body is broken.
            KeyParseError: If the DER is not a PKCS#8 P-256 private key.
        """

        der = self._read_pem(self.private_key_path, PRIVATE_KEY_LABEL)
        try:
            key = serialization.load_der_private_key(der, password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise KeyParseError(self.private_key_path, str(exc) or "invalid DER") from exc
        if not isinstance(key, ec.EllipticCurvePrivateKey) or not isinstance(
            key.curve, ec.SECP256R1
        ):
            raise KeyParseError(self.private_key_path, "not a P-256 private key")
        return key

    def load_public_key(self) -> ec.EllipticCurvePublicKey:
        """Load the current public key.

        Raises:
            MissingFileError: If ``ledger.pub`` is absent.
            InvalidPemError: If the PEM framing or base64 body is broken.
            KeyParseError: If the DER is not an SPKI P-256 public key.
        """

        der = self._read_pem(self.public_key_path, PUBLIC_KEY_LABEL)
        try:
            key = serialization.load_der_public_key(der)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise KeyParseError(self.public_key_path, str(exc) or "invalid DER") from exc
        if not isinstance(key, ec.EllipticCurvePublicKey) or not isinstance(
            key.curve, ec.SECP256R1
        ):
            raise KeyParseError(self.public_key_path, "not a P-256 public key")
        return key

    def public_key_fingerprint(self) -> str:
        """Return the SHA-256 hex digest of the current SPKI public key DER."""

        return _fingerprint(self._read_pem(self.public_key_path, PUBLIC_KEY_LABEL))

    def list_archives(self) -> list[Path]:
        """Return archived keypair directories, oldest first."""

        if not self.keys_dir.exists():
            return []
        return sorted(
            (
                path
                for path in self.keys_dir.iterdir()
                if path.is_dir() and path.name.startswith(ARCHIVE_PREFIX)
            ),
            key=_archive_sort_key,
        )


def _fingerprint(public_der: bytes) -> str:
    return hashlib.sha256(public_der).hexdigest()


def _archive_sort_key(path: Path) -> tuple[str, int]:
    # Same-second collisions carry a numeric "-N" suffix after the "Z" stamp.
    stamp, _, suffix = path.name.partition("Z")
    counter = suffix[1:]
    return stamp, int(counter) if counter.isdigit() else 0
