"""Signing, verification, key management and canonicalization helpers.

``canonicalize`` describes a file's canonical bytes, ``KeyStore`` owns the
P-256 keypair, and ``Signer`` / ``Verifier`` produce and check detached
signatures in either whole-document or explicit-hash mode.
"""

from .canonicalize import CanonicalDescriptor, canonicalize
from .keystore import KeyStore, KeyStoreEvent
from .modes import ExplicitHash, PayloadMode, WholeDocument
from .signer import SignatureReceipt, Signer
from .verify import VerificationReport, Verifier

__all__ = [
    "CanonicalDescriptor",
    "ExplicitHash",
    "KeyStore",
    "KeyStoreEvent",
    "PayloadMode",
    "SignatureReceipt",
    "Signer",
    "VerificationReport",
    "Verifier",
    "WholeDocument",
    "canonicalize",
]
