"""Ledger Attest - detached ECDSA signatures for a Merkle root ledger record."""

from __future__ import annotations

from importlib import import_module
from typing import Any, TYPE_CHECKING

__all__ = [
    "CanonicalDescriptor",
    "ExplicitHash",
    "KeyStore",
    "LedgerConfig",
    "LedgerRecord",
    "Signer",
    "Verifier",
    "WholeDocument",
    "canonicalize",
    "load_config",
]

if TYPE_CHECKING:
    from .config import LedgerConfig, load_config
    from .schemas import LedgerRecord
    from .tools.canonicalize import CanonicalDescriptor, canonicalize
    from .tools.keystore import KeyStore
    from .tools.modes import ExplicitHash, WholeDocument
    from .tools.signer import Signer
    from .tools.verify import Verifier


def __getattr__(name: str) -> Any:
    """Lazily import heavy modules to avoid eager dependency loading."""

    module_map = {
        "CanonicalDescriptor": "tools.canonicalize",
        "ExplicitHash": "tools.modes",
        "KeyStore": "tools.keystore",
        "LedgerConfig": "config",
        "LedgerRecord": "schemas",
        "Signer": "tools.signer",
        "Verifier": "tools.verify",
        "WholeDocument": "tools.modes",
        "canonicalize": "tools.canonicalize",
        "load_config": "config",
    }

    if name not in module_map:
        raise AttributeError(name)

    module = import_module(f".{module_map[name]}", __name__)
    return getattr(module, name)
