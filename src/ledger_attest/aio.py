"""Non-blocking wrappers for front ends that must keep an event loop responsive."""

from __future__ import annotations

import asyncio

from ledger_attest.audit import AuditReport, audit
from ledger_attest.config import LedgerConfig
from ledger_attest.tools.modes import PayloadMode
from ledger_attest.tools.signer import SignatureReceipt, Signer
from ledger_attest.tools.verify import VerificationReport, Verifier

__all__ = ["audit_async", "sign_async", "verify_async"]


async def sign_async(signer: Signer, mode: PayloadMode) -> SignatureReceipt:
    """Run :meth:`Signer.sign` in a worker thread."""
    return await asyncio.to_thread(signer.sign, mode)


async def verify_async(verifier: Verifier, mode: PayloadMode) -> VerificationReport:
    """Run :meth:`Verifier.verify` in a worker thread."""
    return await asyncio.to_thread(verifier.verify, mode)


async def audit_async(config: LedgerConfig) -> AuditReport:
    return await asyncio.to_thread(audit, config)
