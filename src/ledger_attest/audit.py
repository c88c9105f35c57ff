"""Combined audit view: ledger record, canonical descriptor and signature status."""

from __future__ import annotations

from dataclasses import dataclass

from ledger_attest.config import LedgerConfig
from ledger_attest.errors import LedgerAttestError, MissingFileError
from ledger_attest.schemas import LedgerRecord, load_record
from ledger_attest.tools.canonicalize import CanonicalDescriptor, canonicalize
from ledger_attest.tools.keystore import KeyStore
from ledger_attest.tools.modes import WholeDocument
from ledger_attest.tools.verify import Verifier

__all__ = ["AuditReport", "audit"]


@dataclass(frozen=True, slots=True)
class AuditReport:
    """Snapshot of the ledger home for display.

    ``record`` is ``None`` when no ledger JSON has been generated yet; in that
    case nothing else is evaluated.
    """

    record: LedgerRecord | None
    descriptor: CanonicalDescriptor | None = None
    verified: bool = False
    error: LedgerAttestError | None = None
    public_key_fingerprint: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "record": self.record.model_dump() if self.record else None,
            "canonical": self.descriptor.to_dict() if self.descriptor else None,
            "verified": self.verified,
            "error": str(self.error) if self.error else None,
            "error_category": self.error.category if self.error else None,
            "public_key_fingerprint": self.public_key_fingerprint,
        }


def audit(config: LedgerConfig, *, keystore: KeyStore | None = None) -> AuditReport:
    """Load the ledger record and verify its detached signature.

    Verification failures are captured on the report rather than raised so
    the record can still be displayed.

    Raises:
        RecordDecodeError: If the ledger JSON exists but cannot be decoded.
    """

    try:
        record = load_record(config.ledger_json)
    except MissingFileError:
        return AuditReport(record=None)

    verifier = Verifier(config, keystore)
    try:
        report = verifier.verify(WholeDocument())
    except LedgerAttestError as exc:
        return AuditReport(
            record=record, descriptor=canonicalize(config.ledger_json), error=exc
        )
    return AuditReport(
        record=record,
        descriptor=report.descriptor,
        verified=True,
        public_key_fingerprint=report.public_key_fingerprint,
    )
