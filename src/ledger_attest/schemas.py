"""Pydantic model for the signed ledger root document."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ledger_attest.errors import MissingFileError, RecordDecodeError

__all__ = ["LedgerRecord", "load_record"]


class LedgerRecord(BaseModel):
    """Immutable Merkle root record written by the ledger-generation script."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    merkle_root: str = Field(
        ...,
        min_length=1,
        description="Merkle root digest (hex or an opaque digest string).",
    )
    algo: str = Field(..., min_length=1, description="Hash algorithm used for the tree.")
    timestamp: str = Field(
        ..., description="ISO-8601 time at which the root was computed."
    )
    host: str = Field(..., description="Host that produced the record.")


def load_record(path: str | Path) -> LedgerRecord:
    """Load and validate the ledger record at ``path``.

    Raises:
        MissingFileError: If the file does not exist.
        RecordDecodeError: If the file is not valid JSON or misses fields.
    """

    source = Path(path)
    try:
        text = source.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise MissingFileError(source) from exc
    except UnicodeDecodeError as exc:
        raise RecordDecodeError(source, "not UTF-8 text") from exc

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise RecordDecodeError(source, exc.msg) from exc
    try:
        return LedgerRecord.model_validate(data)
    except ValidationError as exc:
        fields = ", ".join(
            ".".join(str(part) for part in error["loc"]) or "<root>"
            for error in exc.errors()
        )
        raise RecordDecodeError(source, f"invalid fields: {fields}") from exc
