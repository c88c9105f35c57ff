"""Environment-backed settings primitives for :mod:`ledger_attest`."""

from __future__ import annotations

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["LedgerAttestSettings", "get_settings"]


class LedgerAttestSettings(BaseSettings):
    """Expose environment-derived configuration knobs for ledger attestation.

    All environment access goes through this class. Components never read
    ``os.environ`` themselves; they receive a :class:`~ledger_attest.config.LedgerConfig`
    built from these settings instead.

    Attributes:
        home: Base directory holding ``logs/`` and ``keys/``. When unset the
            per-user default ``~/Automation`` is used.
        ledger_script: Path to the external ledger-generation script.
        rotate: Request a key rotation on the next signing run.
        script_timeout: Optional timeout in seconds for the ledger script.
        log_level: Logging verbosity for the command-line front end.
    """

    home: str | None = Field(default=None, alias="LEDGER_ATTEST_HOME")
    ledger_script: str | None = Field(default=None, alias="LEDGER_ATTEST_SCRIPT")
    rotate: bool = Field(default=False, alias="LEDGER_ATTEST_ROTATE")
    script_timeout: float | None = Field(
        default=None, alias="LEDGER_ATTEST_SCRIPT_TIMEOUT"
    )
    log_level: str = Field(default="WARNING", alias="LEDGER_ATTEST_LOG_LEVEL")

    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    @field_validator("home", "ledger_script", mode="before")
    @classmethod
    def _blank_as_unset(cls, value: object) -> str | None:
        """Treat empty environment values as unset."""

        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("rotate", mode="before")
    @classmethod
    def _parse_flag(cls, value: object) -> bool:
        """Parse the rotation flag, accepting ``1``/``true``/``yes``.

        Args:
            value: Raw environment value.

        Returns:
            ``True`` only for recognised truthy spellings.
        """

        if isinstance(value, bool):
            return value
        if value is None:
            return False
        return str(value).strip().lower() in {"1", "true", "yes", "on"}

    @field_validator("script_timeout", mode="before")
    @classmethod
    def _parse_optional_float(cls, value: object) -> float | None:
        """Parse the optional timeout while tolerating malformed input.

        Args:
            value: Raw environment value.

        Returns:
            Parsed positive float when conversion succeeds, otherwise ``None``.
        """

        if value is None:
            return None
        if isinstance(value, (int, float)):
            parsed = float(value)
        elif isinstance(value, str):
            try:
                parsed = float(value.strip())
            except ValueError:
                return None
        else:
            return None
        return parsed if parsed > 0 else None

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_level(cls, value: object) -> str:
        """Fall back to ``WARNING`` for unknown level names."""

        level = str(value or "").strip().upper()
        return level if level in logging.getLevelNamesMapping() else "WARNING"


def get_settings() -> LedgerAttestSettings:
    """Return a :class:`LedgerAttestSettings` instance.

    Returns:
        Settings parsed from environment variables.
    """

    return LedgerAttestSettings()
