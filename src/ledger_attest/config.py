"""Explicit path configuration shared by every ledger component."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final

from ledger_attest.settings import LedgerAttestSettings, get_settings

__all__ = ["LedgerConfig", "load_config"]

LEDGER_JSON_NAME: Final[str] = "ledger_merkle.json"
SIGNATURE_NAME: Final[str] = "ledger_merkle.sig"
PRIVATE_KEY_NAME: Final[str] = "ledger.pem"
PUBLIC_KEY_NAME: Final[str] = "ledger.pub"

_DEFAULT_HOME: Final[Path] = Path("~/Automation")
_DEFAULT_SCRIPT: Final[Path] = Path("~/projects/ledger-attest/bin/ledger_merkle.sh")


@dataclass(frozen=True, slots=True)
class LedgerConfig:
    """Resolved filesystem layout for a ledger home directory.

    Attributes:
        base_dir: Root directory containing ``logs/`` and ``keys/``.
        ledger_script: External executable that writes the ledger JSON.
        script_timeout: Optional timeout in seconds for ``ledger_script``.
    """

    base_dir: Path
    ledger_script: Path
    script_timeout: float | None = None

    @classmethod
    def from_base_dir(
        cls,
        base_dir: str | Path,
        *,
        ledger_script: str | Path | None = None,
        script_timeout: float | None = None,
    ) -> LedgerConfig:
        """Build a configuration rooted at ``base_dir``."""

        script = Path(ledger_script) if ledger_script else _DEFAULT_SCRIPT
        return cls(
            base_dir=Path(base_dir).expanduser(),
            ledger_script=script.expanduser(),
            script_timeout=script_timeout,
        )

    @property
    def logs_dir(self) -> Path:
        return self.base_dir / "logs"

    @property
    def keys_dir(self) -> Path:
        return self.base_dir / "keys"

    @property
    def ledger_json(self) -> Path:
        return self.logs_dir / LEDGER_JSON_NAME

    @property
    def signature_path(self) -> Path:
        return self.logs_dir / SIGNATURE_NAME

    @property
    def private_key_path(self) -> Path:
        return self.keys_dir / PRIVATE_KEY_NAME

    @property
    def public_key_path(self) -> Path:
        return self.keys_dir / PUBLIC_KEY_NAME


def load_config(settings: LedgerAttestSettings | None = None) -> LedgerConfig:
    """Build a :class:`LedgerConfig` from environment-derived settings.

    Args:
        settings: Optional pre-instantiated settings. When omitted
            :func:`ledger_attest.settings.get_settings` is used.

    Returns:
        Configuration with environment overrides applied.
    """

    env_settings = settings or get_settings()
    home = Path(env_settings.home) if env_settings.home else _DEFAULT_HOME
    return LedgerConfig.from_base_dir(
        home,
        ledger_script=env_settings.ledger_script,
        script_timeout=env_settings.script_timeout,
    )
