"""Invoke the external ledger-generation script.

The script is an opaque executable: exit status 0 means it wrote
``logs/ledger_merkle.json``; anything else is a hard failure whose stderr is
surfaced verbatim.
"""

from __future__ import annotations

import logging
import os
import subprocess  # nosec B404: executes the operator-configured ledger script
from dataclasses import dataclass

from ledger_attest.config import LedgerConfig
from ledger_attest.errors import ExecutionFailedError, ScriptNotFoundError

__all__ = ["ScriptResult", "run_ledger_script"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScriptResult:
    """Captured outcome of a ledger script run."""

    status: int
    stdout: str
    stderr: str


def run_ledger_script(config: LedgerConfig) -> ScriptResult:
    """Run ``config.ledger_script`` and return its captured output.

    Args:
        config: Configuration naming the script and optional timeout.

    Returns:
        The :class:`ScriptResult` of a successful (status 0) run.

    Raises:
        ScriptNotFoundError: If the script is missing or not executable.
        ExecutionFailedError: On a non-zero exit or a timeout.
    """

    script = config.ledger_script
    if not script.is_file() or not os.access(script, os.X_OK):
        raise ScriptNotFoundError(script)

    logger.info("Running ledger script", extra={"script": str(script)})
    try:
        completed = subprocess.run(  # nosec B603: fixed argv, no shell
            [str(script)],
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=config.script_timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise ExecutionFailedError(
            -1, f"timed out after {config.script_timeout} seconds"
        ) from exc
    except OSError as exc:
        raise ExecutionFailedError(-1, str(exc)) from exc

    result = ScriptResult(
        status=completed.returncode,
        stdout=completed.stdout.strip(),
        stderr=completed.stderr.strip(),
    )
    if result.status != 0:
        logger.warning(
            "Ledger script failed",
            extra={"status": result.status},
        )
        raise ExecutionFailedError(result.status, completed.stderr)
    return result
