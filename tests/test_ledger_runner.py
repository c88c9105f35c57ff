"""Tests for invoking the external ledger-generation script."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

from ledger_attest.config import LedgerConfig
from ledger_attest.errors import ExecutionFailedError, ScriptNotFoundError
from ledger_attest.ledger_runner import run_ledger_script

pytestmark = pytest.mark.skipif(
    sys.platform == "win32", reason="ledger scripts are POSIX shell executables"
)


def _script(path: Path, body: str) -> Path:
    path.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    os.chmod(path, 0o755)
    return path


def test_successful_script_writes_record(ledger_config: LedgerConfig) -> None:
    _script(
        ledger_config.ledger_script,
        f'mkdir -p "{ledger_config.logs_dir}"\n'
        f"printf '%s' '{{\"merkle_root\":\"ff\",\"algo\":\"sha256\",\"timestamp\":\"t\",\"host\":\"h\"}}'"
        f' > "{ledger_config.ledger_json}"\n'
        "echo 'root computed'\n",
    )

    result = run_ledger_script(ledger_config)

    assert result.status == 0
    assert result.stdout == "root computed"
    assert ledger_config.ledger_json.exists()


def test_non_zero_exit_surfaces_stderr(ledger_config: LedgerConfig) -> None:
    _script(ledger_config.ledger_script, "echo 'no sources found' >&2\nexit 4\n")

    with pytest.raises(ExecutionFailedError) as excinfo:
        run_ledger_script(ledger_config)

    assert excinfo.value.status == 4
    assert excinfo.value.stderr == "no sources found\n"


def test_missing_script(ledger_config: LedgerConfig) -> None:
    with pytest.raises(ScriptNotFoundError) as excinfo:
        run_ledger_script(ledger_config)
    assert excinfo.value.path == ledger_config.ledger_script


def test_non_executable_script(ledger_config: LedgerConfig) -> None:
    ledger_config.ledger_script.write_text("#!/bin/sh\n", encoding="utf-8")
    os.chmod(ledger_config.ledger_script, 0o644)

    with pytest.raises(ScriptNotFoundError):
        run_ledger_script(ledger_config)


def test_timeout_is_execution_failure(tmp_path: Path) -> None:
    config = LedgerConfig.from_base_dir(
        tmp_path, ledger_script=tmp_path / "slow.sh", script_timeout=0.2
    )
    _script(config.ledger_script, "exec sleep 5\n")

    with pytest.raises(ExecutionFailedError, match="timed out"):
        run_ledger_script(config)


def test_undecodable_stderr_still_surfaces_failure(ledger_config: LedgerConfig) -> None:
    _script(ledger_config.ledger_script, "printf '\\377\\376 boom' >&2\nexit 3\n")

    with pytest.raises(ExecutionFailedError) as excinfo:
        run_ledger_script(ledger_config)

    assert excinfo.value.status == 3
    assert excinfo.value.stderr.endswith(" boom")
    assert "�" in excinfo.value.stderr


def test_undecodable_stdout_on_success(ledger_config: LedgerConfig) -> None:
    _script(ledger_config.ledger_script, "printf '\\377 ok'\nexit 0\n")

    result = run_ledger_script(ledger_config)

    assert result.status == 0
    assert result.stdout == "� ok"
