"""Tests for CLI functionality."""

from __future__ import annotations

import hashlib
import json
import os
import sys
from pathlib import Path

import pytest

from ledger_attest.cli import main

SAMPLE_DOCUMENT = (
    b'{"merkle_root":"abc123","algo":"sha256",'
    b'"timestamp":"2024-01-01T00:00:00Z","host":"test"}'
)


@pytest.fixture
def home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    base = tmp_path / "home"
    monkeypatch.setenv("LEDGER_ATTEST_HOME", str(base))
    monkeypatch.setenv("LEDGER_ATTEST_SCRIPT", str(tmp_path / "ledger_merkle.sh"))
    monkeypatch.delenv("LEDGER_ATTEST_ROTATE", raising=False)
    monkeypatch.delenv("LEDGER_ATTEST_LOG_LEVEL", raising=False)
    return base


def _write_document(home: Path, data: bytes = SAMPLE_DOCUMENT) -> Path:
    path = home / "logs" / "ledger_merkle.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


def _last_json(out: str) -> dict[str, object]:
    return json.loads(out.strip().splitlines()[-1])


def test_cli_main_no_args_prints_usage(capsys: pytest.CaptureFixture[str]) -> None:
    assert main([]) == 0
    captured = capsys.readouterr()
    assert "usage:" in captured.out.lower()
    assert "LEDGER_ATTEST_HOME" in captured.out


def test_cli_main_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--help"]) == 0
    captured = capsys.readouterr()
    assert "usage:" in captured.out.lower()
    assert "verify" in captured.out.lower()


def test_cli_unknown_command_is_usage_error() -> None:
    assert main(["launch"]) == 2


def test_sign_then_verify(home: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _write_document(home)

    assert main(["sign"]) == 0
    signed = _last_json(capsys.readouterr().out)
    assert signed["mode"] == "whole-document"

    assert main(["verify"]) == 0
    verified = _last_json(capsys.readouterr().out)
    assert verified["verified"] is True
    assert verified["content_hash"] == signed["content_hash"]


def test_verify_tampered_document_exits_with_trust_code(
    home: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    document = _write_document(home)
    assert main(["sign"]) == 0
    document.write_bytes(SAMPLE_DOCUMENT.replace(b"sha256", b"sha512"))
    capsys.readouterr()

    assert main(["verify"]) == 3
    assert "Signature mismatch" in capsys.readouterr().err


def test_sign_without_document(home: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["sign"]) == 1
    assert "Missing file" in capsys.readouterr().err


def test_hash_mode_round_trip(home: Path, capsys: pytest.CaptureFixture[str]) -> None:
    digest = hashlib.sha256(b"root").hexdigest()

    assert main(["sign", "--hash", digest]) == 0
    signature = _last_json(capsys.readouterr().out)["signature"]
    assert isinstance(signature, str)

    assert main(["verify", "--hash", digest, "--signature", signature]) == 0
    other = hashlib.sha256(b"other").hexdigest()
    assert main(["verify", "--hash", other, "--signature", signature]) == 3


def test_invalid_hash_is_usage_error(home: Path) -> None:
    assert main(["sign", "--hash", "xyz"]) == 2
    assert main(["verify", "--hash", "00" * 32]) == 2
    assert main(["verify", "--hash", "00" * 32, "--signature", "***"]) == 2


def test_rotate_command(home: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["rotate"]) == 0
    first = _last_json(capsys.readouterr().out)
    assert first["generated"] is True and first["rotated"] is False

    assert main(["rotate"]) == 0
    second = _last_json(capsys.readouterr().out)
    assert second["rotated"] is True
    assert Path(str(second["archive_dir"])).parent == home / "keys"


def test_sign_honours_rotate_flag(
    home: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_document(home)
    assert main(["sign"]) == 0
    monkeypatch.setenv("LEDGER_ATTEST_ROTATE", "1")

    assert main(["sign"]) == 0

    archives = [p for p in (home / "keys").iterdir() if p.name.startswith("archive-")]
    assert len(archives) == 1
    assert main(["verify"]) == 0


def test_audit_output(home: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["audit"]) == 0
    assert _last_json(capsys.readouterr().out)["record"] is None

    _write_document(home)
    assert main(["sign"]) == 0
    capsys.readouterr()
    assert main(["audit"]) == 0
    report = _last_json(capsys.readouterr().out)
    assert report["verified"] is True
    assert report["record"] == json.loads(SAMPLE_DOCUMENT)


def test_canonicalize_command(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "note.txt"
    path.write_bytes(b"  hello world  \n\n")

    assert main(["canonicalize", str(path)]) == 0
    descriptor = _last_json(capsys.readouterr().out)
    assert descriptor["content_hash"] == hashlib.sha256(b"hello world\n").hexdigest()
    assert descriptor["canonical_byte_size"] == 12


def test_quiet_suppresses_output(home: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--quiet", "verify"]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "verify error" not in captured.err


def test_home_flag_overrides_environment(
    tmp_path: Path, home: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    other = tmp_path / "other"
    assert main(["--home", str(other), "rotate"]) == 0
    assert (other / "keys" / "ledger.pem").exists()
    assert not (home / "keys").exists()


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell script")
def test_ledger_command_reports_script_failure(
    home: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    script = tmp_path / "ledger_merkle.sh"
    script.write_text("#!/bin/sh\necho 'tree walk failed' >&2\nexit 2\n", encoding="utf-8")
    os.chmod(script, 0o755)

    assert main(["ledger"]) == 1
    assert "tree walk failed" in capsys.readouterr().err


def test_signature_without_hash_is_usage_error(
    home: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_document(home)
    assert main(["sign"]) == 0

    assert main(["verify", "--signature", "AAAA"]) == 2
    assert "must be given together" in capsys.readouterr().err


def test_canonicalize_directory_is_environment_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["canonicalize", str(tmp_path)]) == 1
    assert "canonicalize error" in capsys.readouterr().err
