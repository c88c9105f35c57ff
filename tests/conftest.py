"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
import inspect
import os
import sys
from pathlib import Path
from typing import Any

import pytest

# Ensure src/ is on sys.path for tests so the src layout is used during test runs
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from ledger_attest.config import LedgerConfig  # noqa: E402

SAMPLE_DOCUMENT = (
    b'{"merkle_root":"abc123","algo":"sha256",'
    b'"timestamp":"2024-01-01T00:00:00Z","host":"test"}'
)


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "asyncio: mark test as requiring an event loop")


def pytest_pyfunc_call(pyfuncitem: Any) -> bool | None:
    """Execute async test functions without requiring pytest-asyncio."""

    if inspect.iscoroutinefunction(pyfuncitem.obj):
        call_kwargs = {
            name: pyfuncitem.funcargs[name]
            for name in pyfuncitem._fixtureinfo.argnames  # type: ignore[attr-defined]
        }

        event_loop = asyncio.new_event_loop()
        try:
            event_loop.run_until_complete(pyfuncitem.obj(**call_kwargs))
        finally:
            event_loop.close()
        return True
    return None


@pytest.fixture
def ledger_config(tmp_path: Path) -> LedgerConfig:
    """Configuration rooted in a private temporary ledger home."""

    return LedgerConfig.from_base_dir(
        tmp_path / "home", ledger_script=tmp_path / "ledger_merkle.sh"
    )


@pytest.fixture
def ledger_document(ledger_config: LedgerConfig) -> Path:
    """Write the sample Merkle root record and return its path."""

    path = ledger_config.ledger_json
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(SAMPLE_DOCUMENT)
    return path
