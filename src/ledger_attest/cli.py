"""Command-line front end for ledger attestation."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Final

from ledger_attest.audit import audit
from ledger_attest.config import LedgerConfig, load_config
from ledger_attest.errors import ErrorCategory, LedgerAttestError, MissingFileError
from ledger_attest.ledger_runner import run_ledger_script
from ledger_attest.logging_pipeline import configure_structured_logging, shutdown_listeners
from ledger_attest.schemas import load_record
from ledger_attest.settings import LedgerAttestSettings, get_settings
from ledger_attest.tools.canonicalize import canonicalize
from ledger_attest.tools.keystore import KeyStore
from ledger_attest.tools.modes import ExplicitHash, PayloadMode, WholeDocument
from ledger_attest.tools.signer import Signer
from ledger_attest.tools.verify import Verifier

EXIT_CODES: Final[dict[ErrorCategory, int]] = {
    "environment": 1,
    "usage": 2,
    "trust": 3,
}

_EPILOG = """\
environment:
  LEDGER_ATTEST_HOME            base directory (default: ~/Automation)
  LEDGER_ATTEST_SCRIPT          ledger script path
  LEDGER_ATTEST_ROTATE          "1" rotates the keypair before signing
  LEDGER_ATTEST_SCRIPT_TIMEOUT  ledger script timeout in seconds
  LEDGER_ATTEST_LOG_LEVEL       log verbosity (default: WARNING)
"""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ledger-attest",
        description="Sign, verify and audit the ledger Merkle root record.",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--home", help="Override the ledger base directory.")
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Quiet mode: suppress output, just return exit code.",
    )
    commands = parser.add_subparsers(dest="command", metavar="<command>")

    commands.add_parser("ledger", help="Run the ledger script to produce ledger_merkle.json.")

    sign = commands.add_parser("sign", help="Sign ledger_merkle.json (or --hash) with keys/ledger.pem.")
    sign.add_argument("--hash", dest="digest", help="Sign this 64-character hex digest instead.")

    verify = commands.add_parser("verify", help="Verify a signature against keys/ledger.pub.")
    verify.add_argument("--hash", dest="digest", help="Verify this 64-character hex digest.")
    verify.add_argument("--signature", help="Base64 signature for --hash verification.")

    commands.add_parser("audit", help="Show the ledger record and its signature status.")
    commands.add_parser("rotate", help="Archive the current keypair and generate a new one.")

    canon = commands.add_parser("canonicalize", help="Describe a file's canonical form.")
    canon.add_argument("path", help="File to canonicalize.")

    commands.add_parser("help", help="Show this help.")
    return parser


def _emit(payload: dict[str, object], quiet: bool) -> None:
    if not quiet:
        print(json.dumps(payload, separators=(",", ":"), default=str))


def _cmd_ledger(config: LedgerConfig) -> dict[str, object]:
    result = run_ledger_script(config)
    payload: dict[str, object] = {"status": result.status, "stdout": result.stdout}
    try:
        payload["record"] = load_record(config.ledger_json).model_dump()
    except MissingFileError:
        payload["record"] = None
    return payload


def _cmd_sign(
    config: LedgerConfig, settings: LedgerAttestSettings, digest: str | None
) -> dict[str, object]:
    keystore = KeyStore(config)
    if settings.rotate:
        keystore.ensure_keypair(rotate=True)
    mode: PayloadMode = ExplicitHash(digest) if digest is not None else WholeDocument()
    receipt = Signer(config, keystore).sign(mode)
    return receipt.to_dict()


def _cmd_verify(
    config: LedgerConfig, digest: str | None, signature: str | None
) -> dict[str, object]:
    mode: PayloadMode = (
        ExplicitHash(digest, signature) if digest is not None else WholeDocument()
    )
    return Verifier(config).verify(mode).to_dict()


def _cmd_rotate(config: LedgerConfig) -> dict[str, object]:
    event = KeyStore(config).ensure_keypair(rotate=True)
    return {
        "generated": event.generated,
        "rotated": event.rotated,
        "archive_dir": str(event.archive_dir) if event.archive_dir else None,
    }


def _dispatch(
    args: argparse.Namespace, config: LedgerConfig, settings: LedgerAttestSettings
) -> dict[str, object]:
    if args.command == "ledger":
        return _cmd_ledger(config)
    if args.command == "sign":
        return _cmd_sign(config, settings, args.digest)
    if args.command == "verify":
        return _cmd_verify(config, args.digest, args.signature)
    if args.command == "audit":
        report = audit(config)
        if report.record is None:
            return {"record": None, "message": f"No ledger record at {config.ledger_json}. Run 'ledger' first."}
        return report.to_dict()
    if args.command == "rotate":
        return _cmd_rotate(config)
    if args.command == "canonicalize":
        return canonicalize(Path(args.path)).to_dict()
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    """Run the command line and return its exit code."""
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:  # pragma: no cover - controlled via tests
        exit_code = int(exc.code) if isinstance(exc.code, int) else EXIT_CODES["usage"]
        return 0 if exit_code == 0 else EXIT_CODES["usage"]

    if args.command in (None, "help"):
        if not args.quiet:
            parser.print_help()
        return 0

    if args.command == "verify" and (args.digest is None) != (args.signature is None):
        if not args.quiet:
            print(
                "verify error: --hash and --signature must be given together",
                file=sys.stderr,
            )
        return EXIT_CODES["usage"]

    settings = get_settings()
    config = load_config(settings)
    if args.home:
        config = LedgerConfig.from_base_dir(
            args.home,
            ledger_script=config.ledger_script,
            script_timeout=config.script_timeout,
        )

    listener = configure_structured_logging(
        logging.getLogger("ledger_attest"), level=settings.log_level
    )
    try:
        payload = _dispatch(args, config, settings)
    except LedgerAttestError as exc:
        if not args.quiet:
            print(f"{args.command} error: {exc}", file=sys.stderr)
        return EXIT_CODES[exc.category]
    except OSError as exc:
        if not args.quiet:
            print(f"{args.command} error: {exc}", file=sys.stderr)
        return EXIT_CODES["environment"]
    finally:
        shutdown_listeners([listener])

    _emit(payload, args.quiet)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
