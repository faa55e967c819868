"""Pre-flight check for the bridge's environment file.

``check`` confirms every Cafe24 and DynamoDB key the token store needs is
present and parses; ``record`` additionally stores a SHA256 baseline of the
file and ``verify`` compares against it, so an edited or truncated ``.env``
is caught before a production restart fails fast::

    python -m scripts.check_env record --env-file /srv/cafe24-bridge/.env \
        --hash-file /srv/cafe24-bridge/.env.sha256
    python -m scripts.check_env verify --env-file /srv/cafe24-bridge/.env \
        --hash-file /srv/cafe24-bridge/.env.sha256
"""

from __future__ import annotations

import argparse
import hashlib
import sys
from pathlib import Path

from pydantic import ValidationError

from cafe24_bridge.core.config import AppSettings, _load_env_file
from cafe24_bridge.core.errors import ConfigurationError

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_RUNTIME_ERROR = 5


def _checksum(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _load_settings(env_file: Path) -> AppSettings:
    """Load settings from ``env_file`` and insist on the required keys."""
    if not env_file.exists():
        raise FileNotFoundError(f"Environment file {env_file} does not exist.")
    _load_env_file(str(env_file))
    settings = AppSettings(_env_file=str(env_file))
    missing = settings.missing_required()
    if missing:
        raise ConfigurationError(f"Missing required keys: {', '.join(missing)}")
    return settings


def _record(env_file: Path, hash_file: Path) -> int:
    checksum = _checksum(env_file)
    hash_file.write_text(f"{checksum}\n", encoding="utf-8")
    print(f"Recorded {checksum} to {hash_file}")
    return EXIT_OK


def _verify(env_file: Path, hash_file: Path) -> int:
    if not hash_file.exists():
        print(
            f"No baseline at {hash_file}; run 'record' first.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    expected = hash_file.read_text(encoding="utf-8").strip()
    actual = _checksum(env_file)
    if expected != actual:
        print(
            f"Checksum mismatch for {env_file}: expected {expected}, got {actual}.",
            file=sys.stderr,
        )
        return EXIT_CHECKSUM_ERROR

    print("Environment checksum OK.")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate Cafe24 bridge settings and detect .env drift."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    for command, needs_hash in (("check", False), ("record", True), ("verify", True)):
        subparser = subparsers.add_parser(command)
        subparser.add_argument("--env-file", default=".env", type=Path)
        if needs_hash:
            subparser.add_argument("--hash-file", required=True, type=Path)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env_file: Path = args.env_file

    try:
        _load_settings(env_file)
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except ValidationError as exc:
        print(f"Malformed settings:\n{exc}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR
    except ConfigurationError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    if args.command == "record":
        return _record(env_file, args.hash_file)
    if args.command == "verify":
        return _verify(env_file, args.hash_file)
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
