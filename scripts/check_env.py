"""Pre-flight checks for a sleepbot deployment.

``check`` validates the settings loaded from an env file and confirms the
token file written by ``sleepbot setup`` can be decoded. ``record`` and
``verify`` additionally pin the env file with a SHA256 checksum so edits made
behind the daemon's back are noticed before the next restart.

Example usages::

    python -m scripts.check_env check --env-file /opt/sleepbot/.env

    python -m scripts.check_env record --env-file /opt/sleepbot/.env \
        --hash-file /opt/sleepbot/.env.sha256

    # From cron/systemd, before restarting the daemon.
    python -m scripts.check_env verify --env-file /opt/sleepbot/.env \
        --hash-file /opt/sleepbot/.env.sha256
"""

from __future__ import annotations

import argparse
import hashlib
import sys
from pathlib import Path

from pydantic import ValidationError

from sleepbot.core.config import AppSettings, _load_env_file
from sleepbot.services.token_cipher import TokenCipherService
from sleepbot.services.token_store import (
    TokenNotFoundError,
    TokenStore,
    TokenStoreError,
)

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_TOKEN_ERROR = 4
EXIT_RUNTIME_ERROR = 5


def _sha256(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


def _load_settings(env_file: Path) -> AppSettings:
    _load_env_file(str(env_file))
    return AppSettings(_env_file=env_file)  # type: ignore[call-arg]


def _check_tokens(settings: AppSettings) -> int:
    secret = settings.security.token_encryption_secret
    cipher = TokenCipherService(secret=secret) if secret else None
    store = TokenStore(settings.token_file, cipher=cipher)
    try:
        record = store.load()
    except TokenNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_TOKEN_ERROR
    except TokenStoreError as exc:
        print(f"Token file is unreadable: {exc}", file=sys.stderr)
        return EXIT_TOKEN_ERROR
    print(f"Token file OK (user {record.user_id}, expires {record.expires_at:%Y-%m-%d %H:%M} UTC).")
    return EXIT_OK


def _record(env_file: Path, hash_file: Path) -> int:
    checksum = _sha256(env_file)
    hash_file.write_text(f"{checksum}\n", encoding="utf-8")
    print(f"Recorded checksum to {hash_file} ({checksum})")
    return EXIT_OK


def _verify(env_file: Path, hash_file: Path) -> int:
    if not hash_file.exists():
        print(
            f"Expected checksum file {hash_file} is missing. "
            "Run the 'record' command first.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    expected = hash_file.read_text(encoding="utf-8").strip()
    actual = _sha256(env_file)
    if expected != actual:
        print(
            "Environment checksum mismatch!\n"
            f"  expected: {expected}\n"
            f"  actual:   {actual}",
            file=sys.stderr,
        )
        return EXIT_CHECKSUM_ERROR
    print("Environment checksum OK.")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate sleepbot settings, token file and .env drift."
    )
    parser.add_argument(
        "command",
        choices=("check", "record", "verify"),
    )
    parser.add_argument(
        "--env-file",
        default=Path(".env"),
        type=Path,
        help="Path to the environment file (default: .env).",
    )
    parser.add_argument(
        "--hash-file",
        type=Path,
        help="Checksum baseline; required for record and verify.",
    )
    parser.add_argument(
        "--skip-tokens",
        action="store_true",
        help="Do not require a token file (useful before running setup).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    env_file: Path = args.env_file

    if args.command in ("record", "verify") and args.hash_file is None:
        parser.error(f"--hash-file is required for {args.command}")

    if not env_file.exists():
        print(f"Environment file {env_file} does not exist.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        settings = _load_settings(env_file)
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    if not settings.slack.is_configured:
        print("Warning: SLACK_BOT_TOKEN / SLACK_CHANNEL_ID not set; `run` will refuse to start.")

    if not args.skip_tokens:
        status = _check_tokens(settings)
        if status != EXIT_OK:
            return status

    if args.command == "record":
        return _record(env_file, args.hash_file)
    if args.command == "verify":
        return _verify(env_file, args.hash_file)
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
