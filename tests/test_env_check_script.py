"""Tests for the deployment pre-flight script."""

from __future__ import annotations

from pathlib import Path

import pytest

from scripts import check_env
from sleepbot.models.oauth import TokenRecord
from sleepbot.services.token_store import TokenStore

MANAGED_ENV_KEYS = [
    "FITBIT_CLIENT_ID",
    "FITBIT_CLIENT_SECRET",
    "FITBIT_CALLBACK_URL",
    "SLACK_BOT_TOKEN",
    "SLACK_CHANNEL_ID",
    "SLEEPBOT_TOKEN_FILE",
    "TOKEN_ENCRYPTION_SECRET",
]


def _write_env(env_path: Path, **values: str) -> None:
    contents = "\n".join(f"{key}={value}" for key, value in values.items())
    env_path.write_text(contents + "\n", encoding="utf-8")


def _clear_managed_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # setenv first so values loaded from the env file are undone at teardown.
    for key in MANAGED_ENV_KEYS:
        monkeypatch.setenv(key, "placeholder")
        monkeypatch.delenv(key)


def _valid_env(tmp_path: Path, **overrides: str) -> dict[str, str]:
    values = {
        "FITBIT_CLIENT_ID": "23ABCD",
        "FITBIT_CLIENT_SECRET": "secret",
        "FITBIT_CALLBACK_URL": "https://example.com/callback",
        "SLACK_BOT_TOKEN": "xoxb-1",
        "SLACK_CHANNEL_ID": "C0TEST",
        "SLEEPBOT_TOKEN_FILE": str(tmp_path / "tokens.json"),
    }
    values.update(overrides)
    return values


@pytest.mark.parametrize("command", ["record", "verify", "check"])
def test_main_requires_existing_env_file(tmp_path: Path, command: str) -> None:
    env_file = tmp_path / ".missing-env"
    hash_file = tmp_path / ".env.sha256"

    argv = [command, "--env-file", str(env_file)]
    if command != "check":
        argv.extend(["--hash-file", str(hash_file)])

    exit_code = check_env.main(argv)
    assert exit_code == check_env.EXIT_RUNTIME_ERROR


def test_record_requires_hash_file(tmp_path: Path) -> None:
    with pytest.raises(SystemExit):
        check_env.main(["record", "--env-file", str(tmp_path / ".env")])


def test_record_and_verify_detects_mismatched_checksum(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    hash_file = tmp_path / ".env.sha256"
    argv_tail = ["--env-file", str(env_file), "--hash-file", str(hash_file), "--skip-tokens"]

    _clear_managed_env(monkeypatch)
    _write_env(env_file, **_valid_env(tmp_path))

    assert check_env.main(["record", *argv_tail]) == check_env.EXIT_OK
    baseline = hash_file.read_text(encoding="utf-8").strip()
    assert baseline

    _clear_managed_env(monkeypatch)
    assert check_env.main(["verify", *argv_tail]) == check_env.EXIT_OK

    _write_env(env_file, **_valid_env(tmp_path, FITBIT_CLIENT_SECRET="different"))

    _clear_managed_env(monkeypatch)
    assert check_env.main(["verify", *argv_tail]) == check_env.EXIT_CHECKSUM_ERROR


def test_verify_without_baseline_is_a_runtime_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    _clear_managed_env(monkeypatch)
    _write_env(env_file, **_valid_env(tmp_path))

    exit_code = check_env.main(
        [
            "verify",
            "--env-file",
            str(env_file),
            "--hash-file",
            str(tmp_path / "absent.sha256"),
            "--skip-tokens",
        ]
    )
    assert exit_code == check_env.EXIT_RUNTIME_ERROR


def test_validation_failure_for_missing_required_values(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    values = _valid_env(tmp_path)
    del values["FITBIT_CLIENT_SECRET"]

    _clear_managed_env(monkeypatch)
    _write_env(env_file, **values)

    exit_code = check_env.main(["check", "--env-file", str(env_file), "--skip-tokens"])
    assert exit_code == check_env.EXIT_VALIDATION_ERROR


def test_check_reports_missing_token_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    _clear_managed_env(monkeypatch)
    _write_env(env_file, **_valid_env(tmp_path))

    exit_code = check_env.main(["check", "--env-file", str(env_file)])
    assert exit_code == check_env.EXIT_TOKEN_ERROR


def test_check_accepts_saved_token_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    env_file = tmp_path / ".env"
    TokenStore(tmp_path / "tokens.json").save(
        TokenRecord(access_token="a", refresh_token="r", expires_in=28800, user_id="ABC123")
    )
    _clear_managed_env(monkeypatch)
    _write_env(env_file, **_valid_env(tmp_path))

    exit_code = check_env.main(["check", "--env-file", str(env_file)])

    assert exit_code == check_env.EXIT_OK
    assert "ABC123" in capsys.readouterr().out


def test_check_rejects_corrupt_token_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    (tmp_path / "tokens.json").write_text("not json", encoding="utf-8")
    _clear_managed_env(monkeypatch)
    _write_env(env_file, **_valid_env(tmp_path))

    exit_code = check_env.main(["check", "--env-file", str(env_file)])
    assert exit_code == check_env.EXIT_TOKEN_ERROR
