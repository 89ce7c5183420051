import json
import os
import stat
from datetime import datetime, timezone
from pathlib import Path

import pytest

from sleepbot.models.oauth import TokenRecord
from sleepbot.services import token_store
from sleepbot.services.token_cipher import TokenCipherService
from sleepbot.services.token_store import TokenNotFoundError, TokenStore, TokenStoreError


def _record(access: str = "access-1", refresh: str = "refresh-1") -> TokenRecord:
    return TokenRecord(
        access_token=access,
        refresh_token=refresh,
        expires_in=28800,
        token_type="Bearer",
        user_id="ABC123",
        issued_at=datetime(2024, 1, 2, 5, 0, tzinfo=timezone.utc),
    )


def test_save_then_load_preserves_record(tmp_path: Path) -> None:
    store = TokenStore(tmp_path / "tokens.json")
    record = _record()

    store.save(record)

    assert store.load() == record


def test_saved_file_is_private(tmp_path: Path) -> None:
    path = tmp_path / "tokens.json"
    TokenStore(path).save(_record())

    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600


def test_load_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(TokenNotFoundError):
        TokenStore(tmp_path / "tokens.json").load()


def test_load_accepts_raw_token_response(tmp_path: Path) -> None:
    path = tmp_path / "tokens.json"
    path.write_text(
        json.dumps(
            {
                "access_token": "a",
                "refresh_token": "r",
                "expires_in": 28800,
                "token_type": "Bearer",
                "user_id": "XYZ",
                "scope": "sleep",
            }
        ),
        encoding="utf-8",
    )

    record = TokenStore(path).load()

    assert record.access_token == "a"
    assert record.user_id == "XYZ"


@pytest.mark.parametrize("contents", ["{not json", "[]", json.dumps({"access_token": "a"})])
def test_load_rejects_malformed_files(tmp_path: Path, contents: str) -> None:
    path = tmp_path / "tokens.json"
    path.write_text(contents, encoding="utf-8")

    with pytest.raises(TokenStoreError):
        TokenStore(path).load()


@pytest.mark.parametrize("failing_call", ["replace", "fsync"])
def test_failed_write_keeps_last_good_record(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, failing_call: str
) -> None:
    path = tmp_path / "tokens.json"
    store = TokenStore(path)
    store.save(_record(access="good"))

    def boom(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(token_store.os, failing_call, boom)

    with pytest.raises(TokenStoreError):
        store.save(_record(access="new"))

    monkeypatch.undo()
    assert store.load().access_token == "good"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["tokens.json"]


def test_encrypted_store_hides_secrets(tmp_path: Path) -> None:
    path = tmp_path / "tokens.json"
    cipher = TokenCipherService(secret="file-secret")
    store = TokenStore(path, cipher=cipher)

    store.save(_record(access="plain-access", refresh="plain-refresh"))

    raw = path.read_text(encoding="utf-8")
    payload = json.loads(raw)
    assert "access_token" not in payload
    assert "refresh_token" not in payload
    assert "plain-access" not in raw
    assert cipher.decrypt(payload["refresh_token_encrypted"]) == "plain-refresh"
    assert store.load().access_token == "plain-access"


def test_encrypted_file_requires_cipher(tmp_path: Path) -> None:
    path = tmp_path / "tokens.json"
    TokenStore(path, cipher=TokenCipherService(secret="s")).save(_record())

    with pytest.raises(TokenStoreError):
        TokenStore(path).load()


def test_encrypted_file_with_wrong_secret(tmp_path: Path) -> None:
    path = tmp_path / "tokens.json"
    TokenStore(path, cipher=TokenCipherService(secret="right")).save(_record())

    with pytest.raises(TokenStoreError):
        TokenStore(path, cipher=TokenCipherService(secret="wrong")).load()


def test_plaintext_file_is_readable_with_cipher(tmp_path: Path) -> None:
    path = tmp_path / "tokens.json"
    TokenStore(path).save(_record(access="legacy"))

    store = TokenStore(path, cipher=TokenCipherService(secret="s"))
    assert store.load().access_token == "legacy"

    store.save(_record(access="legacy"))
    assert "access_token_encrypted" in json.loads(path.read_text(encoding="utf-8"))


def test_token_cipher_requires_secret() -> None:
    with pytest.raises(ValueError):
        TokenCipherService(secret="")


def test_record_repr_hides_tokens() -> None:
    text = repr(_record(access="super-secret"))

    assert "super-secret" not in text
    assert "ABC123" in text
