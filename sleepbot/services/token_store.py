"""
File-backed persistence for the single token record.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from sleepbot.core.errors import SleepBotError
from sleepbot.models.oauth import TokenRecord
from sleepbot.services.token_cipher import (
    ENCRYPTED_SUFFIX,
    SECRET_FIELDS,
    TokenCipherService,
)

logger = logging.getLogger(__name__)


class TokenNotFoundError(Exception):
    """Raised when no token file exists yet; the setup flow must run first."""


class TokenStoreError(SleepBotError):
    """Raised when the token file cannot be read or written."""


class TokenStore:
    """Load and atomically replace the JSON token file."""

    def __init__(
        self, path: str | os.PathLike[str], cipher: Optional[TokenCipherService] = None
    ) -> None:
        self._path = Path(path)
        self._cipher = cipher

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def load(self) -> TokenRecord:
        if not self._path.exists():
            raise TokenNotFoundError(
                f"{self._path} not found; run the setup command first."
            )
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise TokenStoreError(f"Unable to read {self._path}: {exc}") from exc

        if not isinstance(payload, dict):
            raise TokenStoreError(f"{self._path} does not contain a JSON object.")

        encrypted = any(field + ENCRYPTED_SUFFIX in payload for field in SECRET_FIELDS)
        if encrypted:
            if self._cipher is None:
                raise TokenStoreError(
                    f"{self._path} is encrypted but no encryption secret is configured."
                )
            try:
                payload = self._cipher.unseal(payload)
            except ValueError as exc:
                raise TokenStoreError(str(exc)) from exc
        elif self._cipher is not None:
            logger.info("Token file is plaintext; it will be encrypted on next save")

        try:
            return TokenRecord.model_validate(payload)
        except ValidationError as exc:
            raise TokenStoreError(
                f"{self._path} is missing required token fields."
            ) from exc

    def save(self, record: TokenRecord) -> None:
        """Write ``record`` to a temp file and rename it over the old one."""
        payload = record.model_dump(mode="json")
        if self._cipher is not None:
            payload = self._cipher.seal(payload)
        data = json.dumps(payload, indent=2)

        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=directory
            )
        except OSError as exc:
            raise TokenStoreError(f"Unable to write {self._path}: {exc}") from exc

        # mkstemp already creates the file as 0600.
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except OSError as exc:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise TokenStoreError(f"Unable to write {self._path}: {exc}") from exc

        logger.info("Saved token record to %s", self._path)


__all__ = ["TokenNotFoundError", "TokenStore", "TokenStoreError"]
