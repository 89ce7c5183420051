"""Symmetric encryption for the secret fields of the token file."""

from __future__ import annotations

import base64
import hashlib
from typing import Any, Dict

from cryptography.fernet import Fernet, InvalidToken

SECRET_FIELDS = ("access_token", "refresh_token")
ENCRYPTED_SUFFIX = "_encrypted"


class TokenCipherService:
    """Encrypt and decrypt token values using a Fernet key derived from a secret."""

    def __init__(self, *, secret: str) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(digest))

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("utf-8"))
        except InvalidToken as exc:
            raise ValueError(
                "Failed to decrypt token; wrong secret or corrupted ciphertext."
            ) from exc
        return plaintext.decode("utf-8")

    def seal(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Replace plaintext secret fields with ``<field>_encrypted`` entries."""
        sealed = dict(payload)
        for field in SECRET_FIELDS:
            value = sealed.pop(field, None)
            if value is not None:
                sealed[field + ENCRYPTED_SUFFIX] = self.encrypt(value)
        return sealed

    def unseal(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Inverse of :meth:`seal`; plaintext fields are passed through."""
        opened = dict(payload)
        for field in SECRET_FIELDS:
            encrypted = opened.pop(field + ENCRYPTED_SUFFIX, None)
            if encrypted is not None:
                opened[field] = self.decrypt(encrypted)
        return opened


__all__ = ["TokenCipherService"]
