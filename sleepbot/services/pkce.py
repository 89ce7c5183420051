"""Proof Key for Code Exchange (RFC 7636) helpers."""

from __future__ import annotations

import base64
import hashlib
import secrets

MIN_VERIFIER_LENGTH = 43
MAX_VERIFIER_LENGTH = 128


class InvalidLength(ValueError):
    """Raised when a verifier length falls outside [43, 128]."""


class EntropySourceError(RuntimeError):
    """Raised when the OS randomness source cannot be read."""


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def generate_verifier(length: int = MIN_VERIFIER_LENGTH) -> str:
    """Return a URL-safe random verifier of exactly ``length`` characters."""
    if not MIN_VERIFIER_LENGTH <= length <= MAX_VERIFIER_LENGTH:
        raise InvalidLength(
            f"Verifier length must be between {MIN_VERIFIER_LENGTH} and "
            f"{MAX_VERIFIER_LENGTH}, got {length}."
        )
    # Unpadded base64 yields ceil(4n/3) characters for n bytes.
    num_bytes = -(-length * 3 // 4)
    try:
        random_bytes = secrets.token_bytes(num_bytes)
    except (OSError, NotImplementedError) as exc:
        raise EntropySourceError("Unable to read from the randomness source.") from exc
    return _b64url(random_bytes)[:length]


def derive_challenge(verifier: str) -> str:
    """S256 code challenge for ``verifier``."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return _b64url(digest)


def generate_pair(length: int = MIN_VERIFIER_LENGTH) -> tuple[str, str]:
    """Return a ``(verifier, challenge)`` tuple."""
    verifier = generate_verifier(length)
    return verifier, derive_challenge(verifier)


__all__ = [
    "EntropySourceError",
    "InvalidLength",
    "derive_challenge",
    "generate_pair",
    "generate_verifier",
]
