"""
prosa_gate.auth.secrets

Opaque credential and password helpers.

Responsibilities:
- Generate opaque secrets (API keys, refresh tokens) and their storage digests.
- Compare digests in constant time.
- Hash and verify user passwords (argon2id).
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import secrets

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError

API_KEY_BYTES = 32
REFRESH_TOKEN_BYTES = 128

_pwd_hasher = PasswordHasher(type=Type.ID)


class MalformedSecretError(Exception):
    pass


def generate_secret(num_bytes: int) -> tuple[str, str]:
    """
    Return `(secret, digest)`: the base64 secret handed to the client once,
    and the base64 SHA-256 digest that is persisted instead.
    """

    raw = secrets.token_bytes(num_bytes)
    return base64.b64encode(raw).decode("ascii"), _digest(raw)


def digest_secret(secret: str) -> str:
    try:
        raw = base64.b64decode(secret, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedSecretError("secret is not base64-encoded") from e
    if not raw:
        raise MalformedSecretError("secret is empty")
    return _digest(raw)


def digests_match(expected: str, presented: str) -> bool:
    return hmac.compare_digest(expected.encode("ascii"), presented.encode("ascii"))


def _digest(raw: bytes) -> str:
    return base64.b64encode(hashlib.sha256(raw).digest()).decode("ascii")


def hash_password(password: str) -> str:
    return _pwd_hasher.hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    try:
        return _pwd_hasher.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False
