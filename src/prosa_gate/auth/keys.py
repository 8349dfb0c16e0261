"""
prosa_gate.auth.keys

Signing key material for session tokens.

Responsibilities:
- Hold RSA private keys keyed by `kid`, one of them current for signing.
- Keep retired keys available for verification so rotation does not invalidate
  tokens that are still within their lifetime.
- Publish the public half of every key as a JWKS document.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm

from prosa_gate.observability.logging import get_logger
from prosa_gate.settings import Settings

log = get_logger(__name__)

SIGNING_ALG = "RS256"


class KeyMaterialError(Exception):
    pass


def generate_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def load_private_key(path: str | os.PathLike[str]) -> rsa.RSAPrivateKey:
    key = serialization.load_pem_private_key(Path(path).read_bytes(), password=None)
    if not isinstance(key, rsa.RSAPrivateKey):
        raise KeyMaterialError(f"{path} does not contain an RSA private key")
    return key


def write_private_key(key: rsa.RSAPrivateKey, path: str | os.PathLike[str]) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    target.write_bytes(pem)
    target.chmod(0o600)


class KeyMaterialProvider:
    """
    In-process key ring.

    `current_kid` signs new tokens; every registered key verifies.
    """

    def __init__(self, *, current_kid: str, current_key: rsa.RSAPrivateKey) -> None:
        self._keys: dict[str, rsa.RSAPrivateKey] = {current_kid: current_key}
        self._current_kid = current_kid

    @classmethod
    def from_settings(cls, settings: Settings) -> KeyMaterialProvider:
        if settings.jwt_key_path is None:
            current = generate_private_key()
        elif Path(settings.jwt_key_path).exists():
            current = load_private_key(settings.jwt_key_path)
        else:
            current = generate_private_key()
            write_private_key(current, settings.jwt_key_path)
            log.info("signing_key_generated", kid=settings.jwt_key_id)

        provider = cls(current_kid=settings.jwt_key_id, current_key=current)
        for kid, path in settings.jwt_previous_keys.items():
            provider.add_key(kid, load_private_key(path))
        return provider

    @property
    def current_kid(self) -> str:
        return self._current_kid

    def signing_key(self) -> tuple[str, rsa.RSAPrivateKey]:
        return self._current_kid, self._keys[self._current_kid]

    def verification_key(self, kid: str) -> rsa.RSAPublicKey | None:
        key = self._keys.get(kid)
        return key.public_key() if key is not None else None

    def add_key(self, kid: str, key: rsa.RSAPrivateKey, *, make_current: bool = False) -> None:
        if kid in self._keys:
            raise KeyMaterialError(f"key id {kid!r} is already registered")
        self._keys[kid] = key
        if make_current:
            self._current_kid = kid

    def rotate(self, kid: str, key: rsa.RSAPrivateKey | None = None) -> None:
        # The previous key stays registered for verification.
        self.add_key(kid, key or generate_private_key(), make_current=True)
        log.info("signing_key_rotated", kid=kid)

    def jwks(self) -> dict[str, list[dict[str, Any]]]:
        keys: list[dict[str, Any]] = []
        for kid, private_key in self._keys.items():
            jwk = json.loads(RSAAlgorithm.to_jwk(private_key.public_key()))
            jwk.update({"kid": kid, "alg": SIGNING_ALG, "use": "sig"})
            keys.append(jwk)
        return {"keys": keys}


# --- Module Notes -----------------------------------------------------------
# Only public components leave this module (`jwks`, `verification_key`); private
# keys are handed to the token codec and nowhere else.
