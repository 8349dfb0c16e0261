"""
prosa_gate.auth.jwt

Session token issuing and validation.

Responsibilities:
- Issue RS256-signed session tokens carrying identity, role, capabilities and session id.
- Decode and validate tokens with strict claim requirements (iss/exp/iat/sub/session_id),
  selecting the verification key by the header `kid`.

Note:
- Clients receive the compact JWS base64-encoded; `verify` accepts exactly that form.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

from prosa_gate.auth.clock import Clock, utcnow
from prosa_gate.auth.keys import SIGNING_ALG, KeyMaterialProvider
from prosa_gate.auth.models import Capability, Role, sort_capabilities


@dataclass(frozen=True, slots=True)
class JwtConfig:
    # Issuer is enforced during decoding; ttl applies to newly issued tokens.
    issuer: str
    ttl: timedelta


class JwtValidationError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class SessionClaims:
    subject: str
    role: Role
    capabilities: frozenset[Capability]
    session_id: str
    issuer: str
    issued_at: datetime
    expires_at: datetime


class SessionTokenCodec:
    def __init__(self, *, cfg: JwtConfig, keys: KeyMaterialProvider, clock: Clock = utcnow) -> None:
        self._cfg = cfg
        self._keys = keys
        self._clock = clock

    def claims_for(
        self,
        *,
        subject: str,
        role: Role,
        capabilities: frozenset[Capability],
        session_id: str,
    ) -> SessionClaims:
        now = self._clock().replace(microsecond=0)
        return SessionClaims(
            subject=subject,
            role=role,
            capabilities=capabilities,
            session_id=session_id,
            issuer=self._cfg.issuer,
            issued_at=now,
            expires_at=now + self._cfg.ttl,
        )

    def issue(self, claims: SessionClaims) -> str:
        kid, key = self._keys.signing_key()
        payload: dict[str, Any] = {
            "iss": claims.issuer,
            "sub": claims.subject,
            "role": claims.role.value,
            "capabilities": [c.value for c in sort_capabilities(claims.capabilities)],
            "session_id": claims.session_id,
            "iat": int(claims.issued_at.timestamp()),
            "exp": int(claims.expires_at.timestamp()),
        }
        compact = jwt.encode(payload, key, algorithm=SIGNING_ALG, headers={"kid": kid})
        return base64.b64encode(compact.encode("ascii")).decode("ascii")

    def verify(self, token: str) -> SessionClaims:
        try:
            compact = base64.b64decode(token, validate=True).decode("ascii")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise JwtValidationError("token is not base64-encoded") from e

        try:
            header = jwt.get_unverified_header(compact)
        except InvalidTokenError as e:
            raise JwtValidationError(str(e)) from e

        kid = header.get("kid")
        key = self._keys.verification_key(kid) if isinstance(kid, str) else None
        if key is None:
            raise JwtValidationError("unknown signing key")

        try:
            # Expiry is checked below against the injected clock.
            payload = jwt.decode(
                compact,
                key,
                algorithms=[SIGNING_ALG],
                issuer=self._cfg.issuer,
                options={
                    "require": ["exp", "iat", "iss", "sub"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except InvalidTokenError as e:
            raise JwtValidationError(str(e)) from e

        exp, iat = payload["exp"], payload["iat"]
        if not isinstance(exp, int) or not isinstance(iat, int):
            raise JwtValidationError("invalid token timestamps")
        expires_at = datetime.fromtimestamp(exp, tz=UTC)
        if self._clock() >= expires_at:
            raise JwtValidationError("token is expired")

        subject = payload.get("sub")
        session_id = payload.get("session_id")
        if not isinstance(subject, str) or not subject:
            raise JwtValidationError("invalid token subject")
        if not isinstance(session_id, str) or not session_id:
            raise JwtValidationError("invalid token session")

        caps_raw = payload.get("capabilities", [])
        if not isinstance(caps_raw, list):
            raise JwtValidationError("invalid token capabilities")
        try:
            role = Role(payload.get("role"))
            capabilities = frozenset(Capability(c) for c in caps_raw)
        except ValueError as e:
            raise JwtValidationError("invalid token role or capabilities") from e

        return SessionClaims(
            subject=subject,
            role=role,
            capabilities=capabilities,
            session_id=session_id,
            issuer=payload["iss"],
            issued_at=datetime.fromtimestamp(iat, tz=UTC),
            expires_at=expires_at,
        )


# --- Module Notes -----------------------------------------------------------
# Verification is pure (no storage access), so it runs concurrently across requests.
# A logout does not revoke tokens issued by this codec; they expire on their own.
