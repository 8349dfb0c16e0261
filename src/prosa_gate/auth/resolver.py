"""
prosa_gate.auth.resolver

Credential resolution: request credentials -> `Principal`.

Responsibilities:
- Pick the credential to evaluate (bearer session token wins over an API key).
- Verify session tokens through the codec; look API keys up by secret digest.
- Report failures as `AuthenticationError` without leaking which check failed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from prosa_gate.auth.clock import Clock, utcnow
from prosa_gate.auth.jwt import JwtValidationError, SessionTokenCodec
from prosa_gate.auth.models import CredentialKind, Principal, Role, capabilities_for_role
from prosa_gate.errors import AuthenticationError, AuthFailure
from prosa_gate.observability.logging import get_logger

if TYPE_CHECKING:
    from prosa_gate.services.api_key_service import ApiKeyInfo

log = get_logger(__name__)


class ApiKeyLookup(Protocol):
    async def find_by_secret(self, secret: str) -> ApiKeyInfo | None: ...


@dataclass(frozen=True, slots=True)
class Credentials:
    bearer: str | None = None
    api_key: str | None = None


class CredentialResolver:
    def __init__(
        self,
        *,
        codec: SessionTokenCodec,
        api_keys: ApiKeyLookup,
        clock: Clock = utcnow,
    ) -> None:
        self._codec = codec
        self._api_keys = api_keys
        self._clock = clock

    async def resolve(self, credentials: Credentials) -> Principal:
        # Empty header values count as absent.
        if credentials.bearer:
            return self._from_session_token(credentials.bearer)
        if credentials.api_key:
            return await self._from_api_key(credentials.api_key)
        raise AuthenticationError(AuthFailure.unauthenticated)

    def _from_session_token(self, token: str) -> Principal:
        try:
            claims = self._codec.verify(token)
        except JwtValidationError as e:
            log.info("session_token_rejected", reason=str(e))
            raise AuthenticationError(AuthFailure.unauthenticated) from e

        return Principal(
            user_id=claims.subject,
            role=claims.role,
            capabilities=capabilities_for_role(claims.role),
            credential_kind=CredentialKind.session,
            session_id=claims.session_id,
        )

    async def _from_api_key(self, secret: str) -> Principal:
        info = await self._api_keys.find_by_secret(secret)
        if info is None:
            log.info("api_key_rejected", reason="unknown")
            raise AuthenticationError(AuthFailure.invalid_credential)
        if info.expires_at is not None and self._clock() >= info.expires_at:
            log.info("api_key_rejected", reason="expired", key_id=info.key_id)
            raise AuthenticationError(AuthFailure.invalid_credential)

        # Keys never carry elevation, whatever the owner's role.
        return Principal(
            user_id=info.owner_user_id,
            role=Role.standard,
            capabilities=info.capabilities,
            credential_kind=CredentialKind.api_key,
        )


# --- Module Notes -----------------------------------------------------------
# Session principals are rebuilt from token claims alone; only API keys touch storage.
