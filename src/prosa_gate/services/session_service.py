"""
prosa_gate.services.session_service

Session lifecycle service (transaction owner for sessions and refresh tokens).

Responsibilities:
- Open a session at login: session token + first refresh token.
- Rotate a refresh token (single use) into a new session token and refresh token.
- Invalidate a refresh token and end its session (logout).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from prosa_gate.auth.clock import Clock, from_db, utcnow
from prosa_gate.auth.jwt import SessionClaims, SessionTokenCodec
from prosa_gate.auth.models import capabilities_for_role
from prosa_gate.auth.secrets import (
    REFRESH_TOKEN_BYTES,
    MalformedSecretError,
    digest_secret,
    generate_secret,
)
from prosa_gate.db.models import User
from prosa_gate.db.repositories.sessions import SessionRepo
from prosa_gate.db.repositories.users import UserRepo
from prosa_gate.errors import TokenError, TokenErrorKind
from prosa_gate.observability.logging import get_logger
from prosa_gate.settings import Settings

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class IssuedSession:
    claims: SessionClaims
    session_token: str
    refresh_token: str

    @property
    def user_id(self) -> str:
        return self.claims.subject


class SessionService:
    def __init__(
        self,
        *,
        session: AsyncSession,
        codec: SessionTokenCodec,
        settings: Settings,
        clock: Clock = utcnow,
    ) -> None:
        self._session = session
        self._codec = codec
        self._clock = clock
        self._refresh_ttl = timedelta(seconds=settings.refresh_token_ttl_seconds)

        self._sessions = SessionRepo(session)
        self._users = UserRepo(session)

    async def open(self, user: User) -> IssuedSession:
        now = self._clock()
        capabilities = capabilities_for_role(user.role)
        auth_session = await self._sessions.create_session(
            user_id=user.id,
            role=user.role,
            capabilities=capabilities,
            issued_at=now,
            expires_at=now + self._refresh_ttl,
        )
        claims = self._codec.claims_for(
            subject=user.id,
            role=user.role,
            capabilities=capabilities,
            session_id=auth_session.id,
        )
        refresh_token = await self._attach_refresh_token(
            session_id=auth_session.id, user_id=user.id
        )
        await self._session.commit()

        log.info("session_opened", user_id=user.id, session_id=auth_session.id)
        return IssuedSession(
            claims=claims,
            session_token=self._codec.issue(claims),
            refresh_token=refresh_token,
        )

    async def rotate(self, refresh_token: str) -> IssuedSession:
        """
        Exchange a refresh token for a new session token and a new refresh token.

        Unknown, already-used and expired tokens all fail with `invalid_token`
        so callers cannot tell which case they hit.
        """

        token_hash = self._digest_or_raise(refresh_token, TokenErrorKind.invalid_token)
        now = self._clock()

        stored = await self._sessions.get_refresh_token(token_hash)
        if stored is None:
            log.warning("refresh_token_unknown")
            raise TokenError(TokenErrorKind.invalid_token)

        session_id, user_id = stored.session_id, stored.user_id
        expires_at = from_db(stored.expires_at)

        if not await self._sessions.consume_refresh_token(token_hash, now=now):
            # Lost a race or replayed a rotated token; the lineage's current token stays valid.
            await self._session.rollback()
            log.warning("refresh_token_reuse", session_id=session_id)
            raise TokenError(TokenErrorKind.invalid_token)

        if now >= expires_at:
            await self._session.commit()
            log.info("refresh_token_expired", session_id=session_id)
            raise TokenError(TokenErrorKind.invalid_token)

        auth_session = await self._sessions.get_session(session_id)
        user = await self._users.get(user_id)
        if auth_session is None or auth_session.ended_at is not None or user is None:
            await self._session.commit()
            raise TokenError(TokenErrorKind.invalid_token)

        # Role is re-read so promotions/demotions apply from the next rotation on.
        capabilities = capabilities_for_role(user.role)
        claims = self._codec.claims_for(
            subject=user.id,
            role=user.role,
            capabilities=capabilities,
            session_id=auth_session.id,
        )
        new_refresh_token = await self._attach_refresh_token(
            session_id=auth_session.id, user_id=user.id
        )
        await self._sessions.extend_session(
            auth_session.id,
            role=user.role,
            capabilities=capabilities,
            expires_at=now + self._refresh_ttl,
        )
        await self._session.commit()

        log.info("session_refreshed", user_id=user.id, session_id=auth_session.id)
        return IssuedSession(
            claims=claims,
            session_token=self._codec.issue(claims),
            refresh_token=new_refresh_token,
        )

    async def invalidate(self, refresh_token: str) -> None:
        token_hash = self._digest_or_raise(refresh_token, TokenErrorKind.token_not_found)
        now = self._clock()

        stored = await self._sessions.get_refresh_token(token_hash)
        if stored is None or not await self._sessions.consume_refresh_token(token_hash, now=now):
            await self._session.rollback()
            raise TokenError(TokenErrorKind.token_not_found)

        await self._sessions.end_session(stored.session_id, now=now)
        await self._session.commit()
        log.info("session_ended", user_id=stored.user_id, session_id=stored.session_id)

    async def _attach_refresh_token(self, *, session_id: str, user_id: str) -> str:
        now = self._clock()
        token, token_hash = generate_secret(REFRESH_TOKEN_BYTES)
        await self._sessions.add_refresh_token(
            token_hash=token_hash,
            session_id=session_id,
            user_id=user_id,
            issued_at=now,
            expires_at=now + self._refresh_ttl,
        )
        return token

    @staticmethod
    def _digest_or_raise(token: str, kind: TokenErrorKind) -> str:
        try:
            return digest_secret(token)
        except MalformedSecretError as e:
            raise TokenError(kind) from e


# --- Module Notes -----------------------------------------------------------
# Session tokens already handed out are not revoked by `invalidate`; they stay valid
# until their own `exp` (default 15 minutes).
