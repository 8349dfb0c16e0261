"""
prosa_gate.db.repositories.sessions

Repository for `AuthSession` and `RefreshToken` entities.

Responsibilities:
- Create login sessions and attach refresh tokens to them.
- Consume a refresh token with an atomic compare-and-invalidate.
- End sessions on logout.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from prosa_gate.auth.clock import to_db
from prosa_gate.auth.models import Capability, Role, sort_capabilities
from prosa_gate.db.models import AuthSession, RefreshToken


class SessionRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_session(
        self,
        *,
        user_id: str,
        role: Role,
        capabilities: frozenset[Capability],
        issued_at: datetime,
        expires_at: datetime,
    ) -> AuthSession:
        auth_session = AuthSession(
            user_id=user_id,
            role=role,
            capabilities=[c.value for c in sort_capabilities(capabilities)],
            issued_at=to_db(issued_at),
            expires_at=to_db(expires_at),
            ended_at=None,
        )
        self._session.add(auth_session)
        await self._session.flush()
        return auth_session

    async def get_session(self, session_id: str) -> AuthSession | None:
        return await self._session.get(AuthSession, session_id)

    async def extend_session(
        self,
        session_id: str,
        *,
        role: Role,
        capabilities: frozenset[Capability],
        expires_at: datetime,
    ) -> None:
        # role/capabilities mirror the most recently issued session token.
        stmt = (
            update(AuthSession)
            .where(AuthSession.id == session_id)
            .values(
                role=role,
                capabilities=[c.value for c in sort_capabilities(capabilities)],
                expires_at=to_db(expires_at),
            )
        )
        await self._session.execute(stmt)

    async def end_session(self, session_id: str, *, now: datetime) -> None:
        stmt = (
            update(AuthSession)
            .where(AuthSession.id == session_id, AuthSession.ended_at.is_(None))
            .values(ended_at=to_db(now))
        )
        await self._session.execute(stmt)

    async def add_refresh_token(
        self,
        *,
        token_hash: str,
        session_id: str,
        user_id: str,
        issued_at: datetime,
        expires_at: datetime,
    ) -> RefreshToken:
        token = RefreshToken(
            token_hash=token_hash,
            session_id=session_id,
            user_id=user_id,
            issued_at=to_db(issued_at),
            expires_at=to_db(expires_at),
            revoked_at=None,
        )
        self._session.add(token)
        await self._session.flush()
        return token

    async def get_refresh_token(self, token_hash: str) -> RefreshToken | None:
        return await self._session.get(RefreshToken, token_hash)

    async def consume_refresh_token(self, token_hash: str, *, now: datetime) -> bool:
        """
        Mark an active token as revoked.

        Returns True for exactly one caller per token: the conditional UPDATE
        is the single point where concurrent rotations/logouts race.
        """

        stmt = (
            update(RefreshToken)
            .where(RefreshToken.token_hash == token_hash, RefreshToken.revoked_at.is_(None))
            .values(revoked_at=to_db(now))
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1


# --- Module Notes -----------------------------------------------------------
# Consumed tokens are kept (revoked_at set) rather than deleted so a replay of an
# already-rotated token can be told apart from a token that never existed in logs.
