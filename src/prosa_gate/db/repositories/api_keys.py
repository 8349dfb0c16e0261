"""
prosa_gate.db.repositories.api_keys

Repository for `ApiKey` entities.

Responsibilities:
- Insert keys (digest + capability list) and look them up by digest.
- Read, list and delete keys scoped to their owner.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from prosa_gate.auth.clock import to_db
from prosa_gate.auth.models import Capability, sort_capabilities
from prosa_gate.db.models import ApiKey


class ApiKeyRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        user_id: str,
        key_hash: str,
        name: str,
        capabilities: frozenset[Capability],
        expires_at: datetime | None,
        created_at: datetime,
    ) -> ApiKey:
        key = ApiKey(
            user_id=user_id,
            key_hash=key_hash,
            name=name,
            capabilities=[c.value for c in sort_capabilities(capabilities)],
            expires_at=to_db(expires_at) if expires_at is not None else None,
            created_at=to_db(created_at),
        )
        self._session.add(key)
        await self._session.flush()
        return key

    async def get_by_hash(self, key_hash: str) -> ApiKey | None:
        stmt = select(ApiKey).where(ApiKey.key_hash == key_hash)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_for_user(self, *, user_id: str, key_id: str) -> ApiKey | None:
        stmt = select(ApiKey).where(ApiKey.id == key_id, ApiKey.user_id == user_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_ids_for_user(self, user_id: str) -> list[str]:
        stmt = (
            select(ApiKey.id)
            .where(ApiKey.user_id == user_id)
            .order_by(ApiKey.created_at, ApiKey.id)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def delete_for_user(self, *, user_id: str, key_id: str) -> bool:
        stmt = (
            delete(ApiKey)
            .where(ApiKey.id == key_id, ApiKey.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1
