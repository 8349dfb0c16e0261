"""
prosa_gate.services.api_key_service

API key store (transaction owner for `ApiKey` rows).

Responsibilities:
- Parse and validate capability lists and expiration timestamps from requests.
- Create keys (secret returned once), read/list/delete them per owner.
- Look keys up by presented secret for the credential resolver.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from prosa_gate.auth.clock import Clock, from_db, utcnow
from prosa_gate.auth.models import Capability
from prosa_gate.auth.secrets import (
    API_KEY_BYTES,
    MalformedSecretError,
    digest_secret,
    digests_match,
    generate_secret,
)
from prosa_gate.db.models import ApiKey
from prosa_gate.db.repositories.api_keys import ApiKeyRepo
from prosa_gate.errors import ApiKeyError, ApiKeyErrorKind
from prosa_gate.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ApiKeyInfo:
    key_id: str
    owner_user_id: str
    name: str
    capabilities: frozenset[Capability]
    expires_at: datetime | None

    @classmethod
    def from_row(cls, row: ApiKey) -> ApiKeyInfo:
        return cls(
            key_id=row.id,
            owner_user_id=row.user_id,
            name=row.name,
            capabilities=frozenset(Capability(c) for c in row.capabilities),
            expires_at=from_db(row.expires_at) if row.expires_at is not None else None,
        )


@dataclass(frozen=True, slots=True)
class CreatedApiKey:
    key_id: str
    secret: str


def parse_capabilities(raw: Sequence[str]) -> frozenset[Capability]:
    """
    Capability names must be non-empty, unique and from the fixed vocabulary.
    """

    if not raw or len(set(raw)) != len(raw):
        raise ApiKeyError(ApiKeyErrorKind.invalid_capabilities)
    try:
        return frozenset(Capability(name) for name in raw)
    except ValueError as e:
        raise ApiKeyError(ApiKeyErrorKind.invalid_capabilities) from e


def parse_expiration(raw: str | int | None, *, now: datetime) -> datetime | None:
    """
    Accept an RFC 3339 string or Unix milliseconds; the instant must lie in the future.
    Naive strings are read as UTC.
    """

    if raw is None:
        return None
    try:
        if isinstance(raw, int):
            value = datetime.fromtimestamp(raw / 1000, tz=UTC)
        else:
            value = datetime.fromisoformat(raw)
            value = value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)
    except (ValueError, OverflowError, OSError) as e:
        raise ApiKeyError(ApiKeyErrorKind.invalid_timestamp) from e

    if value <= now:
        raise ApiKeyError(ApiKeyErrorKind.invalid_timestamp)
    return value


def format_expiration(value: datetime) -> str:
    # RFC 2822 without zero-padding the day, e.g. "Sun, 1 Jun 2025 12:00:00 +0000".
    value = value.astimezone(UTC)
    return f"{value:%a}, {value.day} {value:%b %Y %H:%M:%S} +0000"


class ApiKeyService:
    def __init__(self, *, session: AsyncSession, clock: Clock = utcnow) -> None:
        self._session = session
        self._clock = clock
        self._keys = ApiKeyRepo(session)

    async def create(
        self,
        *,
        owner_user_id: str,
        name: str,
        capabilities: frozenset[Capability],
        expires_at: datetime | None,
    ) -> CreatedApiKey:
        secret, key_hash = generate_secret(API_KEY_BYTES)
        row = await self._keys.create(
            user_id=owner_user_id,
            key_hash=key_hash,
            name=name,
            capabilities=capabilities,
            expires_at=expires_at,
            created_at=self._clock(),
        )
        await self._session.commit()
        log.info("api_key_created", user_id=owner_user_id, key_id=row.id)
        return CreatedApiKey(key_id=row.id, secret=secret)

    async def get(self, *, owner_user_id: str, key_id: str) -> ApiKeyInfo:
        row = await self._keys.get_for_user(user_id=owner_user_id, key_id=key_id)
        if row is None:
            raise ApiKeyError(ApiKeyErrorKind.key_not_found)
        return ApiKeyInfo.from_row(row)

    async def list_ids(self, *, owner_user_id: str) -> list[str]:
        return await self._keys.list_ids_for_user(owner_user_id)

    async def delete(self, *, owner_user_id: str, key_id: str) -> None:
        if not await self._keys.delete_for_user(user_id=owner_user_id, key_id=key_id):
            await self._session.rollback()
            raise ApiKeyError(ApiKeyErrorKind.key_not_found)
        await self._session.commit()
        log.info("api_key_deleted", user_id=owner_user_id, key_id=key_id)

    async def find_by_secret(self, secret: str) -> ApiKeyInfo | None:
        """
        Resolve a presented secret to its key; expiry is left to the caller.
        """

        try:
            presented = digest_secret(secret)
        except MalformedSecretError:
            return None
        row = await self._keys.get_by_hash(presented)
        if row is None or not digests_match(row.key_hash, presented):
            return None
        return ApiKeyInfo.from_row(row)


# --- Module Notes -----------------------------------------------------------
# Validation (`parse_capabilities`, `parse_expiration`) runs on the raw request body
# before any authorization decision or storage access.
