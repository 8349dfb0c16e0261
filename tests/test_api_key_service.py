"""
tests.test_api_key_service

API key store and request parsing.

Responsibilities:
- Capability and expiration validation.
- Create/get/list/delete scoped to the owner; secrets resolvable only while stored.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from prosa_gate.auth.models import ALL_CAPABILITIES, Capability
from prosa_gate.errors import ApiKeyError, ApiKeyErrorKind
from prosa_gate.services.api_key_service import (
    ApiKeyService,
    format_expiration,
    parse_capabilities,
    parse_expiration,
)

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def service(db, clock) -> ApiKeyService:
    return ApiKeyService(session=db, clock=clock)


@pytest.mark.parametrize(
    "raw",
    [[], ["Read", "Read"], ["Read", "Fly"], ["read"]],
    ids=["empty", "duplicate", "unknown", "wrong-case"],
)
def test_invalid_capabilities_are_rejected(raw: list[str]) -> None:
    with pytest.raises(ApiKeyError) as info:
        parse_capabilities(raw)
    assert info.value.kind is ApiKeyErrorKind.invalid_capabilities
    assert info.value.status_code == 400


def test_capabilities_parse_into_enum() -> None:
    assert parse_capabilities(["Update", "Read"]) == frozenset({Capability.read, Capability.update})


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, None),
        ("2025-06-02T00:00:00Z", datetime(2025, 6, 2, tzinfo=UTC)),
        ("2025-06-02T02:00:00+02:00", datetime(2025, 6, 2, tzinfo=UTC)),
        ("2025-06-02T00:00:00", datetime(2025, 6, 2, tzinfo=UTC)),
        (int(datetime(2025, 6, 2, tzinfo=UTC).timestamp() * 1000), datetime(2025, 6, 2, tzinfo=UTC)),
    ],
)
def test_expiration_parsing(raw, expected) -> None:
    assert parse_expiration(raw, now=NOW) == expected


@pytest.mark.parametrize(
    "raw",
    ["tomorrow", "2025-13-01T00:00:00Z", "2025-06-01T12:00:00Z", "2020-01-01T00:00:00Z", 10**20],
    ids=["garbage", "bad-month", "now", "past", "out-of-range"],
)
def test_invalid_expiration_is_rejected(raw) -> None:
    with pytest.raises(ApiKeyError) as info:
        parse_expiration(raw, now=NOW)
    assert info.value.kind is ApiKeyErrorKind.invalid_timestamp


def test_expiration_format_is_rfc2822() -> None:
    assert format_expiration(datetime(2025, 6, 1, 12, 0, tzinfo=UTC)) == "Sun, 1 Jun 2025 12:00:00 +0000"
    assert format_expiration(datetime(2025, 12, 24, 8, 5, 9, tzinfo=UTC)) == "Wed, 24 Dec 2025 08:05:09 +0000"


@pytest.mark.asyncio
async def test_create_then_get(service, make_user) -> None:
    user = await make_user("alice")
    expires_at = NOW + timedelta(days=30)
    created = await service.create(
        owner_user_id=user.id,
        name="e-reader",
        capabilities=frozenset({Capability.read, Capability.update}),
        expires_at=expires_at,
    )

    info = await service.get(owner_user_id=user.id, key_id=created.key_id)
    assert info.name == "e-reader"
    assert info.owner_user_id == user.id
    assert info.capabilities == frozenset({Capability.read, Capability.update})
    assert info.expires_at == expires_at


@pytest.mark.asyncio
async def test_secret_resolves_to_key(service, make_user) -> None:
    user = await make_user("alice")
    created = await service.create(
        owner_user_id=user.id, name="sync", capabilities=ALL_CAPABILITIES, expires_at=None
    )

    info = await service.find_by_secret(created.secret)
    assert info is not None
    assert info.key_id == created.key_id
    assert info.expires_at is None

    assert await service.find_by_secret("AAAA") is None
    assert await service.find_by_secret("not base64!") is None


@pytest.mark.asyncio
async def test_list_returns_ids_in_creation_order(service, make_user) -> None:
    alice = await make_user("alice")
    bob = await make_user("bob")

    ids = []
    for name in ("one", "two", "three"):
        created = await service.create(
            owner_user_id=alice.id, name=name, capabilities=ALL_CAPABILITIES, expires_at=None
        )
        ids.append(created.key_id)
    await service.create(owner_user_id=bob.id, name="bob", capabilities=ALL_CAPABILITIES, expires_at=None)

    assert await service.list_ids(owner_user_id=alice.id) == ids


@pytest.mark.asyncio
async def test_key_is_scoped_to_owner(service, make_user) -> None:
    alice = await make_user("alice")
    bob = await make_user("bob")
    alice_id, bob_id = alice.id, bob.id
    created = await service.create(
        owner_user_id=alice_id, name="k", capabilities=ALL_CAPABILITIES, expires_at=None
    )

    with pytest.raises(ApiKeyError) as info:
        await service.get(owner_user_id=bob_id, key_id=created.key_id)
    assert info.value.kind is ApiKeyErrorKind.key_not_found

    with pytest.raises(ApiKeyError):
        await service.delete(owner_user_id=bob_id, key_id=created.key_id)
    assert (await service.get(owner_user_id=alice_id, key_id=created.key_id)).name == "k"


@pytest.mark.asyncio
async def test_delete_removes_key_and_secret(service, make_user) -> None:
    user = await make_user("alice")
    user_id = user.id
    created = await service.create(
        owner_user_id=user_id, name="k", capabilities=ALL_CAPABILITIES, expires_at=None
    )

    await service.delete(owner_user_id=user_id, key_id=created.key_id)

    assert await service.find_by_secret(created.secret) is None
    assert await service.list_ids(owner_user_id=user_id) == []
    with pytest.raises(ApiKeyError) as info:
        await service.delete(owner_user_id=user_id, key_id=created.key_id)
    assert info.value.kind is ApiKeyErrorKind.key_not_found
