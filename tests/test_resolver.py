"""
tests.test_resolver

Credential resolver with an in-memory key store.

Responsibilities:
- Session tokens resolve to session principals; codec failures are `unauthenticated`.
- API keys resolve to standard principals with the key's capabilities.
- Unknown and expired keys are indistinguishable (`invalid_credential`).
- Bearer wins when both credentials are sent; empty values count as absent.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from prosa_gate.auth.models import ALL_CAPABILITIES, Capability, CredentialKind, Role
from prosa_gate.auth.resolver import CredentialResolver, Credentials
from prosa_gate.errors import AuthenticationError, AuthFailure
from prosa_gate.services.api_key_service import ApiKeyInfo


# Same instant the `clock` fixture starts at.
START = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


class InMemoryKeys:
    def __init__(self, keys: dict[str, ApiKeyInfo]) -> None:
        self._keys = keys

    async def find_by_secret(self, secret: str) -> ApiKeyInfo | None:
        return self._keys.get(secret)


READ_KEY = ApiKeyInfo(
    key_id="k-read",
    owner_user_id="alice",
    name="reader",
    capabilities=frozenset({Capability.read}),
    expires_at=START + timedelta(days=1),
)
EXPIRED_KEY = ApiKeyInfo(
    key_id="k-old",
    owner_user_id="alice",
    name="old",
    capabilities=ALL_CAPABILITIES,
    expires_at=START - timedelta(seconds=1),
)
ADMIN_OWNED_KEY = ApiKeyInfo(
    key_id="k-admin",
    owner_user_id="root",
    name="automation",
    capabilities=ALL_CAPABILITIES,
    expires_at=None,
)


@pytest.fixture
def resolver(codec, clock) -> CredentialResolver:
    store = InMemoryKeys(
        {"read-secret": READ_KEY, "old-secret": EXPIRED_KEY, "root-secret": ADMIN_OWNED_KEY}
    )
    return CredentialResolver(codec=codec, api_keys=store, clock=clock)


def _session_token(codec, *, subject: str = "alice", role: Role = Role.standard) -> str:
    return codec.issue(
        codec.claims_for(
            subject=subject, role=role, capabilities=ALL_CAPABILITIES, session_id="s-1"
        )
    )


async def _failure(resolver: CredentialResolver, credentials: Credentials) -> AuthFailure:
    with pytest.raises(AuthenticationError) as info:
        await resolver.resolve(credentials)
    return info.value.failure


@pytest.mark.asyncio
async def test_session_token_resolves_to_session_principal(resolver, codec) -> None:
    principal = await resolver.resolve(Credentials(bearer=_session_token(codec, role=Role.elevated)))

    assert principal.user_id == "alice"
    assert principal.role is Role.elevated
    assert principal.credential_kind is CredentialKind.session
    assert principal.session_id == "s-1"
    assert principal.capabilities == ALL_CAPABILITIES


@pytest.mark.asyncio
async def test_api_key_resolves_with_key_capabilities(resolver) -> None:
    principal = await resolver.resolve(Credentials(api_key="read-secret"))

    assert principal.user_id == "alice"
    assert principal.credential_kind is CredentialKind.api_key
    assert principal.capabilities == frozenset({Capability.read})
    assert principal.session_id is None


@pytest.mark.asyncio
async def test_api_key_principal_is_never_elevated(resolver) -> None:
    principal = await resolver.resolve(Credentials(api_key="root-secret"))
    assert principal.role is Role.standard
    assert not principal.is_elevated


@pytest.mark.asyncio
async def test_expired_key_fails_like_unknown_key(resolver) -> None:
    assert await _failure(resolver, Credentials(api_key="old-secret")) is AuthFailure.invalid_credential
    assert await _failure(resolver, Credentials(api_key="nope")) is AuthFailure.invalid_credential


@pytest.mark.asyncio
async def test_key_expires_at_exact_instant(resolver, clock) -> None:
    clock.now = READ_KEY.expires_at
    assert await _failure(resolver, Credentials(api_key="read-secret")) is AuthFailure.invalid_credential


@pytest.mark.asyncio
@pytest.mark.parametrize("credentials", [Credentials(), Credentials(bearer="", api_key="")])
async def test_missing_credentials_are_unauthenticated(resolver, credentials) -> None:
    assert await _failure(resolver, credentials) is AuthFailure.unauthenticated


@pytest.mark.asyncio
async def test_bad_session_token_is_unauthenticated(resolver) -> None:
    assert await _failure(resolver, Credentials(bearer="garbage")) is AuthFailure.unauthenticated


@pytest.mark.asyncio
async def test_bearer_wins_over_api_key(resolver, codec) -> None:
    principal = await resolver.resolve(
        Credentials(bearer=_session_token(codec, subject="bob"), api_key="read-secret")
    )
    assert principal.user_id == "bob"
    assert principal.credential_kind is CredentialKind.session

    # An invalid bearer is not rescued by a valid key.
    failure = await _failure(resolver, Credentials(bearer="garbage", api_key="read-secret"))
    assert failure is AuthFailure.unauthenticated


@pytest.mark.asyncio
async def test_failure_messages(resolver) -> None:
    with pytest.raises(AuthenticationError) as info:
        await resolver.resolve(Credentials())
    assert info.value.status_code == 401
    assert info.value.message == "No authentication was provided."

    with pytest.raises(AuthenticationError) as info:
        await resolver.resolve(Credentials(api_key="nope"))
    assert info.value.message == "The provided API key is invalid."
