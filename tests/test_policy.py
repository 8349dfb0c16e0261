"""
tests.test_policy

Access decision engine.

Responsibilities:
- Pin the evaluation order: elevation, ownership/visibility, capability.
- Cover the API-key scenarios (owner with too few capabilities, non-owner with enough).
"""

from __future__ import annotations

import pytest

from prosa_gate.auth.models import (
    ALL_CAPABILITIES,
    AuthorizationQuery,
    Capability,
    CredentialKind,
    Decision,
    Principal,
    ResourceKind,
    Role,
    capabilities_for_role,
)
from prosa_gate.auth.policy import decide, require_same_owner


def _principal(
    user_id: str = "alice",
    *,
    role: Role = Role.standard,
    capabilities: frozenset[Capability] = ALL_CAPABILITIES,
    kind: CredentialKind = CredentialKind.session,
) -> Principal:
    return Principal(user_id=user_id, role=role, capabilities=capabilities, credential_kind=kind)


@pytest.mark.parametrize("capability", list(Capability))
@pytest.mark.parametrize(
    "capabilities",
    [frozenset(), frozenset({Capability.read}), ALL_CAPABILITIES],
)
def test_foreign_resource_is_not_found_regardless_of_capability(capability, capabilities) -> None:
    query = AuthorizationQuery(
        principal=_principal("alice", capabilities=capabilities),
        operation_capability=capability,
        resource_kind=ResourceKind.book,
        resource_owner="bob",
    )
    assert decide(query) is Decision.not_found


def test_owner_with_read_only_key_cannot_update() -> None:
    principal = _principal(
        "alice", capabilities=frozenset({Capability.read}), kind=CredentialKind.api_key
    )
    query = AuthorizationQuery(
        principal=principal,
        operation_capability=Capability.update,
        resource_kind=ResourceKind.book,
        resource_owner="alice",
    )
    assert decide(query) is Decision.forbidden


def test_non_owner_with_update_key_gets_not_found() -> None:
    principal = _principal(
        "bob", capabilities=frozenset({Capability.update}), kind=CredentialKind.api_key
    )
    query = AuthorizationQuery(
        principal=principal,
        operation_capability=Capability.update,
        resource_kind=ResourceKind.annotation,
        resource_owner="alice",
    )
    assert decide(query) is Decision.not_found


def test_foreign_target_user_is_forbidden() -> None:
    query = AuthorizationQuery(
        principal=_principal("alice"),
        operation_capability=Capability.create,
        resource_kind=ResourceKind.shelf,
        target_user="bob",
    )
    assert decide(query) is Decision.forbidden


def test_own_target_user_requires_capability() -> None:
    principal = _principal("alice", capabilities=frozenset({Capability.read}))
    allowed = AuthorizationQuery(
        principal=principal,
        operation_capability=Capability.read,
        resource_kind=ResourceKind.shelf,
        target_user="alice",
    )
    denied = AuthorizationQuery(
        principal=principal,
        operation_capability=Capability.create,
        resource_kind=ResourceKind.shelf,
        target_user="alice",
    )
    assert decide(allowed) is Decision.allow
    assert decide(denied) is Decision.forbidden


def test_elevated_bypasses_ownership() -> None:
    admin = _principal("root", role=Role.elevated)
    for query in (
        AuthorizationQuery(
            principal=admin,
            operation_capability=Capability.delete,
            resource_kind=ResourceKind.book,
            resource_owner="alice",
        ),
        AuthorizationQuery(
            principal=admin,
            operation_capability=Capability.create,
            resource_kind=ResourceKind.api_key,
            target_user="alice",
        ),
    ):
        assert decide(query) is Decision.allow


def test_query_requires_exactly_one_owner_field() -> None:
    with pytest.raises(ValueError):
        AuthorizationQuery(
            principal=_principal(),
            operation_capability=Capability.read,
            resource_kind=ResourceKind.book,
        )
    with pytest.raises(ValueError):
        AuthorizationQuery(
            principal=_principal(),
            operation_capability=Capability.read,
            resource_kind=ResourceKind.book,
            resource_owner="alice",
            target_user="alice",
        )


def test_same_owner_rule_is_independent_of_caller() -> None:
    assert require_same_owner("alice", "alice") is Decision.allow
    assert require_same_owner("alice", "bob") is Decision.forbidden


def test_not_found_messages_name_the_resource() -> None:
    assert ResourceKind.book.not_found_message == (
        "The requested book does not exist or is not accessible."
    )
    assert ResourceKind.api_key.not_found_message == (
        "The requested key does not exist or is not accessible."
    )


@pytest.mark.parametrize("role", list(Role))
def test_session_capabilities_do_not_depend_on_role(role: Role) -> None:
    assert capabilities_for_role(role) == ALL_CAPABILITIES


# --- Module Notes -----------------------------------------------------------
# The engine is pure; these tests need no clock, database or app.
