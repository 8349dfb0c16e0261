"""
prosa_gate.auth.models

Auth domain models.

Responsibilities:
- Define the closed vocabularies (capabilities, roles, credential kinds, verdicts).
- Define the resolved caller identity (`Principal`) injected into endpoints.
- Define the `AuthorizationQuery` consumed by the decision engine.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass


class Capability(enum.StrEnum):
    # Values are part of the public API (request bodies, token claims, DB rows).
    create = "Create"
    read = "Read"
    update = "Update"
    delete = "Delete"


ALL_CAPABILITIES: frozenset[Capability] = frozenset(Capability)


class Role(enum.StrEnum):
    standard = "standard"
    elevated = "elevated"


class CredentialKind(enum.StrEnum):
    session = "session"
    api_key = "api_key"


class Decision(enum.StrEnum):
    allow = "ALLOW"
    not_found = "NOT_FOUND"
    forbidden = "FORBIDDEN"


class ResourceKind(enum.StrEnum):
    """
    Resource families guarded by the decision engine.
    Each kind owns the fixed message used when the engine answers `NotFound`.
    """

    book = "book"
    cover = "cover"
    metadata = "metadata"
    annotation = "annotation"
    state = "state"
    shelf = "shelf"
    shelf_book = "shelf_book"
    sync = "sync"
    user = "user"
    api_key = "api_key"

    @property
    def not_found_message(self) -> str:
        return _NOT_FOUND_MESSAGES[self]


_NOT_FOUND_MESSAGES: dict[ResourceKind, str] = {
    ResourceKind.book: "The requested book does not exist or is not accessible.",
    ResourceKind.cover: "The requested cover does not exist or is not accessible.",
    ResourceKind.metadata: "The requested metadata does not exist or is not accessible.",
    ResourceKind.annotation: "The requested annotation does not exist or is not accessible.",
    ResourceKind.state: "The requested state does not exist or is not accessible.",
    ResourceKind.shelf: "The requested shelf does not exist or is not accessible.",
    ResourceKind.shelf_book: "The provided book does not exist in this shelf, or is not accessible.",
    ResourceKind.sync: "The requested sync data does not exist or is not accessible.",
    ResourceKind.user: "The requested user does not exist or is not accessible.",
    ResourceKind.api_key: "The requested key does not exist or is not accessible.",
}


def capabilities_for_role(role: Role) -> frozenset[Capability]:
    """
    Capabilities granted to a session credential of `role`.

    Every role maps to the full set. Elevation widens ownership rules in
    `decide`, not the capability set; only API keys carry a narrower set.
    """

    return ALL_CAPABILITIES


def sort_capabilities(capabilities: Iterable[Capability]) -> list[Capability]:
    return sorted(capabilities, key=lambda c: c.value)


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Resolved caller identity for one request.
    """

    user_id: str
    role: Role
    capabilities: frozenset[Capability]
    credential_kind: CredentialKind
    session_id: str | None = None

    @property
    def is_elevated(self) -> bool:
        return self.role is Role.elevated

    def has(self, capability: Capability) -> bool:
        return self.is_elevated or capability in self.capabilities


@dataclass(frozen=True, slots=True)
class AuthorizationQuery:
    """
    One access decision.

    Exactly one of `resource_owner` (the resource exists) or `target_user`
    (creation-style call naming an owner) is set.
    """

    principal: Principal
    operation_capability: Capability
    resource_kind: ResourceKind
    resource_owner: str | None = None
    target_user: str | None = None

    def __post_init__(self) -> None:
        if (self.resource_owner is None) == (self.target_user is None):
            raise ValueError("exactly one of resource_owner or target_user must be set")


# --- Module Notes -----------------------------------------------------------
# Capability names are parsed into `Capability` at the input boundary
# (`services.api_key_service.parse_capabilities`); nothing downstream handles raw strings.
