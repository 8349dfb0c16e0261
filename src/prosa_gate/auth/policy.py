"""
prosa_gate.auth.policy

Access decision engine shared by every resource family.

Responsibilities:
- Answer one `AuthorizationQuery` with Allow / NotFound / Forbidden.
- Hide the existence of resources from callers who do not own them.
- Keep business invariants (same-owner checks between two resources) out of
  the caller-identity decision.
"""

from __future__ import annotations

from prosa_gate.auth.models import AuthorizationQuery, Decision


def decide(query: AuthorizationQuery) -> Decision:
    """
    Evaluation order is fixed:

    1. elevated role skips the ownership gate;
    2. ownership: a foreign existing resource is `NotFound`, a foreign
       creation target is `Forbidden`;
    3. capability: a missing capability is `Forbidden`;
    4. `Allow`.

    An ownership mismatch always wins over a capability mismatch, so a
    non-owner can never tell "forbidden" from "does not exist".
    """

    principal = query.principal

    if not principal.is_elevated:
        if query.resource_owner is not None and query.resource_owner != principal.user_id:
            return Decision.not_found
        if query.target_user is not None and query.target_user != principal.user_id:
            return Decision.forbidden

    if not principal.has(query.operation_capability):
        return Decision.forbidden

    return Decision.allow


def require_same_owner(first_owner: str, second_owner: str) -> Decision:
    # Business rule (e.g. book and shelf must share an owner); independent of the caller.
    return Decision.allow if first_owner == second_owner else Decision.forbidden


# --- Module Notes -----------------------------------------------------------
# Handlers call `decide` once per guarded operation and map the verdict through
# `auth.deps.enforce`; none of them re-implement ownership checks.
