"""
prosa_gate.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Convert a bearer session token or an `api-key` header into a typed `Principal`.
- Map decision-engine verdicts onto HTTP errors.
- Restrict credential administration to session credentials.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN, HTTP_404_NOT_FOUND

from prosa_gate.api.deps import clock_dep, codec_dep, db_session
from prosa_gate.auth.clock import Clock
from prosa_gate.auth.jwt import SessionTokenCodec
from prosa_gate.auth.models import (
    AuthorizationQuery,
    Capability,
    CredentialKind,
    Decision,
    Principal,
    ResourceKind,
)
from prosa_gate.auth.policy import decide
from prosa_gate.auth.resolver import CredentialResolver, Credentials
from prosa_gate.db.repositories.users import UserRepo
from prosa_gate.errors import AuthenticationError
from prosa_gate.services.api_key_service import ApiKeyService

FORBIDDEN_MESSAGE = "Forbidden."

_bearer = HTTPBearer(auto_error=False)
_api_key = APIKeyHeader(name="api-key", auto_error=False)


async def get_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    api_key: str | None = Depends(_api_key),
    session: AsyncSession = Depends(db_session),
    codec: SessionTokenCodec = Depends(codec_dep),
    clock: Clock = Depends(clock_dep),
) -> Principal:
    resolver = CredentialResolver(
        codec=codec,
        api_keys=ApiKeyService(session=session, clock=clock),
        clock=clock,
    )
    credentials = Credentials(bearer=creds.credentials if creds else None, api_key=api_key)
    try:
        return await resolver.resolve(credentials)
    except AuthenticationError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail=e.message) from e


def require_session_credential(principal: Principal = Depends(get_principal)) -> Principal:
    # API keys cannot mint, list or revoke other keys.
    if principal.credential_kind is not CredentialKind.session:
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail=FORBIDDEN_MESSAGE)
    return principal


def enforce(query: AuthorizationQuery) -> None:
    decision = decide(query)
    if decision is Decision.not_found:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail=query.resource_kind.not_found_message)
    if decision is Decision.forbidden:
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail=FORBIDDEN_MESSAGE)


async def authorize_target_user(
    *,
    principal: Principal,
    target_user: str,
    capability: Capability,
    resource_kind: ResourceKind,
    session: AsyncSession,
) -> None:
    """
    Guard an operation on resources owned by `target_user` (path parameter).

    Only callers that may act for `target_user` learn whether that user exists;
    everyone else gets the ownership verdict first.
    """

    if principal.is_elevated or principal.user_id == target_user:
        if not await UserRepo(session).exists(target_user):
            raise HTTPException(
                status_code=HTTP_404_NOT_FOUND, detail=ResourceKind.user.not_found_message
            )
    enforce(
        AuthorizationQuery(
            principal=principal,
            operation_capability=capability,
            resource_kind=resource_kind,
            target_user=target_user,
        )
    )


# --- Module Notes -----------------------------------------------------------
# Routers depend on `get_principal` (or `require_session_credential`) and call
# `enforce`/`authorize_target_user` once per guarded operation.
