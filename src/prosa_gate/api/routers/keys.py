"""
prosa_gate.api.routers.keys

API key administration for a user.

Responsibilities:
- Create keys (secret returned exactly once), list their ids, read and delete them.
- Require a session credential, validate input, then ask the decision engine.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_200_OK

from prosa_gate.api.deps import clock_dep, db_session
from prosa_gate.auth.clock import Clock
from prosa_gate.auth.deps import authorize_target_user, require_session_credential
from prosa_gate.auth.models import Capability, Principal, ResourceKind, sort_capabilities
from prosa_gate.services.api_key_service import (
    ApiKeyInfo,
    ApiKeyService,
    format_expiration,
    parse_capabilities,
    parse_expiration,
)

router = APIRouter(prefix="/users/{user_id}/keys", tags=["keys"])


class CreateKeyRequest(BaseModel):
    name: str
    capabilities: list[str]
    # RFC 3339 string or Unix milliseconds.
    expires_at: str | int | None = None


class CreateKeyResponse(BaseModel):
    id: str
    key: str


class KeyResponse(BaseModel):
    name: str
    capabilities: list[str]
    expires_at: str | None = None

    @classmethod
    def from_info(cls, info: ApiKeyInfo) -> KeyResponse:
        return cls(
            name=info.name,
            capabilities=[c.value for c in sort_capabilities(info.capabilities)],
            expires_at=format_expiration(info.expires_at) if info.expires_at else None,
        )


def _api_key_service(
    session: AsyncSession = Depends(db_session),
    clock: Clock = Depends(clock_dep),
) -> ApiKeyService:
    return ApiKeyService(session=session, clock=clock)


@router.post("", response_model=CreateKeyResponse)
async def create_key(
    user_id: str,
    body: CreateKeyRequest,
    principal: Principal = Depends(require_session_credential),
    session: AsyncSession = Depends(db_session),
    clock: Clock = Depends(clock_dep),
    service: ApiKeyService = Depends(_api_key_service),
) -> CreateKeyResponse:
    capabilities = parse_capabilities(body.capabilities)
    expires_at = parse_expiration(body.expires_at, now=clock())

    await authorize_target_user(
        principal=principal,
        target_user=user_id,
        capability=Capability.create,
        resource_kind=ResourceKind.api_key,
        session=session,
    )
    created = await service.create(
        owner_user_id=user_id,
        name=body.name,
        capabilities=capabilities,
        expires_at=expires_at,
    )
    return CreateKeyResponse(id=created.key_id, key=created.secret)


@router.get("", response_model=list[str])
async def list_keys(
    user_id: str,
    principal: Principal = Depends(require_session_credential),
    session: AsyncSession = Depends(db_session),
    service: ApiKeyService = Depends(_api_key_service),
) -> list[str]:
    await authorize_target_user(
        principal=principal,
        target_user=user_id,
        capability=Capability.read,
        resource_kind=ResourceKind.api_key,
        session=session,
    )
    return await service.list_ids(owner_user_id=user_id)


@router.get("/{key_id}", response_model=KeyResponse, response_model_exclude_none=True)
async def get_key(
    user_id: str,
    key_id: str,
    principal: Principal = Depends(require_session_credential),
    session: AsyncSession = Depends(db_session),
    service: ApiKeyService = Depends(_api_key_service),
) -> KeyResponse:
    await authorize_target_user(
        principal=principal,
        target_user=user_id,
        capability=Capability.read,
        resource_kind=ResourceKind.api_key,
        session=session,
    )
    info = await service.get(owner_user_id=user_id, key_id=key_id)
    return KeyResponse.from_info(info)


@router.delete("/{key_id}", status_code=HTTP_200_OK)
async def delete_key(
    user_id: str,
    key_id: str,
    principal: Principal = Depends(require_session_credential),
    session: AsyncSession = Depends(db_session),
    service: ApiKeyService = Depends(_api_key_service),
) -> Response:
    await authorize_target_user(
        principal=principal,
        target_user=user_id,
        capability=Capability.delete,
        resource_kind=ResourceKind.api_key,
        session=session,
    )
    await service.delete(owner_user_id=user_id, key_id=key_id)
    return Response(status_code=HTTP_200_OK)


# --- Module Notes -----------------------------------------------------------
# Every route is gated on the user named in the path. Key reads are then scoped
# by both path segments, so a key id under the wrong user is indistinguishable
# from an unknown id.
