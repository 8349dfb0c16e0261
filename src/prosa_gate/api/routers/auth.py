"""
prosa_gate.api.routers.auth

Account and session endpoints.

Responsibilities:
- Register users (elevated when the configured admin key is supplied).
- Log in with username/password and receive a session token + refresh token.
- Rotate refresh tokens and log out.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_204_NO_CONTENT

from prosa_gate.api.deps import clock_dep, codec_dep, db_session, settings_dep
from prosa_gate.auth.clock import Clock
from prosa_gate.auth.jwt import SessionTokenCodec
from prosa_gate.services.session_service import IssuedSession, SessionService
from prosa_gate.services.user_service import UserService
from prosa_gate.settings import Settings

router = APIRouter(prefix="/auth", tags=["auth"])


class UserCredentialsRequest(BaseModel):
    username: str
    password: str


class RegisterRequest(UserCredentialsRequest):
    admin_key: str | None = None


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class SessionResponse(BaseModel):
    jwt_token: str
    refresh_token: str
    user_id: str

    @classmethod
    def from_issued(cls, issued: IssuedSession) -> SessionResponse:
        return cls(
            jwt_token=issued.session_token,
            refresh_token=issued.refresh_token,
            user_id=issued.user_id,
        )


def _session_service(
    session: AsyncSession = Depends(db_session),
    codec: SessionTokenCodec = Depends(codec_dep),
    settings: Settings = Depends(settings_dep),
    clock: Clock = Depends(clock_dep),
) -> SessionService:
    return SessionService(session=session, codec=codec, settings=settings, clock=clock)


@router.post("/register", response_model=SessionResponse)
async def register(
    body: RegisterRequest,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    sessions: SessionService = Depends(_session_service),
) -> SessionResponse:
    user = await UserService(session=session, settings=settings).register(
        username=body.username,
        password=body.password,
        admin_key=body.admin_key,
    )
    return SessionResponse.from_issued(await sessions.open(user))


@router.post("/login", response_model=SessionResponse)
async def login(
    body: UserCredentialsRequest,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    sessions: SessionService = Depends(_session_service),
) -> SessionResponse:
    user = await UserService(session=session, settings=settings).authenticate(
        username=body.username,
        password=body.password,
    )
    return SessionResponse.from_issued(await sessions.open(user))


@router.post("/refresh", response_model=SessionResponse)
async def refresh(
    body: RefreshTokenRequest,
    sessions: SessionService = Depends(_session_service),
) -> SessionResponse:
    return SessionResponse.from_issued(await sessions.rotate(body.refresh_token))


@router.post("/logout", status_code=HTTP_204_NO_CONTENT)
async def logout(
    body: RefreshTokenRequest,
    sessions: SessionService = Depends(_session_service),
) -> Response:
    await sessions.invalidate(body.refresh_token)
    return Response(status_code=HTTP_204_NO_CONTENT)


# --- Module Notes -----------------------------------------------------------
# Register, login and refresh share one response shape; clients replace both
# tokens on every call.
