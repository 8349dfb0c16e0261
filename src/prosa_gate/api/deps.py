"""
prosa_gate.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions and the shared auth objects.
- Encapsulate app.state access patterns (engine/sessionmaker/keys/codec/clock).
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from prosa_gate.auth.clock import Clock
from prosa_gate.auth.jwt import SessionTokenCodec
from prosa_gate.auth.keys import KeyMaterialProvider
from prosa_gate.settings import Settings


def settings_dep(request: Request) -> Settings:
    # The app is built around one Settings object (see `api.app.create_app`).
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # The sessionmaker is created in the app lifespan (`prosa_gate.api.app`).
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Commit/rollback is managed explicitly by the service layer.
    async with session_factory() as session:
        yield session


def keys_dep(request: Request) -> KeyMaterialProvider:
    return request.app.state.keys  # type: ignore[attr-defined]


def codec_dep(request: Request) -> SessionTokenCodec:
    return request.app.state.codec  # type: ignore[attr-defined]


def clock_dep(request: Request) -> Clock:
    return request.app.state.clock  # type: ignore[attr-defined]


# --- Module Notes -----------------------------------------------------------
# Tests swap the clock and key material through `create_app` arguments rather than
# dependency overrides, so every layer sees the same instances.
