"""
prosa_gate.api.app

FastAPI app factory for the Prosa auth gateway.

Responsibilities:
- Build the FastAPI application and register routers/middleware/error handlers.
- Initialize and dispose shared infrastructure (DB engine/session factory, signing keys).
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI

from prosa_gate.api.errors import register_exception_handlers
from prosa_gate.api.routers.auth import router as auth_router
from prosa_gate.api.routers.health import router as health_router
from prosa_gate.api.routers.jwks import router as jwks_router
from prosa_gate.api.routers.keys import router as keys_router
from prosa_gate.auth.clock import Clock, utcnow
from prosa_gate.auth.jwt import JwtConfig, SessionTokenCodec
from prosa_gate.auth.keys import KeyMaterialProvider
from prosa_gate.db.init_db import init_db
from prosa_gate.db.session import create_engine, create_sessionmaker
from prosa_gate.observability.logging import configure_logging, get_logger
from prosa_gate.observability.middleware import RequestContextMiddleware
from prosa_gate.settings import Settings

log = get_logger(__name__)


def create_app(
    *,
    settings: Settings,
    clock: Clock = utcnow,
    keys: KeyMaterialProvider | None = None,
) -> FastAPI:
    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        # Create the async DB engine and session factory once and stash them on app.state.
        # Routers obtain sessions via dependencies (see `prosa_gate.api.deps`).
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create tables automatically. Prod uses Alembic migrations.
            await init_db(engine)

        key_material = keys or KeyMaterialProvider.from_settings(settings)
        app.state.keys = key_material
        app.state.codec = SessionTokenCodec(
            cfg=JwtConfig(
                issuer=settings.jwt_issuer,
                ttl=timedelta(seconds=settings.session_token_ttl_seconds),
            ),
            keys=key_material,
            clock=clock,
        )
        try:
            yield
        finally:
            # Dispose the engine to close pools/FDs gracefully.
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Prosa Auth Gateway",
        version="0.1.0",
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.clock = clock

    app.add_middleware(RequestContextMiddleware)
    register_exception_handlers(app)
    app.include_router(health_router, tags=["health"])
    app.include_router(jwks_router)
    app.include_router(auth_router)
    app.include_router(keys_router)

    return app


# --- Module Notes -----------------------------------------------------------
# Content routers (books, shelves, annotations...) mount here and guard their
# handlers with `auth.deps.get_principal` + `auth.deps.enforce`.
