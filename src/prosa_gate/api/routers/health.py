"""
prosa_gate.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`).
- Provide readiness probe (`/readyz`): credential database reachable and a signing key loaded.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from prosa_gate.api.deps import db_session, keys_dep
from prosa_gate.auth.keys import KeyMaterialProvider

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(
    session: AsyncSession = Depends(db_session),
    keys: KeyMaterialProvider = Depends(keys_dep),
) -> dict[str, str]:
    await session.execute(text("SELECT 1"))
    return {"status": "ready", "signing_kid": keys.current_kid}


# --- Module Notes -----------------------------------------------------------
# Both dependencies are created by the app lifespan; before it runs, `/readyz` fails.
