"""
prosa_gate.api.routers.jwks

Public key discovery.

Responsibilities:
- Serve the JWKS document so third parties can verify session tokens offline.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from prosa_gate.api.deps import keys_dep
from prosa_gate.auth.keys import KeyMaterialProvider

router = APIRouter(tags=["jwks"])


@router.get("/.well-known/jwks.json")
async def jwks(keys: KeyMaterialProvider = Depends(keys_dep)) -> dict[str, list[dict[str, Any]]]:
    return keys.jwks()
