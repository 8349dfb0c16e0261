"""
prosa_gate.api.errors

HTTP mapping for service-layer errors.

Responsibilities:
- Translate `ServiceError` kinds into `{"detail": message}` responses with the kind's status.
- Log every mapped failure with its kind for request-level tracing.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from prosa_gate.errors import ServiceError
from prosa_gate.observability.logging import get_logger

log = get_logger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
        log.info(
            "service_error",
            kind=f"{type(exc.kind).__name__}.{exc.kind.name}",
            status_code=exc.status_code,
        )
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# --- Module Notes -----------------------------------------------------------
# The body shape matches FastAPI's own `HTTPException` responses, so clients parse
# one error format whichever layer rejected the request.
