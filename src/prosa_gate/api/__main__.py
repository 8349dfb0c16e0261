"""
prosa_gate.api.__main__

Entrypoint for running the gateway via `python -m prosa_gate.api`.

Responsibilities:
- Load settings, create the app and start uvicorn (structlog owns log output).
"""

from __future__ import annotations

import uvicorn

from prosa_gate.api.app import create_app
from prosa_gate.settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
    )


if __name__ == "__main__":
    main()
