"""
prosa_gate.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (e.g., the admin registration key).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Env-driven configuration (prefix `PROSA_`).
    Defaults are safe for local development; every layer receives the same object.
    """

    model_config = SettingsConfigDict(env_prefix="PROSA_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "prosa-gate"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 5000

    # Session tokens (RS256, published through the JWKS endpoint)
    jwt_issuer: str = "prosa"
    jwt_key_id: str = "prosa-key-1"
    # PEM file of the current signing key; generated on first start when missing.
    # `None` keeps a process-local key (tests).
    jwt_key_path: str | None = "library/jwt_signing_key.pem"
    # Retired signing keys kept for verification only: kid -> PEM path.
    jwt_previous_keys: dict[str, str] = Field(default_factory=dict)
    session_token_ttl_seconds: int = Field(default=900, ge=1)
    refresh_token_ttl_seconds: int = Field(default=604800, ge=1)

    # Registration
    admin_key: str = Field(default="", repr=False)
    allow_user_registration: bool = True

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./prosa.db"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Default lifetimes: 15 minutes for session tokens, one week for refresh tokens.
