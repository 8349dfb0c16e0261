"""
prosa_gate.db.models

Persistence schema for credentials.

Responsibilities:
- Define ORM models backing the credential stores:
  - User: login identity and role
  - AuthSession: server-tracked login lineage
  - RefreshToken: single-use opaque refresh tokens (digest only)
  - ApiKey: long-lived delegated credentials (digest only) with a capability subset
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, Enum, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from prosa_gate.auth.clock import to_db, utcnow
from prosa_gate.auth.models import Role
from prosa_gate.db.base import Base


def _utcnow() -> datetime:
    # Persist naive UTC timestamps; `auth.clock.from_db` re-attaches the zone on read.
    return to_db(utcnow())


def _new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    username: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    role: Mapped[Role] = mapped_column(Enum(Role), nullable=False, default=Role.standard)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)


class AuthSession(Base):
    __tablename__ = "auth_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[Role] = mapped_column(Enum(Role), nullable=False)
    capabilities: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    issued_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    ended_at: Mapped[datetime | None] = mapped_column(nullable=True)


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    # SHA-256 digest (base64) of the opaque token; the token itself is never stored.
    token_hash: Mapped[str] = mapped_column(String(64), primary_key=True)
    session_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("auth_sessions.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)

    issued_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    # Set exactly once, by the rotation or logout that consumed the token.
    revoked_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (Index("ix_refresh_tokens_session", "session_id", "revoked_at"),)


class ApiKey(Base):
    __tablename__ = "api_keys"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    key_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    # Capability names; validated against `auth.models.Capability` before insert.
    capabilities: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)

    __table_args__ = (Index("ix_api_keys_user_created", "user_id", "created_at"),)


# --- Module Notes -----------------------------------------------------------
# Capabilities live in a JSON column on the key row, so creating or deleting a key
# is a single-row write: readers observe the whole key or no key.
