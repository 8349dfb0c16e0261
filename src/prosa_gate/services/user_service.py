"""
prosa_gate.services.user_service

User registration and password login.

Responsibilities:
- Validate usernames/passwords and create users (argon2id password hashes).
- Grant the elevated role when the configured admin key is presented.
- Verify credentials at login and hand back the user for session opening.
"""

from __future__ import annotations

import hmac
import re

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from prosa_gate.auth.models import Role
from prosa_gate.auth.secrets import hash_password, verify_password
from prosa_gate.db.models import User
from prosa_gate.db.repositories.users import UserRepo
from prosa_gate.errors import UserError, UserErrorKind
from prosa_gate.observability.logging import get_logger
from prosa_gate.settings import Settings

log = get_logger(__name__)

MAX_USERNAME_LENGTH = 20
MAX_PASSWORD_LENGTH = 256

_USERNAME_RE = re.compile(r"^[\w.!@-]+$")
_PASSWORD_RE = re.compile(r"^[\w.!@#$%^&*-]+$")


def validate_user_input(username: str, password: str) -> None:
    if len(username) > MAX_USERNAME_LENGTH:
        raise UserError(UserErrorKind.username_too_big)
    if len(password) > MAX_PASSWORD_LENGTH:
        raise UserError(UserErrorKind.password_too_big)
    if not _USERNAME_RE.fullmatch(username) or not _PASSWORD_RE.fullmatch(password):
        raise UserError(UserErrorKind.invalid_input)


class UserService:
    def __init__(self, *, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._settings = settings
        self._users = UserRepo(session)

    def _role_for(self, admin_key: str | None) -> Role:
        if admin_key is None:
            if not self._settings.allow_user_registration:
                raise UserError(UserErrorKind.registration_disabled)
            return Role.standard
        configured = self._settings.admin_key
        if not configured or not hmac.compare_digest(configured.encode(), admin_key.encode()):
            raise UserError(UserErrorKind.invalid_credentials)
        return Role.elevated

    async def register(self, *, username: str, password: str, admin_key: str | None = None) -> User:
        validate_user_input(username, password)
        role = self._role_for(admin_key)

        if await self._users.get_by_username(username) is not None:
            raise UserError(UserErrorKind.user_conflict)
        try:
            user = await self._users.create(
                username=username,
                password_hash=hash_password(password),
                role=role,
            )
            await self._session.commit()
        except IntegrityError as e:
            # Concurrent registration of the same name.
            await self._session.rollback()
            raise UserError(UserErrorKind.user_conflict) from e

        log.info("user_registered", user_id=user.id, role=user.role.value)
        return user

    async def authenticate(self, *, username: str, password: str) -> User:
        validate_user_input(username, password)

        user = await self._users.get_by_username(username)
        if user is None:
            raise UserError(UserErrorKind.user_not_found)
        if not verify_password(user.password_hash, password):
            log.warning("login_failed", user_id=user.id)
            raise UserError(UserErrorKind.invalid_credentials)
        return user


# --- Module Notes -----------------------------------------------------------
# `authenticate` only checks credentials; the caller opens the session through
# `services.session_service.SessionService.open`.
