"""
prosa_gate.errors

Service-layer error taxonomy.

Responsibilities:
- Give every expected failure a typed kind with a fixed status code and message.
- Keep user-visible messages stable and free of internal identifiers.

Families:
- AuthenticationError: no / invalid / expired credential (401).
- TokenError: refresh-token rotation and logout failures.
- ApiKeyError: key validation and lookup failures.
- UserError: registration and login failures.
"""

from __future__ import annotations

import enum


class ErrorKind(enum.Enum):
    """
    Base for error-kind enums; member values are `(status_code, message)`.
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message


class AuthFailure(ErrorKind):
    unauthenticated = (401, "No authentication was provided.")
    invalid_credential = (401, "The provided API key is invalid.")


class TokenErrorKind(ErrorKind):
    invalid_token = (401, "The provided token is invalid.")
    token_not_found = (404, "The refresh token was not found or cannot be accessed.")


class ApiKeyErrorKind(ErrorKind):
    invalid_capabilities = (400, "Invalid or unsupported capabilities provided.")
    invalid_timestamp = (400, "Expiration timestamp is invalid or incorrectly formatted.")
    key_not_found = (404, "The requested key does not exist or is not accessible.")


class UserErrorKind(ErrorKind):
    user_conflict = (409, "The username is already taken.")
    user_not_found = (404, "The requested user does not exist or is not accessible.")
    invalid_credentials = (403, "Invalid credentials provided.")
    invalid_input = (400, "Username and password must not contain special characters.")
    username_too_big = (400, "Username must not exceed 20 characters.")
    password_too_big = (400, "Password must not exceed 256 characters.")
    registration_disabled = (403, "Registration without admin key is disabled.")


class ServiceError(Exception):
    """
    Expected failure mapped to an HTTP response by `api.errors`.
    """

    def __init__(self, kind: ErrorKind) -> None:
        super().__init__(kind.message)
        self.kind = kind

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    @property
    def message(self) -> str:
        return self.kind.message


class AuthenticationError(ServiceError):
    kind: AuthFailure

    def __init__(self, failure: AuthFailure) -> None:
        super().__init__(failure)

    @property
    def failure(self) -> AuthFailure:
        return self.kind


class TokenError(ServiceError):
    kind: TokenErrorKind


class ApiKeyError(ServiceError):
    kind: ApiKeyErrorKind


class UserError(ServiceError):
    kind: UserErrorKind


# --- Module Notes -----------------------------------------------------------
# Storage faults are not modeled here; they propagate unchanged and surface
# as a generic 500 from the app-level handler.
