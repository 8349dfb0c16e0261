"""
prosa_gate.services

Service-layer package.

Responsibilities:
- Own transaction boundaries for users, sessions/refresh tokens and API keys.
- Raise typed `errors.ServiceError` subclasses for expected failures.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services take an `AsyncSession` and an injectable clock; tests pass fixed clocks.
