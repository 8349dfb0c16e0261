"""
prosa_gate.db.repositories

Repository package.

Responsibilities:
- Group data-access repositories for users, sessions/refresh tokens and API keys.
"""

# Package marker; repositories are imported directly from submodules.


# --- Module Notes -----------------------------------------------------------
# Repositories are thin; validation and lifecycle rules belong in `prosa_gate.services`.
