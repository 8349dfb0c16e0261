"""
prosa_gate.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, and the credential repositories.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Stores are injected per request (see `api.deps`); nothing here is a process-wide singleton.
