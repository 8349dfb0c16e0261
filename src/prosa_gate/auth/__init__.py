"""
prosa_gate.auth

Authentication/authorization package.

Responsibilities:
- Signing keys, session token codec and opaque secret helpers.
- Credential resolution into a `Principal`.
- The access decision engine and its FastAPI glue.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Everything except `deps` is framework-free and unit-tested without an app.
