"""
prosa_gate.api

HTTP surface of the auth gateway.

Responsibilities:
- FastAPI app factory, routers and error mapping.
- API-layer dependency wiring and request/response models.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Routers validate input, resolve the principal and delegate to `services`.
