"""
prosa_gate

Top-level package for the Prosa auth gateway: credential issuance, credential
resolution and per-resource access decisions for the content API.

Responsibilities:
- Expose package version metadata.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"


# --- Module Notes -----------------------------------------------------------
# Importing this package has no side effects; configuration is read in `settings`.
