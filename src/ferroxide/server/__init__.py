"""HTTP service wrapping every response in CORS headers."""

from .app import create_app

__all__ = ["create_app"]
