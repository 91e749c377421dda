"""User resource service: CRUD over users with role and ownership checks."""

from .api import app

__all__ = ["app"]
