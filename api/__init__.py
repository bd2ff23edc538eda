"""HTTP surface for the agent router."""

from .app import create_app

__all__ = ["create_app"]
