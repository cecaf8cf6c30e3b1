"""HTTP tool surface for the orchestration client."""

from .server import create_app, get_client

__all__ = ["create_app", "get_client"]
