"""Configuration management with dependency injection and validation."""

from .container import Container, setup_container
from .settings import FailurePolicy, Settings, get_settings

__all__ = [
    "Settings",
    "FailurePolicy",
    "get_settings",
    "Container",
    "setup_container",
]
