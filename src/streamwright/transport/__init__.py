"""Transport bindings for control-plane access."""

import httpx

from ..auth.tokens import AuthProvider
from .base import ContentType, Request, Response, Transport, resolve_path
from .http import HttpxTransport

TRANSPORT_BINDINGS: dict[str, type[Transport]] = {
    "http": HttpxTransport,
}


def create_transport(
    binding: str, client: httpx.AsyncClient, auth: AuthProvider | None = None
) -> Transport:
    """Instantiate the transport binding selected by configuration."""
    try:
        transport_cls = TRANSPORT_BINDINGS[binding]
    except KeyError:
        raise ValueError(
            f"Unknown transport binding '{binding}'; expected one of {sorted(TRANSPORT_BINDINGS)}"
        ) from None
    return transport_cls(client, auth)


__all__ = [
    "ContentType",
    "HttpxTransport",
    "Request",
    "Response",
    "Transport",
    "TRANSPORT_BINDINGS",
    "create_transport",
    "resolve_path",
]
