"""Control-plane authentication."""

from .tokens import (
    AccessToken,
    AnonymousAuthProvider,
    AuthProvider,
    ClientCredentialsTokenProvider,
    TokenCache,
)

__all__ = [
    "AccessToken",
    "AnonymousAuthProvider",
    "AuthProvider",
    "ClientCredentialsTokenProvider",
    "TokenCache",
]
