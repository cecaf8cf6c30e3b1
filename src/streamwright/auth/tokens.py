"""
OAuth2 client-credentials token acquisition and caching.

The credential cache is the only shared mutable state in the client. It holds
one token and one lock per registration id; a refresh happens under that lock,
so concurrent callers that find the token expired wait for the single
in-flight exchange and then read its result.
"""

import asyncio
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt

from ..exceptions import AuthenticationError
from ..observability.logging import get_logger
from ..observability.metrics import get_metrics_collector

log = get_logger("swr.auth")


@dataclass(frozen=True)
class AccessToken:
    """An acquired bearer token. ``expires_at`` is on the cache clock."""

    value: str
    expires_at: float
    token_type: str = "Bearer"
    scope: str | None = None

    def is_valid(self, now: float, skew: float = 0.0) -> bool:
        return now < self.expires_at - skew

    @property
    def header_value(self) -> str:
        return f"Bearer {self.value}"


class TokenCache:
    """Lock-guarded credential store keyed by registration id.

    Lives as long as the container that created it.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._tokens: dict[str, AccessToken] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._guard = threading.Lock()

    def get(self, registration_id: str) -> AccessToken | None:
        with self._guard:
            return self._tokens.get(registration_id)

    def put(self, registration_id: str, token: AccessToken) -> None:
        with self._guard:
            self._tokens[registration_id] = token

    def invalidate(self, registration_id: str) -> None:
        with self._guard:
            self._tokens.pop(registration_id, None)

    def lock_for(self, registration_id: str) -> asyncio.Lock:
        """Refresh lock for one registration id."""
        with self._guard:
            lock = self._locks.get(registration_id)
            if lock is None:
                lock = self._locks[registration_id] = asyncio.Lock()
            return lock


class AuthProvider(ABC):
    """Supplies the authentication header for outbound control-plane calls."""

    @abstractmethod
    async def get_auth_header(self) -> dict[str, str]:
        """Return headers to merge into the request."""

    async def close(self) -> None:
        """Release the connection pool used to reach the token endpoint, if any."""


class AnonymousAuthProvider(AuthProvider):
    """Used when the control plane runs without authentication."""

    async def get_auth_header(self) -> dict[str, str]:
        return {}


class ClientCredentialsTokenProvider(AuthProvider):
    """Client-credentials grant with transparent re-acquisition on expiry."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token_url: str,
        client_id: str,
        client_secret: str,
        *,
        scope: str | None = None,
        registration_id: str = "scdf",
        cache: TokenCache | None = None,
        expiry_skew_seconds: float = 30.0,
        default_token_lifetime: float = 300.0,
    ):
        self._http = http_client
        self.token_url = token_url
        self.client_id = client_id
        self._client_secret = client_secret
        self.scope = scope
        self.registration_id = registration_id
        self.cache = cache or TokenCache()
        self.expiry_skew_seconds = expiry_skew_seconds
        self.default_token_lifetime = default_token_lifetime

    async def get_auth_header(self) -> dict[str, str]:
        token = await self.get_token()
        return {"Authorization": token.header_value}

    async def get_token(self) -> AccessToken:
        """Return a valid token, acquiring one if the cached token is missing or expiring."""
        token = self._cached_valid_token()
        if token is not None:
            return token

        async with self.cache.lock_for(self.registration_id):
            # Another caller may have refreshed while we waited
            token = self._cached_valid_token()
            if token is not None:
                return token

            token = await self._acquire()
            self.cache.put(self.registration_id, token)
            return token

    def invalidate(self) -> None:
        self.cache.invalidate(self.registration_id)

    async def close(self) -> None:
        await self._http.aclose()

    def _cached_valid_token(self) -> AccessToken | None:
        token = self.cache.get(self.registration_id)
        if token is not None and token.is_valid(self.cache.clock(), self.expiry_skew_seconds):
            return token
        return None

    async def _acquire(self) -> AccessToken:
        metrics = get_metrics_collector()
        try:
            response = await self._request_token()
        except httpx.TransportError as e:
            metrics.record_token_acquisition(self.registration_id, success=False)
            log.error("Token endpoint unreachable", registration_id=self.registration_id, error=str(e))
            raise AuthenticationError(f"Token endpoint unreachable: {e}") from e

        if not response.is_success:
            metrics.record_token_acquisition(self.registration_id, success=False)
            log.error(
                "Token request rejected",
                registration_id=self.registration_id,
                status_code=response.status_code,
            )
            raise AuthenticationError(
                f"Token endpoint returned {response.status_code}: {response.text}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            metrics.record_token_acquisition(self.registration_id, success=False)
            raise AuthenticationError(f"Token endpoint returned invalid JSON: {e}") from e

        value = payload.get("access_token") if isinstance(payload, dict) else None
        if not value:
            metrics.record_token_acquisition(self.registration_id, success=False)
            raise AuthenticationError("Token response did not contain an access_token")

        lifetime = payload.get("expires_in") or self.default_token_lifetime
        try:
            lifetime = float(lifetime)
        except (TypeError, ValueError):
            lifetime = self.default_token_lifetime

        metrics.record_token_acquisition(self.registration_id, success=True)
        log.info(
            "Acquired access token",
            registration_id=self.registration_id,
            expires_in=lifetime,
        )
        return AccessToken(
            value=value,
            expires_at=self.cache.clock() + lifetime,
            token_type=payload.get("token_type", "Bearer"),
            scope=payload.get("scope"),
        )

    # One immediate retry on network failure; HTTP error responses are final.
    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(2),
        reraise=True,
    )
    async def _request_token(self) -> httpx.Response:
        data = {"grant_type": "client_credentials"}
        if self.scope:
            data["scope"] = self.scope
        return await self._http.post(
            self.token_url,
            data=data,
            auth=(self.client_id, self._client_secret),
            headers={"Accept": "application/json"},
        )
