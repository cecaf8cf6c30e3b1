"""
Dependency injection container wiring the client from settings.

The container owns the process-lifetime objects: the credential cache, the
HTTP connection pools and the transport binding. Closing the container closes
the pools.
"""

from contextlib import asynccontextmanager
from typing import Any

import httpx

from ..observability.logging import get_logger
from .settings import Settings, get_settings

logger = get_logger(__name__)


class Container:
    """Lazily builds and caches services by name."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._services: dict[str, Any] = {}
        self._factories: dict[str, Any] = {}
        self._singletons: dict[str, Any] = {}

    def register_factory(self, name: str, factory: Any) -> None:
        """Register a factory function for a service."""
        self._factories[name] = factory

    def register_singleton(self, name: str, instance: Any) -> None:
        """Register a ready-made instance, overriding any factory."""
        self._singletons[name] = instance

    def get(self, name: str, default: Any = None) -> Any:
        """Get a service by name."""
        if name in self._singletons:
            return self._singletons[name]

        if name in self._services:
            return self._services[name]

        if name in self._factories:
            instance = self._factories[name](self)
            self._services[name] = instance
            return instance

        return default

    async def cleanup(self) -> None:
        """Close HTTP clients created by this container."""
        for name, service in list(self._services.items()):
            if isinstance(service, httpx.AsyncClient):
                try:
                    await service.aclose()
                except Exception as e:
                    logger.warning("Error closing service", service=name, error=str(e))
        self._services.clear()

    @asynccontextmanager
    async def lifespan(self):
        """Async context manager for container lifecycle."""
        try:
            yield self
        finally:
            await self.cleanup()


def setup_container(settings: Settings | None = None) -> Container:
    """Setup container with default service factories."""
    container = Container(settings)

    def _token_cache_factory(c: Container):
        from ..auth.tokens import TokenCache

        return TokenCache()

    def _http_client_factory(c: Container):
        cp = c.settings.control_plane
        return httpx.AsyncClient(
            base_url=cp.base_url,
            timeout=httpx.Timeout(cp.timeout),
            limits=httpx.Limits(max_connections=cp.max_connections, max_keepalive_connections=5),
        )

    def _token_http_client_factory(c: Container):
        return httpx.AsyncClient(timeout=httpx.Timeout(c.settings.auth.timeout))

    def _auth_provider_factory(c: Container):
        from ..auth.tokens import AnonymousAuthProvider, ClientCredentialsTokenProvider

        auth = c.settings.auth
        if not auth.enabled:
            return AnonymousAuthProvider()
        return ClientCredentialsTokenProvider(
            c.get("token_http_client"),
            auth.token_url,
            auth.client_id,
            auth.client_secret.get_secret_value() if auth.client_secret else "",
            scope=auth.scope,
            registration_id=auth.registration_id,
            cache=c.get("token_cache"),
            expiry_skew_seconds=auth.expiry_skew_seconds,
            default_token_lifetime=auth.default_token_lifetime,
        )

    def _transport_factory(c: Container):
        from ..transport import create_transport

        return create_transport(
            c.settings.control_plane.transport, c.get("http_client"), c.get("auth_provider")
        )

    def _status_factory(c: Container):
        from ..status import StatusAggregator

        return StatusAggregator(c.get("transport"), page_size=c.settings.control_plane.page_size)

    def _registry_factory(c: Container):
        from ..registry import AppRegistry

        catalog = c.settings.catalog
        return AppRegistry(
            c.get("transport"),
            catalog.url,
            failure_policy=catalog.failure_policy,
            catalog_timeout=catalog.timeout,
            page_size=c.settings.control_plane.page_size,
        )

    def _streams_factory(c: Container):
        from ..streams import StreamLifecycle

        return StreamLifecycle(c.get("transport"), c.get("status"))

    def _client_factory(c: Container):
        from ..client import DataflowClient

        return DataflowClient(c.get("registry"), c.get("streams"), c.get("status"), container=c)

    container.register_factory("token_cache", _token_cache_factory)
    container.register_factory("http_client", _http_client_factory)
    container.register_factory("token_http_client", _token_http_client_factory)
    container.register_factory("auth_provider", _auth_provider_factory)
    container.register_factory("transport", _transport_factory)
    container.register_factory("status", _status_factory)
    container.register_factory("registry", _registry_factory)
    container.register_factory("streams", _streams_factory)
    container.register_factory("client", _client_factory)

    return container
