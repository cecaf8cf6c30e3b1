"""
Client facade over the registry, lifecycle and status components.
"""

from typing import TYPE_CHECKING

from .models import AppRegistration, BulkRegistrationResult, StreamDefinition, StreamStatus
from .registry import AppRegistry
from .status import StatusAggregator
from .streams import StreamLifecycle

if TYPE_CHECKING:
    from .config.container import Container
    from .config.settings import Settings


class DataflowClient:
    """
    Drives a stream-orchestration control plane.

    Usage:
        >>> async with DataflowClient.from_settings() as client:
        ...     await client.register_app("log", "sink", "maven://org.example:log-sink:1.0")
        ...     await client.create_stream("ticks", "time | log")
        ...     status = await client.deploy_stream("ticks", '{"deployer.*.memory": "1024"}')
    """

    def __init__(
        self,
        registry: AppRegistry,
        streams: StreamLifecycle,
        status: StatusAggregator,
        container: "Container | None" = None,
    ):
        self.registry = registry
        self.streams = streams
        self.status = status
        self._container = container

    @classmethod
    def from_settings(cls, settings: "Settings | None" = None) -> "DataflowClient":
        """Build a client with its own container from settings (environment by default)."""
        from .config.container import setup_container

        return setup_container(settings).get("client")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        """Close the control-plane and token-endpoint connection pools."""
        if self._container is not None:
            await self._container.cleanup()
        else:
            await self.registry.transport.close()

    # App registration

    async def register_app(self, name: str, app_type: str, uri: str) -> AppRegistration:
        return await self.registry.register_app(name, app_type, uri)

    async def list_registered_apps(self, type_filter: str | None = None) -> list[AppRegistration]:
        return await self.registry.list_registered_apps(type_filter)

    async def bulk_register_apps(self) -> int:
        return await self.registry.bulk_register_apps()

    async def bulk_register_apps_detailed(self) -> BulkRegistrationResult:
        return await self.registry.bulk_register_apps_detailed()

    # Stream lifecycle

    async def create_stream(
        self, name: str, definition: str, description: str | None = None
    ) -> StreamDefinition:
        return await self.streams.create_stream(name, definition, description)

    async def deploy_stream(self, name: str, properties_json: str | None = None) -> StreamStatus:
        return await self.streams.deploy_stream(name, properties_json)

    async def undeploy_stream(self, name: str) -> str:
        return await self.streams.undeploy_stream(name)

    async def destroy_stream(self, name: str) -> str:
        return await self.streams.destroy_stream(name)

    # Status

    async def get_stream_status(self, name: str) -> StreamStatus:
        return await self.status.get_stream_status(name)

    async def list_streams(self) -> list[StreamStatus]:
        return await self.status.list_streams()
