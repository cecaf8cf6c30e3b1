"""
Stream definition lifecycle: create, deploy, undeploy, destroy.

The control plane owns stream state. These operations only request
transitions; deploy reports the state it reads back afterwards.
"""

from .models import StreamDefinition, StreamState, StreamStatus
from .observability.logging import get_logger
from .observability.probe import probe
from .properties import parse_properties, require_text
from .status import StatusAggregator
from .transport.base import ContentType, Transport

log = get_logger("swr.streams")


class StreamLifecycle:
    def __init__(self, transport: Transport, status: StatusAggregator):
        self.transport = transport
        self.status = status

    async def create_stream(
        self, name: str, dsl: str, description: str | None = None
    ) -> StreamDefinition:
        """Register a stream definition without deploying it."""
        name = require_text(name, "name")
        dsl = require_text(dsl, "definition")

        body = {"name": name, "definition": dsl, "deploy": "false"}
        if description and description.strip():
            body["description"] = description

        with probe("streams.create", stream=name):
            await self.transport.execute(
                "POST", "/streams/definitions", body=body, content_type=ContentType.FORM
            )
        log.info("Stream created", stream=name)
        return StreamDefinition(
            name=name, dsl_definition=dsl, description=description, status=StreamState.CREATED
        )

    async def deploy_stream(self, name: str, properties_json: str | None = None) -> StreamStatus:
        """Deploy with the given properties and return a freshly read status."""
        name = require_text(name, "name")
        properties = parse_properties(properties_json)

        with probe("streams.deploy", stream=name, properties=len(properties)):
            await self.transport.execute(
                "POST",
                "/streams/deployments/{name}",
                {"name": name},
                body=properties,
                content_type=ContentType.JSON,
            )
        log.info("Stream deployment requested", stream=name)
        return await self.status.get_stream_status(name)

    async def undeploy_stream(self, name: str) -> str:
        """Stop all instances; the definition is kept for redeployment."""
        name = require_text(name, "name")
        with probe("streams.undeploy", stream=name):
            await self.transport.execute("DELETE", "/streams/deployments/{name}", {"name": name})
        log.info("Stream undeployed", stream=name)
        return f"Stream '{name}' undeployed successfully."

    async def destroy_stream(self, name: str) -> str:
        """Delete the definition. The control plane rejects this while deployed."""
        name = require_text(name, "name")
        with probe("streams.destroy", stream=name):
            await self.transport.execute("DELETE", "/streams/definitions/{name}", {"name": name})
        log.info("Stream destroyed", stream=name)
        return f"Stream '{name}' destroyed successfully."
