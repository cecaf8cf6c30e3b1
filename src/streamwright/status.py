"""
Stream status aggregation.

The runtime view is a three-level tree (stream -> applications -> instances),
each level an optional ``_embedded`` collection. It is flattened into
``StreamStatus.app_statuses``: deployment id -> instances, in reported order.
"""

from typing import Any

from .hal import as_text, collect_pages, collection, dig, embedded, text
from .models import AppInstanceStatus, StreamState, StreamStatus
from .observability.probe import probe
from .transport.base import Transport


def flatten_runtime(runtime: Any) -> dict[str, list[AppInstanceStatus]]:
    """Build deployment id -> instances from a runtime status document."""
    app_statuses: dict[str, list[AppInstanceStatus]] = {}
    for stream in embedded(runtime, "streamStatusResourceList"):
        for app in collection(stream, "applications", "_embedded", "appStatusResourceList"):
            deployment_id = text(app, "deploymentId")
            instances = app_statuses.setdefault(deployment_id, [])
            for instance in collection(
                app, "instances", "_embedded", "appInstanceStatusResourceList"
            ):
                instances.append(_instance_status(instance))
    return app_statuses


def _instance_status(instance: Any) -> AppInstanceStatus:
    attributes = dig(instance, "attributes")
    if not isinstance(attributes, dict):
        attributes = {}
    return AppInstanceStatus(
        instance_id=text(instance, "instanceId"),
        state=text(instance, "state"),
        attributes={str(k): as_text(v) for k, v in attributes.items()},
    )


class StatusAggregator:
    """Builds StreamStatus snapshots. Nothing is cached between calls."""

    def __init__(self, transport: Transport, page_size: int = 2000):
        self.transport = transport
        self.page_size = page_size

    async def get_stream_status(self, name: str) -> StreamStatus:
        with probe("streams.status", stream=name):
            definition = await self.transport.get_json("/streams/definitions/{name}", {"name": name})
            runtime = await self.transport.get_json("/runtime/streams/{name}", {"name": name})

        return StreamStatus(
            name=name,
            status=text(definition, "status", StreamState.UNKNOWN),
            description=text(definition, "description", None),
            app_statuses=flatten_runtime(runtime),
        )

    async def list_streams(self) -> list[StreamStatus]:
        """Definition-level status of every stream; runtime detail is left empty."""
        with probe("streams.list"):
            items = await collect_pages(
                self.transport,
                "/streams/definitions",
                "streamDefinitionResourceList",
                query={"size": self.page_size},
            )
        return [
            StreamStatus(
                name=text(item, "name"),
                status=text(item, "status", StreamState.UNKNOWN),
                description=text(item, "description", None),
            )
            for item in items
        ]
