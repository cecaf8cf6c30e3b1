"""
Domain model shared by the registry, lifecycle and status components.

All entities are point-in-time views of control-plane state. Nothing here is
persisted or cached by the client.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class AppType(str, Enum):
    """Application types known to the control plane."""

    SOURCE = "source"
    PROCESSOR = "processor"
    SINK = "sink"
    TASK = "task"
    APP = "app"


class StreamState:
    """Stream status values as reported by the control plane."""

    CREATED = "created"
    DEPLOYING = "deploying"
    DEPLOYED = "deployed"
    UNDEPLOYED = "undeployed"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class AppRegistration:
    """A registered application. ``(name, type)`` is the unique key."""

    name: str
    type: str
    uri: str | None = None
    version: str | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.type)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type, "uri": self.uri, "version": self.version}


@dataclass
class StreamDefinition:
    name: str
    dsl_definition: str
    description: str | None = None
    status: str = StreamState.UNKNOWN

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "dslDefinition": self.dsl_definition,
            "description": self.description,
            "status": self.status,
        }


@dataclass
class AppInstanceStatus:
    """Runtime status of one instance inside a deployment unit."""

    instance_id: str
    state: str
    attributes: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "instanceId": self.instance_id,
            "state": self.state,
            "attributes": dict(self.attributes),
        }


@dataclass
class StreamStatus:
    """Snapshot of a stream and its deployment units.

    ``app_statuses`` maps deployment id to its instances, in the order the
    control plane reported them.
    """

    name: str
    status: str = StreamState.UNKNOWN
    description: str | None = None
    app_statuses: dict[str, list[AppInstanceStatus]] = field(default_factory=dict)

    @property
    def instance_count(self) -> int:
        return sum(len(instances) for instances in self.app_statuses.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status,
            "description": self.description,
            "appStatuses": {
                deployment_id: [instance.to_dict() for instance in instances]
                for deployment_id, instances in self.app_statuses.items()
            },
        }


@dataclass(frozen=True)
class CatalogEntry:
    """One accepted ``type.name=uri`` line of the bulk catalog."""

    type: str
    name: str
    uri: str


@dataclass(frozen=True)
class RegistrationFailure:
    type: str
    name: str
    error: str


@dataclass
class BulkRegistrationResult:
    """Outcome of a bulk catalog import."""

    count: int = 0
    failures: list[RegistrationFailure] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "failures": [
                {"type": f.type, "name": f.name, "error": f.error} for f in self.failures
            ],
        }
