"""
Streamwright - client for a stream-orchestration control plane.

Registers stream applications (singly or from a published catalog), drives
stream definitions through create / deploy / undeploy / destroy, and flattens
the control plane's nested runtime status into a stable domain model.

Quick Start:
    >>> from streamwright import DataflowClient
    >>>
    >>> async with DataflowClient.from_settings() as client:
    ...     await client.bulk_register_apps()
    ...     await client.create_stream("ingest", "http | text-extractor | log")
    ...     status = await client.deploy_stream("ingest", '{"deployer.*.memory": "1024"}')
    ...     for deployment_id, instances in status.app_statuses.items():
    ...         print(deployment_id, [i.state for i in instances])

Tool server:
    $ streamwright --port 8080
    $ curl http://localhost:8080/streams

Configuration:
    - SWR_CONTROL_PLANE__BASE_URL=https://dataflow.example.com
    - SWR_AUTH__ENABLED=true
    - SWR_AUTH__TOKEN_URL=https://uaa.example.com/oauth/token
    - SWR_AUTH__CLIENT_ID=... / SWR_AUTH__CLIENT_SECRET=...
    - SWR_CATALOG__FAILURE_POLICY=best_effort
"""

__version__ = "0.3.0"

from .client import DataflowClient
from .config.settings import Settings
from .exceptions import (
    AuthenticationError,
    DataflowError,
    RemoteOperationError,
    ValidationError,
)
from .models import (
    AppInstanceStatus,
    AppRegistration,
    AppType,
    BulkRegistrationResult,
    StreamDefinition,
    StreamStatus,
)
from .properties import parse_properties

__all__ = [
    "DataflowClient",
    "Settings",
    "DataflowError",
    "ValidationError",
    "AuthenticationError",
    "RemoteOperationError",
    "AppRegistration",
    "AppType",
    "AppInstanceStatus",
    "BulkRegistrationResult",
    "StreamDefinition",
    "StreamStatus",
    "parse_properties",
]
