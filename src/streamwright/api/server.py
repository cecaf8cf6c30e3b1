"""
HTTP tool surface exposing each client operation as one endpoint.

Endpoints:
- GET    /health
- POST   /apps/{type}/{name}          register one app ({"uri": ...})
- GET    /apps?type=                  list registrations
- POST   /apps/bulk                   import the catalog
- GET    /streams                     list streams
- POST   /streams                     create a definition
- POST   /streams/{name}/deploy       deploy ({"properties": "<json text>"})
- DELETE /streams/{name}/deployment   undeploy
- DELETE /streams/{name}              destroy
- GET    /streams/{name}/status       runtime status

Errors come back as ``{"error", "message", "status_code", "body"}``, plus
``registered_count`` when a bulk import stopped part way: 400 for
invalid input, 502 when the token endpoint or the control plane failed.
"""

import json
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .. import __version__
from ..client import DataflowClient
from ..config.settings import get_settings
from ..exceptions import (
    AuthenticationError,
    DataflowError,
    RemoteOperationError,
    ValidationError,
)
from ..observability.logging import get_logger

logger = get_logger(__name__)


class RegisterAppRequest(BaseModel):
    uri: str = Field(..., min_length=1, description="Artifact URI (HTTP URL or Maven coords)")


class CreateStreamRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Stream name (must be unique)")
    definition: str = Field(..., min_length=1, description="Stream DSL, e.g. 'app1 | app2'")
    description: str | None = Field(None)


class DeployStreamRequest(BaseModel):
    properties: str | dict[str, Any] | None = Field(
        None, description='Deployer properties, e.g. {"deployer.*.memory": "1024"}'
    )

    def properties_json(self) -> str | None:
        if isinstance(self.properties, dict):
            return json.dumps(self.properties)
        return self.properties


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


def _error_payload(error: DataflowError) -> dict[str, Any]:
    payload = {
        "error": error.kind,
        "message": str(error),
        "status_code": getattr(error, "status_code", None),
        "body": getattr(error, "body", None),
    }
    if error.registered_count is not None:
        payload["registered_count"] = error.registered_count
    return payload


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the container on startup and close its pools on shutdown."""
    from ..config.container import setup_container

    async with setup_container(get_settings()).lifespan() as container:
        app.state.container = container
        app.state.client = container.get("client")
        app.state.startup_time = time.time()
        logger.info("Tool server ready", control_plane=container.settings.control_plane.base_url)

        yield

        logger.info("Shutting down tool server")


def get_client(request: Request) -> DataflowClient:
    return request.app.state.client


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Streamwright",
        description="Stream orchestration tools",
        version=__version__,
        docs_url="/docs" if settings.api.enable_docs else None,
        redoc_url="/redoc" if settings.api.enable_docs else None,
        lifespan=lifespan if use_lifespan else None,
    )

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content=_error_payload(exc))

    @app.exception_handler(AuthenticationError)
    async def _authentication_error(request: Request, exc: AuthenticationError) -> JSONResponse:
        logger.error("Credential acquisition failed", path=request.url.path)
        return JSONResponse(status_code=502, content=_error_payload(exc))

    @app.exception_handler(RemoteOperationError)
    async def _remote_error(request: Request, exc: RemoteOperationError) -> JSONResponse:
        return JSONResponse(status_code=502, content=_error_payload(exc))

    @app.get("/health", response_model=HealthResponse)
    async def health(request: Request) -> HealthResponse:
        startup_time = getattr(request.app.state, "startup_time", time.time())
        return HealthResponse(
            status="healthy", version=__version__, uptime_seconds=max(0.0, time.time() - startup_time)
        )

    @app.post("/apps/{app_type}/{name}")
    async def register_app(
        app_type: str,
        name: str,
        payload: RegisterAppRequest,
        client: DataflowClient = Depends(get_client),
    ) -> dict[str, Any]:
        registration = await client.register_app(name, app_type, payload.uri)
        return registration.to_dict()

    @app.get("/apps")
    async def list_registered_apps(
        type: str | None = None, client: DataflowClient = Depends(get_client)
    ) -> list[dict[str, Any]]:
        return [registration.to_dict() for registration in await client.list_registered_apps(type)]

    @app.post("/apps/bulk")
    async def bulk_register_apps(client: DataflowClient = Depends(get_client)) -> dict[str, Any]:
        result = await client.bulk_register_apps_detailed()
        return result.to_dict()

    @app.get("/streams")
    async def list_streams(client: DataflowClient = Depends(get_client)) -> list[dict[str, Any]]:
        return [stream.to_dict() for stream in await client.list_streams()]

    @app.post("/streams", status_code=201)
    async def create_stream(
        payload: CreateStreamRequest, client: DataflowClient = Depends(get_client)
    ) -> dict[str, Any]:
        definition = await client.create_stream(
            payload.name, payload.definition, payload.description
        )
        return definition.to_dict()

    @app.post("/streams/{name}/deploy")
    async def deploy_stream(
        name: str,
        payload: DeployStreamRequest | None = None,
        client: DataflowClient = Depends(get_client),
    ) -> dict[str, Any]:
        properties = payload.properties_json() if payload else None
        status = await client.deploy_stream(name, properties)
        return status.to_dict()

    @app.delete("/streams/{name}/deployment")
    async def undeploy_stream(
        name: str, client: DataflowClient = Depends(get_client)
    ) -> dict[str, str]:
        return {"message": await client.undeploy_stream(name)}

    @app.delete("/streams/{name}")
    async def destroy_stream(name: str, client: DataflowClient = Depends(get_client)) -> dict[str, str]:
        return {"message": await client.destroy_stream(name)}

    @app.get("/streams/{name}/status")
    async def stream_status(name: str, client: DataflowClient = Depends(get_client)) -> dict[str, Any]:
        status = await client.get_stream_status(name)
        return status.to_dict()

    return app
