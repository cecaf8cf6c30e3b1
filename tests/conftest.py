"""
Shared fixtures: an in-memory control plane served through ``httpx.MockTransport``.

The fake answers on three hosts:
- ``dataflow.test``: the control plane REST API (HAL JSON, paginated listings)
- ``auth.test``: the OAuth2 token endpoint
- ``catalog.test``: the bulk application catalog
"""

import asyncio
import json
from urllib.parse import parse_qs, urlencode

import httpx
import pytest

from streamwright.config.container import setup_container
from streamwright.config.settings import Settings
from streamwright.observability.metrics import reset_metrics

CONTROL_PLANE_URL = "http://dataflow.test"
TOKEN_URL = "http://auth.test/oauth/token"
CATALOG_URL = "http://catalog.test/stream-apps.properties"


def runtime_document(name: str, dsl: str) -> dict:
    """Runtime tree for a deployed stream: one deployment unit per app, one instance each."""
    apps = [part.strip().split()[0] for part in dsl.split("|") if part.strip()]
    return {
        "_embedded": {
            "streamStatusResourceList": [
                {
                    "name": name,
                    "applications": {
                        "_embedded": {
                            "appStatusResourceList": [
                                {
                                    "deploymentId": f"{name}-{app}-v1",
                                    "state": "deployed",
                                    "instances": {
                                        "_embedded": {
                                            "appInstanceStatusResourceList": [
                                                {
                                                    "instanceId": f"{name}-{app}-v1-0",
                                                    "state": "deployed",
                                                    "attributes": {"guid": f"{app}-guid", "index": 0},
                                                }
                                            ]
                                        }
                                    },
                                }
                                for app in apps
                            ]
                        }
                    },
                }
            ]
        }
    }


class FakeControlPlane:
    """Stateful stand-in for the control plane, token endpoint and catalog host."""

    def __init__(self):
        self.apps: dict[tuple[str, str], dict] = {}
        self.definitions: dict[str, dict] = {}
        self.runtime: dict[str, dict] = {}
        self.deploy_properties: dict[str, dict] = {}
        self.requests: list[httpx.Request] = []

        self.catalog_text: str | None = ""
        self.require_token = True
        self.token_requests = 0
        self.token_delay = 0.0
        self.token_expires_in: int | None = 3600
        self.token_status = 200
        self.fail_registration_for: set[str] = set()

    # Helpers for assertions

    def control_plane_requests(self, method: str | None = None, path: str | None = None):
        return [
            r
            for r in self.requests
            if r.url.host == "dataflow.test"
            and (method is None or r.method == method)
            and (path is None or r.url.path == path)
        ]

    @staticmethod
    def form(request: httpx.Request) -> dict[str, str]:
        return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}

    # Dispatch

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host == "auth.test":
            return await self._token(request)
        if host == "catalog.test":
            if self.catalog_text is None:
                return httpx.Response(404, text="Not Found")
            return httpx.Response(200, text=self.catalog_text)
        if host != "dataflow.test":
            return httpx.Response(502, text=f"unknown host {host}")

        if self.require_token:
            header = request.headers.get("Authorization", "")
            if not header.startswith("Bearer tok-"):
                return httpx.Response(401, json={"message": "Unauthorized"})
        return self._control_plane(request)

    async def _token(self, request: httpx.Request) -> httpx.Response:
        self.token_requests += 1
        if self.token_delay:
            await asyncio.sleep(self.token_delay)
        if self.token_status != 200:
            return httpx.Response(self.token_status, json={"error": "invalid_client"})
        body = {"access_token": f"tok-{self.token_requests}", "token_type": "bearer"}
        if self.token_expires_in is not None:
            body["expires_in"] = self.token_expires_in
        return httpx.Response(200, json=body)

    def _control_plane(self, request: httpx.Request) -> httpx.Response:
        segments = [s for s in request.url.path.split("/") if s]
        method = request.method

        if segments == ["apps"] and method == "GET":
            app_type = request.url.params.get("type")
            items = [
                {"name": name, "type": t, "uri": entry["uri"], "version": entry.get("version")}
                for (name, t), entry in self.apps.items()
                if app_type is None or t == app_type
            ]
            return self._page(request, "appRegistrationResourceList", items)

        if len(segments) == 3 and segments[0] == "apps" and method == "POST":
            _, app_type, name = segments
            if name in self.fail_registration_for:
                return httpx.Response(500, text=f"cannot register {name}")
            form = self.form(request)
            key = (name, app_type)
            if key in self.apps and form.get("force") != "true":
                return httpx.Response(409, text="already registered")
            self.apps[key] = {"uri": form["uri"], "version": "1.0.0"}
            return httpx.Response(201)

        if segments == ["streams", "definitions"]:
            if method == "GET":
                return self._page(
                    request, "streamDefinitionResourceList", list(self.definitions.values())
                )
            form = self.form(request)
            if form["name"] in self.definitions:
                return httpx.Response(409, text=f"Stream {form['name']} already exists")
            self.definitions[form["name"]] = {
                "name": form["name"],
                "dslText": form["definition"],
                "status": "undeployed",
                "description": form.get("description", ""),
            }
            return httpx.Response(201, json=self.definitions[form["name"]])

        if len(segments) == 3 and segments[:2] == ["streams", "definitions"]:
            name = segments[2]
            definition = self.definitions.get(name)
            if definition is None:
                return httpx.Response(404, text=f"Stream {name} not found")
            if method == "GET":
                return httpx.Response(200, json=definition)
            if definition["status"] == "deployed":
                return httpx.Response(409, text=f"Stream {name} is deployed")
            del self.definitions[name]
            return httpx.Response(200)

        if len(segments) == 3 and segments[:2] == ["streams", "deployments"]:
            name = segments[2]
            definition = self.definitions.get(name)
            if definition is None:
                return httpx.Response(404, text=f"Stream {name} not found")
            if method == "POST":
                self.deploy_properties[name] = json.loads(request.content or b"{}")
                definition["status"] = "deployed"
                self.runtime[name] = runtime_document(name, definition["dslText"])
            else:
                definition["status"] = "undeployed"
                self.runtime.pop(name, None)
            return httpx.Response(200)

        if len(segments) == 3 and segments[:2] == ["runtime", "streams"]:
            return httpx.Response(200, json=self.runtime.get(segments[2], {}))

        return httpx.Response(404, text=f"no route for {method} {request.url.path}")

    def _page(self, request: httpx.Request, rel: str, items: list[dict]) -> httpx.Response:
        size = int(request.url.params.get("size", 20))
        page = int(request.url.params.get("page", 0))
        chunk = items[page * size : (page + 1) * size]
        body: dict = {"page": {"size": size, "number": page, "totalElements": len(items)}}
        if chunk:
            body["_embedded"] = {rel: chunk}
        if (page + 1) * size < len(items):
            params = dict(request.url.params)
            params["page"] = str(page + 1)
            body["_links"] = {
                "next": {"href": f"{CONTROL_PLANE_URL}{request.url.path}?{urlencode(params)}"}
            }
        return httpx.Response(200, json=body)


@pytest.fixture(autouse=True)
def fresh_metrics():
    """Each test starts with a clean no-op metrics collector."""
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def control_plane():
    return FakeControlPlane()


@pytest.fixture
def mock_transport(control_plane):
    return httpx.MockTransport(control_plane.handle)


@pytest.fixture
def settings():
    return Settings(
        control_plane={"base_url": CONTROL_PLANE_URL, "page_size": 50},
        auth={
            "enabled": True,
            "token_url": TOKEN_URL,
            "client_id": "streamwright",
            "client_secret": "s3cret",
        },
        catalog={"url": CATALOG_URL},
    )


@pytest.fixture
def container(settings, mock_transport):
    container = setup_container(settings)
    container.register_singleton(
        "http_client", httpx.AsyncClient(base_url=CONTROL_PLANE_URL, transport=mock_transport)
    )
    container.register_singleton("token_http_client", httpx.AsyncClient(transport=mock_transport))
    return container


@pytest.fixture
def client(container):
    return container.get("client")
