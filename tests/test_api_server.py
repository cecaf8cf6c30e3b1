"""
Tests for the HTTP tool surface.

Tests cover:
- Health endpoint
- Each operation endpoint delegating to the client
- Error mapping to 400 and 502
- Lifespan building and closing the client
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from streamwright.api.server import create_app, get_client
from streamwright.client import DataflowClient
from streamwright.config.settings import get_settings
from streamwright.exceptions import AuthenticationError, RemoteOperationError, ValidationError
from streamwright.models import (
    AppInstanceStatus,
    AppRegistration,
    BulkRegistrationResult,
    RegistrationFailure,
    StreamDefinition,
    StreamStatus,
)


@pytest.fixture
def dataflow():
    """Client double with every operation as an AsyncMock."""
    client = MagicMock()
    client.register_app = AsyncMock(
        return_value=AppRegistration("log", "sink", "http://x/log.jar", None)
    )
    client.list_registered_apps = AsyncMock(
        return_value=[AppRegistration("log", "sink", "http://x/log.jar", "5.1.1")]
    )
    client.bulk_register_apps_detailed = AsyncMock(return_value=BulkRegistrationResult(count=3))
    client.list_streams = AsyncMock(return_value=[StreamStatus("ticks", "deployed", "demo")])
    client.create_stream = AsyncMock(
        return_value=StreamDefinition("ticks", "time | log", None, "created")
    )
    client.deploy_stream = AsyncMock(
        return_value=StreamStatus(
            "ticks",
            "deployed",
            None,
            {"ticks-log-v1": [AppInstanceStatus("ticks-log-v1-0", "deployed", {"port": "8080"})]},
        )
    )
    client.undeploy_stream = AsyncMock(return_value="Stream 'ticks' undeployed successfully.")
    client.destroy_stream = AsyncMock(return_value="Stream 'ticks' destroyed successfully.")
    client.get_stream_status = AsyncMock(return_value=StreamStatus("ticks", "undeployed"))
    return client


@pytest.fixture
def api(dataflow):
    app = create_app(use_lifespan=False)
    app.dependency_overrides[get_client] = lambda: dataflow
    return TestClient(app)


class TestHealth:
    def test_health(self, api):
        response = api.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["uptime_seconds"] >= 0


class TestAppEndpoints:
    def test_register_app(self, api, dataflow):
        response = api.post("/apps/sink/log", json={"uri": "http://x/log.jar"})

        assert response.status_code == 200
        assert response.json() == {
            "name": "log",
            "type": "sink",
            "uri": "http://x/log.jar",
            "version": None,
        }
        dataflow.register_app.assert_awaited_once_with("log", "sink", "http://x/log.jar")

    def test_register_app_requires_uri(self, api, dataflow):
        response = api.post("/apps/sink/log", json={})

        assert response.status_code == 422
        dataflow.register_app.assert_not_awaited()

    def test_list_apps_with_filter(self, api, dataflow):
        response = api.get("/apps", params={"type": "sink"})

        assert response.json()[0]["version"] == "5.1.1"
        dataflow.list_registered_apps.assert_awaited_once_with("sink")

    def test_bulk_register(self, api, dataflow):
        dataflow.bulk_register_apps_detailed.return_value = BulkRegistrationResult(
            count=2, failures=[RegistrationFailure("processor", "foo", "boom")]
        )

        response = api.post("/apps/bulk")

        assert response.json() == {
            "count": 2,
            "failures": [{"type": "processor", "name": "foo", "error": "boom"}],
        }


class TestStreamEndpoints:
    def test_create_stream(self, api, dataflow):
        response = api.post("/streams", json={"name": "ticks", "definition": "time | log"})

        assert response.status_code == 201
        assert response.json()["dslDefinition"] == "time | log"
        dataflow.create_stream.assert_awaited_once_with("ticks", "time | log", None)

    def test_deploy_accepts_object_properties(self, api, dataflow):
        response = api.post(
            "/streams/ticks/deploy", json={"properties": {"deployer.*.memory": "1024"}}
        )

        assert response.status_code == 200
        assert response.json()["appStatuses"]["ticks-log-v1"][0]["attributes"] == {"port": "8080"}
        dataflow.deploy_stream.assert_awaited_once_with("ticks", '{"deployer.*.memory": "1024"}')

    def test_deploy_accepts_text_properties(self, api, dataflow):
        api.post("/streams/ticks/deploy", json={"properties": '{"a": "b"}'})

        dataflow.deploy_stream.assert_awaited_once_with("ticks", '{"a": "b"}')

    def test_deploy_without_body(self, api, dataflow):
        api.post("/streams/ticks/deploy")

        dataflow.deploy_stream.assert_awaited_once_with("ticks", None)

    def test_undeploy_and_destroy(self, api, dataflow):
        undeployed = api.delete("/streams/ticks/deployment")
        destroyed = api.delete("/streams/ticks")

        assert undeployed.json() == {"message": "Stream 'ticks' undeployed successfully."}
        assert destroyed.json() == {"message": "Stream 'ticks' destroyed successfully."}

    def test_status_and_listing(self, api):
        assert api.get("/streams/ticks/status").json() == {
            "name": "ticks",
            "status": "undeployed",
            "description": None,
            "appStatuses": {},
        }
        assert [s["name"] for s in api.get("/streams").json()] == ["ticks"]


class TestErrorMapping:
    def test_validation_error_is_400(self, api, dataflow):
        dataflow.deploy_stream.side_effect = ValidationError("Failed to parse deployer properties JSON")

        response = api.post("/streams/ticks/deploy", json={"properties": "{nope"})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_remote_error_is_502_with_upstream_details(self, api, dataflow):
        dataflow.destroy_stream.side_effect = RemoteOperationError(409, "Stream ticks is deployed")

        response = api.delete("/streams/ticks")

        assert response.status_code == 502
        assert response.json() == {
            "error": "remote_operation_error",
            "message": "Remote operation failed (status=409): Stream ticks is deployed",
            "status_code": 409,
            "body": "Stream ticks is deployed",
        }

    def test_authentication_error_is_502(self, api, dataflow):
        dataflow.list_streams.side_effect = AuthenticationError("Token endpoint returned 401")

        response = api.get("/streams")

        assert response.status_code == 502
        assert response.json()["error"] == "authentication_error"
        assert response.json()["status_code"] is None

    def test_partial_bulk_import_reports_registered_count(self, api, dataflow):
        error = RemoteOperationError(500, "cannot register foo")
        error.registered_count = 1
        dataflow.bulk_register_apps_detailed.side_effect = error

        response = api.post("/apps/bulk")

        assert response.status_code == 502
        assert response.json()["registered_count"] == 1
        assert response.json()["status_code"] == 500


class TestLifespan:
    def test_lifespan_builds_client_and_closes_pools(self):
        get_settings.cache_clear()
        with TestClient(create_app()) as api:
            assert api.get("/health").status_code == 200
            client = api.app.state.client
            assert isinstance(client, DataflowClient)
            pool = client.registry.transport._client
            assert not pool.is_closed

        assert pool.is_closed
