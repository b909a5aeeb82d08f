"""Tests for the FastAPI API endpoints."""

import pytest
from fastapi.testclient import TestClient

from gateway_binding.api.app import create_app
from gateway_binding.bridge.handler import InMemoryBridgeHandler
from gateway_binding.events.publisher import InMemoryEventPublisher
from gateway_binding.models.bridge import BridgeConfiguration
from gateway_binding.registry.store import ItemRegistry


@pytest.fixture
def sink():
    return InMemoryEventPublisher()


@pytest.fixture
def client(sink):
    """Create a test client with fresh components."""
    config = BridgeConfiguration(password="velux123")
    app = create_app(
        registry=ItemRegistry(),
        config=config,
        bridge_handler=InMemoryBridgeHandler(config, {"Shutter": "0"}),
        event_publisher=sink,
    )
    return TestClient(app)


def _bind(client, item_name, **item_type):
    item_type.setdefault("name", f"{item_name}_type")
    return client.post("/items", json={"item_name": item_name, "item_type": item_type})


class TestBindingEndpoints:
    def test_status(self, client):
        response = client.get("/binding/status")
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "gateway Refresh Service"
        assert data["cycle"] == 0
        assert data["properly_configured"] is False
        assert data["providers"] == ["default"]
        assert data["event_sink"] is True

    def test_force_refresh(self, client, sink):
        _bind(client, "Shutter", refreshable=True, writable=True)
        response = client.post("/binding/refresh")
        assert response.status_code == 200
        assert response.json()["cycle"] == 1
        assert response.json()["refreshed"] == ["Shutter"]
        assert sink.latest_state("Shutter") == "0"

    def test_config_is_masked(self, client):
        response = client.get("/binding/config")
        assert response.status_code == 200
        assert response.json()["password"] == "********"
        assert "velux123" not in response.text

    def test_update_config(self, client):
        response = client.put("/binding/config", json={"timeoutMsecs": "5000", "unknown": "x"})
        assert response.status_code == 200
        data = response.json()
        assert data["applied"] == ["timeoutMsecs"]
        assert data["ignored"] == ["unknown"]
        assert data["tick"]["cycle"] == 1
        assert client.get("/binding/config").json()["timeoutMsecs"] == 5000
        assert client.get("/binding/status").json()["properly_configured"] is True

    def test_update_config_error_names_key(self, client):
        response = client.put("/binding/config", json={"tcpPort": "abc"})
        assert response.status_code == 422
        assert response.json()["detail"]["key"] == "tcpPort"
        assert client.get("/binding/config").json()["tcpPort"] == 51200


class TestItemEndpoints:
    def test_bind_and_list(self, client):
        assert _bind(client, "Shutter", refreshable=True, writable=True).status_code == 200
        assert _bind(client, "Scene", executable=True).status_code == 200
        items = client.get("/items").json()
        assert [i["item_name"] for i in items] == ["Shutter", "Scene"]
        assert items[0]["provider"] == "default"

    def test_bind_rejects_bad_divider(self, client):
        response = _bind(client, "Bad", refreshable=True, refresh_divider=0)
        assert response.status_code == 422

    def test_unbind(self, client):
        _bind(client, "Shutter", refreshable=True)
        assert client.delete("/items/Shutter").status_code == 200
        assert client.delete("/items/Shutter").status_code == 404

    def test_command(self, client, sink):
        _bind(client, "Shutter", refreshable=True, writable=True)
        response = client.post("/items/Shutter/command", json={"command": "75"})
        assert response.status_code == 200
        assert response.json()["forwarded"] is True
        assert sink.latest_state("Shutter") == "75"

    def test_command_to_read_only_item(self, client):
        _bind(client, "Firmware", refreshable=True)
        response = client.post("/items/Firmware/command", json={"command": "UP"})
        assert response.status_code == 403

    def test_command_to_unknown_item(self, client):
        response = client.post("/items/Nowhere/command", json={"command": "UP"})
        assert response.status_code == 404

    def test_device_update(self, client):
        response = client.post("/items/Shutter/update", json={"state": "12"})
        assert response.status_code == 200
        assert response.json()["status"] == "accepted"

    def test_dispatch_history(self, client):
        _bind(client, "Shutter", refreshable=True, writable=True)
        client.post("/items/Shutter/command", json={"command": "UP"})
        client.post("/binding/refresh")
        history = client.get("/dispatches", params={"limit": 10}).json()
        assert [h["command"] for h in history] == ["UP", None]
