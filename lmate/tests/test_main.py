from __future__ import annotations

from types import SimpleNamespace

import httpx
import pytest
from fastapi.testclient import TestClient

from lmate.app import main
from lmate.app.core import security
from lmate.app.routers import devices
from lmate.app.services.session import DashboardSession


class DummyRegistry:
    """Hands out unstarted sessions whose backend is always down."""

    def __init__(self) -> None:
        self.client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(503)))
        self.sessions: dict[str, DashboardSession] = {}
        self.stopped = False

    async def get(self, serial: str) -> DashboardSession:
        if serial not in self.sessions:
            self.sessions[serial] = DashboardSession(serial, client=self.client, base_url="http://lmate.test/api")
        return self.sessions[serial]

    async def stop_all(self) -> None:
        self.stopped = True
        await self.client.aclose()


@pytest.fixture
def client(monkeypatch):
    registry = DummyRegistry()
    monkeypatch.setattr(devices, "registry", registry, raising=False)
    monkeypatch.setattr(main, "registry", registry, raising=False)
    monkeypatch.setattr(security, "settings", SimpleNamespace(api_token=None), raising=False)
    app = main.create_app()
    with TestClient(app) as test_client:
        yield test_client, registry
    assert registry.stopped


def test_healthcheck(client):
    test_client, _ = client

    response = test_client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_dashboard_reports_initial_state(client):
    test_client, registry = client

    response = test_client.get("/devices/SN-1/dashboard")

    assert response.status_code == 200
    data = response.json()
    assert data["snapshot"]["serial"] == "SN-1"
    assert data["snapshot"]["onboarding"]["status"] == "pending"
    assert data["steps"]["current"] == "dhcp"
    assert [step["icon"] for step in data["step_rail"]] == ["current", "pending", "pending", "pending"]
    assert data["metrics"]["max_samples"] == registry.sessions["SN-1"].max_samples
    assert "portConfig" in data["snapshot"]["device"]


def test_metrics_endpoint_returns_series(client):
    test_client, registry = client
    session = test_client.portal.call(registry.get, "SN-2")
    test_client.portal.call(session.metrics_tick)

    response = test_client.get("/devices/SN-2/metrics")

    assert response.status_code == 200
    data = response.json()
    assert set(data["series"]) == {"tx", "rx", "latency", "cpu", "mem", "optical_tx", "optical_rx"}
    assert len(data["series"]["cpu"]) == 1
    assert data["latest"]["cpu"] == data["series"]["cpu"][0]["v"]


def test_environment_update_masks_backend_outage(client):
    test_client, registry = client

    response = test_client.post("/devices/SN-3/environment", json={"env": "qa"})

    assert response.status_code == 200
    data = response.json()
    assert data["source"] == "mock"
    assert data["result"]["ok"] is True
    assert registry.sessions["SN-3"].snapshot.onboarding.environment == "qa"


def test_environment_update_rejects_unknown_env(client):
    test_client, _ = client

    response = test_client.post("/devices/SN-3/environment", json={"env": "staging"})

    assert response.status_code == 422


def test_trigger_reset_and_history(client):
    test_client, _ = client

    triggered = test_client.post("/devices/SN-4/onboarding/trigger")
    reset = test_client.post("/devices/SN-4/factory-reset")
    history = test_client.get("/devices/SN-4/history")

    assert triggered.status_code == 200
    assert triggered.json()["result"]["triggeredAt"] is not None
    assert reset.json()["result"] == {"ok": True, "serial": "SN-4", "env": None, "triggeredAt": None}
    assert history.json()["history"] == {"events": []}


def test_bearer_token_required_when_configured(client, monkeypatch):
    test_client, _ = client
    monkeypatch.setattr(security, "settings", SimpleNamespace(api_token="secret"), raising=False)

    missing = test_client.get("/devices/SN-1/dashboard")
    wrong = test_client.get("/devices/SN-1/dashboard", headers={"Authorization": "Bearer nope"})
    ok = test_client.get("/devices/SN-1/dashboard", headers={"Authorization": "Bearer secret"})

    assert missing.status_code == 401
    assert wrong.status_code == 401
    assert ok.status_code == 200
