import random

import httpx
import pytest

from lmate.app.schemas.dashboard import DataSource
from lmate.app.schemas.device import Environment, FirmwareInfo, OnboardingStatus
from lmate.app.services.device_api import LmateApi


@pytest.mark.asyncio
async def test_endpoint_paths_and_serial_query(base_url):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(503)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        api = LmateApi(client, base_url=base_url, rng=random.Random(1))
        await api.dhcp("SN-1")
        await api.ob_records("SN-1")
        await api.list_device("SN-1")
        await api.device_provisioning("SN-1")
        await api.device_history("SN-1")
        await api.metric("cpu-usage", "SN-1")

    assert [request.url.path for request in requests] == [
        "/api/ztp/dhcp",
        "/api/onboarding/ob-records",
        "/api/device/listDeviceRedisV2",
        "/api/device/deviceProvisioning",
        "/api/device/deviceHistory",
        "/api/metrics/cpu-usage",
    ]
    assert all(request.method == "GET" for request in requests)
    assert all(request.url.params["serial"] == "SN-1" for request in requests)


@pytest.mark.asyncio
async def test_post_actions_send_serial_body(base_url):
    bodies: dict[str, bytes] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        bodies[request.url.path] = request.read()
        return httpx.Response(200, json={"ok": True, "serial": "SN-1"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        api = LmateApi(client, base_url=base_url)
        env = await api.set_environment("SN-1", Environment.QA)
        await api.trigger_onboarding("SN-1")
        await api.factory_reset("SN-1")

    assert env.source is DataSource.LIVE
    assert env.value.ok is True
    assert set(bodies) == {
        "/api/onboarding/setOnboardingEnvironment",
        "/api/onboarding/trigger",
        "/api/device/factory-reset",
    }
    assert b'"env"' in bodies["/api/onboarding/setOnboardingEnvironment"]


@pytest.mark.asyncio
async def test_mocks_follow_current_device_state(backend, base_url):
    api = LmateApi(backend(), base_url=base_url, rng=random.Random(2))

    record = await api.ob_records("SN-1", OnboardingStatus.DONE)
    listing = await api.list_device("SN-1", active=True, status=OnboardingStatus.DONE)
    firmware = await api.device_provisioning("SN-1", FirmwareInfo(current="1.0.0", latest="1.1.0", progress=95))
    env = await api.set_environment("SN-1", Environment.PROD)

    assert record.value.status == OnboardingStatus.DONE
    assert listing.value.active is True
    assert firmware.value.progress is None
    assert firmware.value.current == "1.1.0"
    assert firmware.value.upgrade_time is not None
    assert env.value.env == Environment.PROD
    assert env.source is DataSource.MOCK
