from __future__ import annotations

import random
from typing import Any, Callable

import httpx
from pydantic import BaseModel

from lmate.app.schemas.device import (
    ActionResult,
    DeviceHistory,
    DeviceListing,
    DhcpLease,
    Environment,
    FirmwareInfo,
    OnboardingRecord,
    OnboardingStatus,
)
from lmate.app.schemas.metrics import MetricReading
from lmate.app.services import mocks, simulation
from lmate.app.services.resilient_client import FetchOutcome, fetch_with_source


class LmateApi:
    """Endpoint wrappers for the L-Mate backend, each paired with its own mock generator.

    Mocks that depend on the current device state take that state as arguments so
    the synthetic data keeps progressing from what the dashboard already shows.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._client = client
        self._base_url = base_url
        self._timeout = timeout
        self._rng = rng

    async def _fetch(
        self,
        path: str,
        mock_factory: Callable[[], Any],
        response_model: type[BaseModel],
        **options: Any,
    ) -> FetchOutcome[Any]:
        return await fetch_with_source(
            path,
            mock_factory,
            response_model=response_model,
            client=self._client,
            base_url=self._base_url,
            timeout=self._timeout,
            **options,
        )

    async def dhcp(self, serial: str) -> FetchOutcome[DhcpLease]:
        return await self._fetch(
            "/ztp/dhcp",
            lambda: mocks.mock_dhcp_lease(self._rng),
            DhcpLease,
            params={"serial": serial},
        )

    async def ob_records(
        self,
        serial: str,
        current: OnboardingStatus = OnboardingStatus.PENDING,
    ) -> FetchOutcome[OnboardingRecord]:
        return await self._fetch(
            "/onboarding/ob-records",
            lambda: {"status": simulation.next_status(current, self._rng)},
            OnboardingRecord,
            params={"serial": serial},
        )

    async def set_environment(self, serial: str, env: Environment) -> FetchOutcome[ActionResult]:
        return await self._fetch(
            "/onboarding/setOnboardingEnvironment",
            lambda: {"ok": True, "env": env, "serial": serial},
            ActionResult,
            method="POST",
            json={"serial": serial, "env": str(env)},
        )

    async def trigger_onboarding(self, serial: str) -> FetchOutcome[ActionResult]:
        return await self._fetch(
            "/onboarding/trigger",
            lambda: {"ok": True, "triggeredAt": mocks.now_iso(), "serial": serial},
            ActionResult,
            method="POST",
            json={"serial": serial},
        )

    async def factory_reset(self, serial: str) -> FetchOutcome[ActionResult]:
        return await self._fetch(
            "/device/factory-reset",
            lambda: {"ok": True, "serial": serial},
            ActionResult,
            method="POST",
            json={"serial": serial},
        )

    async def list_device(
        self,
        serial: str,
        *,
        active: bool = False,
        status: OnboardingStatus = OnboardingStatus.PENDING,
        firmware: FirmwareInfo | None = None,
    ) -> FetchOutcome[DeviceListing]:
        firmware = firmware or FirmwareInfo()
        return await self._fetch(
            "/device/listDeviceRedisV2",
            lambda: {
                "active": simulation.next_active(active, status, self._rng),
                "firmware": {"current": firmware.current, "latest": firmware.latest},
            },
            DeviceListing,
            params={"serial": serial},
        )

    async def device_provisioning(
        self,
        serial: str,
        firmware: FirmwareInfo | None = None,
    ) -> FetchOutcome[FirmwareInfo]:
        firmware = firmware or FirmwareInfo()
        return await self._fetch(
            "/device/deviceProvisioning",
            lambda: simulation.next_firmware(firmware, self._rng).model_dump(by_alias=True),
            FirmwareInfo,
            params={"serial": serial},
        )

    async def device_history(self, serial: str) -> FetchOutcome[DeviceHistory]:
        return await self._fetch(
            "/device/deviceHistory",
            lambda: {"events": []},
            DeviceHistory,
            params={"serial": serial},
        )

    async def metric(self, name: str, serial: str) -> FetchOutcome[MetricReading]:
        return await self._fetch(
            f"/metrics/{name}",
            lambda: mocks.mock_metric(name, self._rng),
            MetricReading,
            params={"serial": serial},
        )
