from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Callable
from datetime import datetime, timezone

import httpx

from lmate.app.core.config import settings
from lmate.app.schemas.dashboard import ActionResponse, DashboardResponse, DataSource, HistoryResponse
from lmate.app.schemas.device import (
    DeviceListing,
    DeviceSnapshot,
    DeviceState,
    DhcpLease,
    Environment,
    FirmwareInfo,
    OnboardingRecord,
    OnboardingState,
    PortConfig,
    ServiceConfig,
)
from lmate.app.schemas.metrics import METRIC_ENDPOINTS, MetricsResponse, MetricsState, Sample
from lmate.app.services import mocks, simulation
from lmate.app.services.device_api import LmateApi
from lmate.app.services.onboarding import build_step_rail, derive_steps
from lmate.app.services.poller import IntervalPoller
from lmate.app.services.sample_buffer import latest_value, push_sample


logger = logging.getLogger(__name__)

REAP_INTERVAL_SECONDS = 30.0


def initial_snapshot(serial: str, environment: Environment | str | None = None) -> DeviceSnapshot:
    return DeviceSnapshot(
        serial=serial,
        onboarding=OnboardingState(environment=environment or settings.default_environment),
        device=DeviceState(
            port_config=[PortConfig.model_validate(port) for port in mocks.default_ports()],
            services=[ServiceConfig.model_validate(service) for service in mocks.default_services()],
        ),
    )


def merge_provisioning(
    snapshot: DeviceSnapshot,
    *,
    dhcp: DhcpLease,
    record: OnboardingRecord,
    listing: DeviceListing,
    provisioning: FirmwareInfo,
    advance_configuration: bool = False,
    rng: random.Random | None = None,
) -> DeviceSnapshot:
    """Fold one provisioning tick into a new snapshot.

    Onboarding fields and the active flag replace the old values; firmware fields
    are overlaid so keys missing from the provisioning payload keep their value.
    """
    device = snapshot.device
    firmware = FirmwareInfo.model_validate(
        {**device.firmware.model_dump(), **provisioning.model_dump(exclude_unset=True)}
    )
    services = device.services
    ports = device.port_config
    if advance_configuration:
        services = simulation.apply_configuration(services, simulation.SERVICE_APPLY_PROBABILITY, rng)
        ports = simulation.apply_configuration(ports, simulation.PORT_APPLY_PROBABILITY, rng)

    return snapshot.model_copy(
        update={
            "onboarding": snapshot.onboarding.model_copy(update={"dhcp": dhcp, "status": record.status}),
            "device": device.model_copy(
                update={
                    "active": listing.active,
                    "firmware": firmware,
                    "services": services,
                    "port_config": ports,
                }
            ),
            "updated_at": datetime.now(tz=timezone.utc),
        }
    )


def push_readings(metrics: MetricsState, values: dict[str, float], max_samples: int) -> MetricsState:
    """Return a new metrics state with one sample pushed into each named series."""
    series = {
        key: push_sample(getattr(metrics, key), Sample(v=values[key]), max_samples) if key in values
        else getattr(metrics, key)
        for key in METRIC_ENDPOINTS
    }
    return MetricsState(**series)


class DashboardSession:
    """Live state for one device, kept current by a provisioning and a metrics poller.

    Use ``async with`` (or ``start``/``stop``) so both timers and the HTTP client
    are released when the consumer goes away.
    """

    def __init__(
        self,
        serial: str,
        *,
        client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        provisioning_interval: float | None = None,
        metrics_interval: float | None = None,
        max_samples: int | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.serial = serial
        self.max_samples = max_samples or settings.max_samples
        self._timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self._base_url = base_url
        self._client = client
        self._owns_client = client is None
        self._rng = rng
        self.api = LmateApi(client, base_url=base_url, timeout=self._timeout, rng=rng)

        self.snapshot = initial_snapshot(serial)
        self.metrics = MetricsState()
        self.sources: dict[str, DataSource] = {}
        # Bumped by factory_reset so in-flight ticks drop their stale results
        self._generation = 0

        self._provisioning_poller = IntervalPoller(
            self.provisioning_tick,
            interval_seconds=provisioning_interval or settings.provisioning_interval_seconds,
            name=f"provisioning[{serial}]",
        )
        self._metrics_poller = IntervalPoller(
            self.metrics_tick,
            interval_seconds=metrics_interval or settings.metrics_interval_seconds,
            name=f"metrics[{serial}]",
        )

    @property
    def running(self) -> bool:
        return self._provisioning_poller.running or self._metrics_poller.running

    async def start(self) -> None:
        if self.running:
            return
        if self._owns_client and self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self.api = LmateApi(self._client, base_url=self._base_url, timeout=self._timeout, rng=self._rng)
        await self._provisioning_poller.start()
        await self._metrics_poller.start()

    async def stop(self) -> None:
        try:
            await self._provisioning_poller.stop()
            await self._metrics_poller.stop()
        finally:
            if self._owns_client and self._client is not None:
                await self._client.aclose()
                self._client = None

    async def __aenter__(self) -> "DashboardSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def provisioning_tick(self) -> None:
        before = self.snapshot
        generation = self._generation
        onboarding, device = before.onboarding, before.device
        dhcp, record, listing, provisioning = await asyncio.gather(
            self.api.dhcp(self.serial),
            self.api.ob_records(self.serial, onboarding.status),
            self.api.list_device(
                self.serial, active=device.active, status=onboarding.status, firmware=device.firmware
            ),
            self.api.device_provisioning(self.serial, device.firmware),
        )
        if generation != self._generation:
            logger.debug("Dropping provisioning tick for %s started before a factory reset", self.serial)
            return
        self.snapshot = merge_provisioning(
            self.snapshot,
            dhcp=dhcp.value,
            record=record.value,
            listing=listing.value,
            provisioning=provisioning.value,
            advance_configuration=not listing.is_live,
            rng=self._rng,
        )
        self.sources.update(
            {
                "dhcp": dhcp.source,
                "obRecords": record.source,
                "listDevice": listing.source,
                "deviceProvisioning": provisioning.source,
            }
        )

    async def metrics_tick(self) -> None:
        keys = list(METRIC_ENDPOINTS)
        generation = self._generation
        outcomes = await asyncio.gather(
            *(self.api.metric(METRIC_ENDPOINTS[key], self.serial) for key in keys)
        )
        if generation != self._generation:
            return
        values = {key: outcome.value.value for key, outcome in zip(keys, outcomes)}
        self.metrics = push_readings(self.metrics, values, self.max_samples)
        self.sources.update({f"metrics:{key}": outcome.source for key, outcome in zip(keys, outcomes)})

    async def set_environment(self, env: Environment) -> ActionResponse:
        outcome = await self.api.set_environment(self.serial, env)
        if outcome.value.ok:
            onboarding = self.snapshot.onboarding.model_copy(update={"environment": env})
            self.snapshot = self.snapshot.model_copy(update={"onboarding": onboarding})
        return ActionResponse(serial=self.serial, source=outcome.source, result=outcome.value)

    async def trigger_onboarding(self) -> ActionResponse:
        outcome = await self.api.trigger_onboarding(self.serial)
        logger.info("Onboarding triggered for %s (%s)", self.serial, outcome.source)
        return ActionResponse(serial=self.serial, source=outcome.source, result=outcome.value)

    async def factory_reset(self) -> ActionResponse:
        outcome = await self.api.factory_reset(self.serial)
        if outcome.value.ok:
            logger.info("Factory reset accepted for %s, clearing session state", self.serial)
            self._generation += 1
            self.snapshot = initial_snapshot(self.serial, self.snapshot.onboarding.environment)
            self.metrics = MetricsState()
        return ActionResponse(serial=self.serial, source=outcome.source, result=outcome.value)

    async def history(self) -> HistoryResponse:
        outcome = await self.api.device_history(self.serial)
        return HistoryResponse(serial=self.serial, source=outcome.source, history=outcome.value)

    def metrics_view(self) -> MetricsResponse:
        metrics = self.metrics
        return MetricsResponse(
            serial=self.serial,
            max_samples=self.max_samples,
            series=metrics,
            latest={key: latest_value(getattr(metrics, key)) for key in METRIC_ENDPOINTS},
        )

    def dashboard(self) -> DashboardResponse:
        snapshot = self.snapshot
        steps = derive_steps(snapshot.onboarding.status, snapshot.onboarding.dhcp.ip, snapshot.device.active)
        return DashboardResponse(
            snapshot=snapshot,
            steps=steps,
            step_rail=build_step_rail(steps),
            metrics=self.metrics_view(),
            sources=dict(self.sources),
        )


class SessionRegistry:
    """Keeps one running session per serial while someone is reading it.

    Sessions that nobody has fetched for ``idle_timeout`` seconds are stopped and
    dropped by a background reaper.
    """

    def __init__(
        self,
        *,
        idle_timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sessions: dict[str, DashboardSession] = {}
        self._last_access: dict[str, float] = {}
        self._lock = asyncio.Lock()
        self._clock = clock
        self.idle_timeout = idle_timeout or settings.session_idle_timeout_seconds
        self._reaper = IntervalPoller(
            self.reap_idle,
            interval_seconds=min(self.idle_timeout, REAP_INTERVAL_SECONDS),
            name="session-reaper",
        )

    async def get(self, serial: str) -> DashboardSession:
        async with self._lock:
            session = self._sessions.get(serial)
            if session is None:
                session = DashboardSession(serial)
                self._sessions[serial] = session
            self._last_access[serial] = self._clock()
            await session.start()
            await self._reaper.start()
            return session

    async def reap_idle(self) -> list[str]:
        """Stop and drop every session idle for longer than ``idle_timeout``."""
        async with self._lock:
            cutoff = self._clock() - self.idle_timeout
            idle = [serial for serial, seen in self._last_access.items() if seen <= cutoff]
            sessions = [self._sessions.pop(serial) for serial in idle]
            for serial in idle:
                del self._last_access[serial]
        for session in sessions:
            logger.info("Dropping idle dashboard session for %s", session.serial)
            await self._stop_session(session)
        return idle

    async def stop_all(self) -> None:
        await self._reaper.stop()
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
            self._last_access.clear()
        for session in sessions:
            await self._stop_session(session)

    @staticmethod
    async def _stop_session(session: DashboardSession) -> None:
        try:
            await session.stop()
        except Exception:  # pragma: no cover - defensive logging
            logger.exception("Failed to stop dashboard session for %s", session.serial)

    def __contains__(self, serial: str) -> bool:
        return serial in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)


registry = SessionRegistry()
