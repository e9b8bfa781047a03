from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class OnboardingStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"


class Environment(StrEnum):
    DEV = "dev"
    QA = "qa"
    PROD = "prod"


class DhcpLease(BaseModel):
    mac_address: str | None = Field(None, alias="macAddress", examples=["aa:bb:cc:10:20:30"])
    ip: str | None = None
    lease_start: datetime | None = Field(None, alias="leaseStart")
    lease_end: datetime | None = Field(None, alias="leaseEnd")

    class Config:
        populate_by_name = True


class OnboardingRecord(BaseModel):
    status: OnboardingStatus


class FirmwareInfo(BaseModel):
    current: str = "1.0.0"
    latest: str = "1.1.0"
    progress: float | None = Field(None, ge=0, description="Upgrade progress, null when idle")
    upgrade_time: datetime | None = Field(None, alias="upgradeTime")

    class Config:
        populate_by_name = True


class FirmwareVersions(BaseModel):
    current: str | None = None
    latest: str | None = None


class DeviceListing(BaseModel):
    active: bool = False
    firmware: FirmwareVersions | None = None


class PortConfig(BaseModel):
    name: str
    speed: str | None = None
    vlans: str | None = None
    admin: str = "up"
    applied: bool = False


class ServiceConfig(BaseModel):
    id: str
    bandwidth: str | None = Field(None, alias="bw")
    applied: bool = False

    class Config:
        populate_by_name = True


class OnboardingState(BaseModel):
    dhcp: DhcpLease = Field(default_factory=DhcpLease)
    status: OnboardingStatus = OnboardingStatus.PENDING
    environment: Environment = Environment.DEV


class DeviceState(BaseModel):
    active: bool = False
    firmware: FirmwareInfo = Field(default_factory=FirmwareInfo)
    port_config: list[PortConfig] = Field(default_factory=list, alias="portConfig")
    services: list[ServiceConfig] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class DeviceSnapshot(BaseModel):
    serial: str
    onboarding: OnboardingState = Field(default_factory=OnboardingState)
    device: DeviceState = Field(default_factory=DeviceState)
    updated_at: datetime | None = None


class ActionResult(BaseModel):
    ok: bool = False
    serial: str | None = None
    env: Environment | None = None
    triggered_at: datetime | None = Field(None, alias="triggeredAt")

    class Config:
        populate_by_name = True


class DeviceHistory(BaseModel):
    events: list[dict[str, Any]] = Field(default_factory=list)
