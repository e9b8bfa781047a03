from enum import StrEnum

from pydantic import BaseModel, Field

from lmate.app.schemas.device import ActionResult, DeviceHistory, DeviceSnapshot, Environment
from lmate.app.schemas.metrics import MetricsResponse


class DataSource(StrEnum):
    LIVE = "live"
    MOCK = "mock"


class StepIcon(StrEnum):
    COMPLETE = "complete"
    CURRENT = "current"
    PENDING = "pending"


class StepView(BaseModel):
    key: str
    label: str
    icon: StepIcon


class StepProgress(BaseModel):
    completed: dict[str, bool]
    current: str | None = None


class DashboardResponse(BaseModel):
    snapshot: DeviceSnapshot
    steps: StepProgress
    step_rail: list[StepView]
    metrics: MetricsResponse
    sources: dict[str, DataSource] = Field(
        default_factory=dict,
        description="Provenance of the most recent value per endpoint",
    )


class EnvironmentUpdate(BaseModel):
    env: Environment


class ActionResponse(BaseModel):
    serial: str
    source: DataSource
    result: ActionResult


class HistoryResponse(BaseModel):
    serial: str
    source: DataSource
    history: DeviceHistory
