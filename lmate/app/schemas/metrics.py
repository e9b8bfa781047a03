from datetime import datetime

from pydantic import BaseModel, Field


# Series key -> backend metric name, in display order
METRIC_ENDPOINTS: dict[str, str] = {
    "tx": "ethernet-bytes-sent-usage",
    "rx": "ethernet-bytes-rcvd-usage",
    "latency": "ping",
    "cpu": "cpu-usage",
    "mem": "memory-free",
    "optical_tx": "optical-tx",
    "optical_rx": "optical-rx",
}


class Sample(BaseModel):
    v: float


class MetricReading(BaseModel):
    value: float
    ts: datetime | float | str | None = None


class MetricsState(BaseModel):
    tx: list[Sample] = Field(default_factory=list)
    rx: list[Sample] = Field(default_factory=list)
    latency: list[Sample] = Field(default_factory=list)
    cpu: list[Sample] = Field(default_factory=list)
    mem: list[Sample] = Field(default_factory=list)
    optical_tx: list[Sample] = Field(default_factory=list)
    optical_rx: list[Sample] = Field(default_factory=list)


class MetricsResponse(BaseModel):
    serial: str
    max_samples: int
    series: MetricsState
    latest: dict[str, float]
