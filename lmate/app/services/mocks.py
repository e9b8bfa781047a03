from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import Any, Sequence, TypeVar


T = TypeVar("T")

_METRIC_RANGES: dict[str, tuple[int, int]] = {
    "ethernet-bytes-sent-usage": (100, 9000),
    "ethernet-bytes-rcvd-usage": (200, 11000),
    "ping": (1, 50),
    "cpu-usage": (5, 95),
    "memory-free": (100, 8000),
    "optical-tx": (-10, -2),
    "optical-rx": (-15, -5),
}
DEFAULT_METRIC_RANGE = (1, 100)


def rand(lo: int, hi: int, rng: random.Random | None = None) -> int:
    """Inclusive random integer."""
    return (rng or random).randint(lo, hi)


def pick(items: Sequence[T], rng: random.Random | None = None) -> T:
    return (rng or random).choice(items)


def now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def mock_mac(rng: random.Random | None = None) -> str:
    return ":".join(f"{rand(0, 255, rng):02x}" for _ in range(6))


def metric_range(name: str) -> tuple[int, int]:
    return _METRIC_RANGES.get(name, DEFAULT_METRIC_RANGE)


def mock_metric(name: str, rng: random.Random | None = None) -> dict[str, Any]:
    lo, hi = metric_range(name)
    return {"value": rand(lo, hi, rng), "ts": now_iso()}


def mock_dhcp_lease(rng: random.Random | None = None) -> dict[str, Any]:
    now = datetime.now(tz=timezone.utc)
    return {
        "ip": f"192.168.0.{rand(2, 254, rng)}",
        "macAddress": mock_mac(rng),
        "leaseStart": (now - timedelta(hours=rand(1, 6, rng))).isoformat(),
        "leaseEnd": (now + timedelta(hours=rand(1, 48, rng))).isoformat(),
    }


def default_services() -> list[dict[str, Any]]:
    return [
        {"id": "IOD-101", "bw": "1 Gb", "applied": False},
        {"id": "EOD-202", "bw": "100 Mb", "applied": False},
    ]


def default_ports() -> list[dict[str, Any]]:
    return [
        {"name": "1/1", "speed": "1 Gb", "vlans": "10,20", "admin": "up", "applied": False},
        {"name": "1/2", "speed": "10 Gb", "vlans": "30", "admin": "down", "applied": False},
    ]
