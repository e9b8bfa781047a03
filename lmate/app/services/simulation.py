"""Mock-path progression for a simulated L-Mate device.

Every transition is monotonic: status only moves forward, an active device
stays active and applied configuration is never rolled back.
"""

from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import TypeVar

from pydantic import BaseModel

from lmate.app.schemas.device import FirmwareInfo, OnboardingStatus
from lmate.app.services.mocks import rand


STATUS_DONE_PROBABILITY = 0.3
ACTIVATION_PROBABILITY = 0.3
UPGRADE_START_PROBABILITY = 0.1
UPGRADE_STEP = (15, 25)
SERVICE_APPLY_PROBABILITY = 0.2
PORT_APPLY_PROBABILITY = 0.15

ConfigT = TypeVar("ConfigT", bound=BaseModel)


def _rng(rng: random.Random | None):
    return rng or random


def next_status(status: OnboardingStatus, rng: random.Random | None = None) -> OnboardingStatus:
    if status == OnboardingStatus.PENDING:
        return OnboardingStatus.RUNNING
    if status == OnboardingStatus.RUNNING and _rng(rng).random() < STATUS_DONE_PROBABILITY:
        return OnboardingStatus.DONE
    return status


def next_active(active: bool, status: OnboardingStatus, rng: random.Random | None = None) -> bool:
    if active:
        return True
    return status == OnboardingStatus.DONE and _rng(rng).random() < ACTIVATION_PROBABILITY


def next_firmware(
    firmware: FirmwareInfo,
    rng: random.Random | None = None,
    *,
    now: datetime | None = None,
) -> FirmwareInfo:
    """Advance a simulated firmware upgrade by one tick."""
    progress = firmware.progress
    current = firmware.current
    upgrade_time = firmware.upgrade_time

    if progress is None:
        if _rng(rng).random() < UPGRADE_START_PROBABILITY:
            progress = 0
    else:
        progress += rand(*UPGRADE_STEP, rng)

    if progress is not None and progress >= 100:
        progress = None
        current = firmware.latest
        upgrade_time = now or datetime.now(tz=timezone.utc)

    return firmware.model_copy(
        update={"progress": progress, "current": current, "upgrade_time": upgrade_time}
    )


def apply_configuration(
    items: list[ConfigT],
    probability: float,
    rng: random.Random | None = None,
) -> list[ConfigT]:
    generator = _rng(rng)
    return [
        item if item.applied else item.model_copy(update={"applied": generator.random() < probability})
        for item in items
    ]
