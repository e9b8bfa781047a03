from __future__ import annotations

from lmate.app.schemas.dashboard import StepIcon, StepProgress, StepView
from lmate.app.schemas.device import OnboardingStatus


# Ordered step rail shown on the provisioning panel
STEP_FLOW: list[tuple[str, str]] = [
    ("dhcp", "DHCP Lease"),
    ("obRecords", "O.B Records"),
    ("onboard", "AO Onboard"),
    ("deviceActive", "Device Active"),
]


def derive_steps(status: OnboardingStatus | str, lease_ip: str | None, device_active: bool) -> StepProgress:
    status = OnboardingStatus(status)
    completed = {
        "dhcp": bool(lease_ip),
        "obRecords": status != OnboardingStatus.PENDING,
        "onboard": status == OnboardingStatus.DONE,
        "deviceActive": bool(device_active),
    }
    current = next((key for key, _ in STEP_FLOW if not completed[key]), None)
    return StepProgress(completed=completed, current=current)


def step_icon(key: str, progress: StepProgress) -> StepIcon:
    if progress.completed.get(key):
        return StepIcon.COMPLETE
    if key == progress.current:
        return StepIcon.CURRENT
    return StepIcon.PENDING


def build_step_rail(progress: StepProgress) -> list[StepView]:
    return [StepView(key=key, label=label, icon=step_icon(key, progress)) for key, label in STEP_FLOW]
