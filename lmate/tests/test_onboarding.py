import pytest

from lmate.app.schemas.dashboard import StepIcon
from lmate.app.schemas.device import OnboardingStatus
from lmate.app.services.onboarding import STEP_FLOW, build_step_rail, derive_steps, step_icon


def test_nothing_completed_points_at_dhcp():
    progress = derive_steps("pending", None, False)

    assert progress.completed == {"dhcp": False, "obRecords": False, "onboard": False, "deviceActive": False}
    assert progress.current == "dhcp"


def test_everything_completed_has_no_current_step():
    progress = derive_steps(OnboardingStatus.DONE, "192.168.0.10", True)

    assert all(progress.completed.values())
    assert progress.current is None


@pytest.mark.parametrize(
    ("status", "ip", "active", "current"),
    [
        ("pending", "10.0.0.2", False, "obRecords"),
        ("running", "10.0.0.2", False, "onboard"),
        ("done", "10.0.0.2", False, "deviceActive"),
        ("running", None, True, "dhcp"),
    ],
)
def test_current_is_first_incomplete_step(status, ip, active, current):
    assert derive_steps(status, ip, active).current == current


def test_step_rail_renders_tri_state_icons():
    progress = derive_steps("running", "10.0.0.2", False)

    rail = build_step_rail(progress)

    assert [step.key for step in rail] == [key for key, _ in STEP_FLOW]
    assert [step.icon for step in rail] == [
        StepIcon.COMPLETE,
        StepIcon.COMPLETE,
        StepIcon.CURRENT,
        StepIcon.PENDING,
    ]
    assert rail[0].label == "DHCP Lease"
    assert step_icon("deviceActive", progress) is StepIcon.PENDING


def test_unknown_status_is_rejected():
    with pytest.raises(ValueError):
        derive_steps("rebooting", None, False)
