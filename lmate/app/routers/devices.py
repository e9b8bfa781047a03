from fastapi import APIRouter, Depends

from lmate.app.core.security import verify_token
from lmate.app.schemas.dashboard import ActionResponse, DashboardResponse, EnvironmentUpdate, HistoryResponse
from lmate.app.schemas.metrics import MetricsResponse
from lmate.app.services.session import DashboardSession, registry


router = APIRouter(prefix="/devices", tags=["devices"], dependencies=[Depends(verify_token)])


async def get_device_session(serial: str) -> DashboardSession:
    return await registry.get(serial)


@router.get("/{serial}/dashboard", response_model=DashboardResponse)
async def fetch_dashboard(session: DashboardSession = Depends(get_device_session)) -> DashboardResponse:
    return session.dashboard()


@router.get("/{serial}/metrics", response_model=MetricsResponse)
async def fetch_metrics(session: DashboardSession = Depends(get_device_session)) -> MetricsResponse:
    return session.metrics_view()


@router.get("/{serial}/history", response_model=HistoryResponse)
async def fetch_history(session: DashboardSession = Depends(get_device_session)) -> HistoryResponse:
    return await session.history()


@router.post("/{serial}/environment", response_model=ActionResponse)
async def set_environment(
    payload: EnvironmentUpdate,
    session: DashboardSession = Depends(get_device_session),
) -> ActionResponse:
    return await session.set_environment(payload.env)


@router.post("/{serial}/onboarding/trigger", response_model=ActionResponse)
async def trigger_onboarding(session: DashboardSession = Depends(get_device_session)) -> ActionResponse:
    return await session.trigger_onboarding()


@router.post("/{serial}/factory-reset", response_model=ActionResponse)
async def factory_reset(session: DashboardSession = Depends(get_device_session)) -> ActionResponse:
    return await session.factory_reset()
