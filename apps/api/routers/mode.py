"""
Connectivity mode endpoints.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from container import AppContainer
from routers.deps import get_container, planner_errors
from services.runtime import has_network_capability

router = APIRouter()


class AutoModeRequest(BaseModel):
    offline: bool


async def _mode_payload(container: AppContainer) -> dict:
    mode = await container.mode.resolve_mode()
    return {
        "mode": mode.value,
        "preference": await container.mode.preference(),
        "platform": container.mode.platform,
        "networkCapable": has_network_capability(container.mode.remote_api_url),
    }


@router.get("")
async def get_mode(container: AppContainer = Depends(get_container)):
    return await _mode_payload(container)


@router.post("/offline")
async def force_offline(container: AppContainer = Depends(get_container)):
    await container.mode.force_offline()
    return await _mode_payload(container)


@router.post("/online")
async def force_online(container: AppContainer = Depends(get_container)):
    with planner_errors():
        await container.mode.force_online()
    return await _mode_payload(container)


@router.post("/auto")
async def set_detected_mode(
    request: AutoModeRequest,
    container: AppContainer = Depends(get_container),
):
    """Record an auto-detected connectivity state."""
    await container.mode.set_offline_mode(request.offline)
    return await _mode_payload(container)
