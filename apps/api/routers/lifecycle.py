"""
App lifecycle endpoints; the host shell reports foreground/background here.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from container import AppContainer
from routers.deps import get_container

router = APIRouter()


class AppStateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_active: bool = Field(alias="isActive")


@router.get("/state")
async def get_app_state(container: AppContainer = Depends(get_container)):
    return container.bootstrapper.status()


@router.post("/state")
async def report_app_state(
    request: AppStateRequest,
    container: AppContainer = Depends(get_container),
):
    await container.lifecycle.emit(request.is_active)
    return container.bootstrapper.status()
