"""
Export/import and storage maintenance endpoints.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends

from container import AppContainer
from routers.deps import dispatch, get_container
from schemas import CleanupResult, ExportDocument, ImportResult

router = APIRouter()


@router.get("/export", response_model=ExportDocument)
async def export_data(container: AppContainer = Depends(get_container)):
    """Full snapshot of profiles and videos."""
    return await dispatch(container, "export_data")


@router.post("/import", response_model=ImportResult)
async def import_data(
    payload: Any = Body(...),
    container: AppContainer = Depends(get_container),
):
    """
    Insert an exported snapshot under new ids.

    Not atomic: records inserted before a failing one are kept.
    """
    return await dispatch(container, "import_data", payload)


@router.post("/maintenance/cleanup", response_model=CleanupResult)
async def cleanup_storage(container: AppContainer = Depends(get_container)):
    return await dispatch(container, "cleanup_orphan_files")
