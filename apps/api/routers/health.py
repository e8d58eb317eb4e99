"""
Health check endpoints.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from container import AppContainer
from routers.deps import get_container

router = APIRouter()


@router.get("/health")
async def health_check(container: AppContainer = Depends(get_container)):
    """
    Health check endpoint.
    Returns overall system health status.
    """
    health_status = {
        "status": "healthy",
        "api": "up",
        "database": "unknown",
        "files": "unknown",
        "mode": container.mode.state.value,
        "remote_api": "configured" if container.settings.REMOTE_API_URL else "missing",
    }

    # Check database connection
    try:
        await container.store.ping()
        health_status["database"] = "up"
    except Exception as e:
        health_status["database"] = f"down: {str(e)}"
        health_status["status"] = "degraded"

    # Check file areas
    try:
        await container.files.list("videos")
        health_status["files"] = "up"
    except Exception as e:
        health_status["files"] = f"down: {str(e)}"
        health_status["status"] = "degraded"

    return health_status


@router.get("/health/ready")
async def readiness_check(container: AppContainer = Depends(get_container)):
    """Ready once the cold start finished without errors."""
    if not container.bootstrapper.started:
        return JSONResponse(
            status_code=503,
            content={"ready": False, "error": container.bootstrapper.last_error},
        )
    return {"ready": True}


@router.get("/health/live")
async def liveness_check():
    """Liveness probe."""
    return {"alive": True}
