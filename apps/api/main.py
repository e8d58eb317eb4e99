"""
YouTube Schedule Manager - FastAPI Backend
Local planner API: answers from the remote service when online and from the
embedded store when offline.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings, validate_runtime_settings
from container import build_container
import models  # noqa: F401
from routers import (
    health,
    profiles,
    videos,
    data,
    mode,
    lifecycle,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    print(f"🚀 Starting {settings.APP_NAME} API ({settings.APP_PLATFORM})...")
    validate_runtime_settings()
    container = build_container(settings)
    app.state.container = container
    if await container.bootstrapper.cold_start():
        print(f"🗄️ Local store ready; mode: {container.mode.state.value}.")
    else:
        print(f"⚠️ Startup incomplete: {container.bootstrapper.last_error}")
    yield
    # Shutdown
    await container.aclose()
    print("👋 Shutting down API...")


app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Schedule uploads per channel, online or fully offline",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(profiles.router, prefix="/api/profiles", tags=["Profiles"])
app.include_router(videos.router, prefix="/api/videos", tags=["Videos"])
app.include_router(data.router, prefix="/api", tags=["Data"])
app.include_router(mode.router, prefix="/api/mode", tags=["Mode"])
app.include_router(lifecycle.router, prefix="/api/lifecycle", tags=["Lifecycle"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.API_HOST, port=settings.API_PORT)
