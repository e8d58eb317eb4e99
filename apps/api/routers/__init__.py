"""Routers package."""

from . import (
    health,
    profiles,
    videos,
    data,
    mode,
    lifecycle,
)
