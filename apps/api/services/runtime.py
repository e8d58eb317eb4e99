"""Runtime platform detection."""

from __future__ import annotations

from typing import Optional

from config import Settings, settings


NATIVE_PLATFORMS = ("android", "ios", "desktop")


def detect_platform(app_settings: Optional[Settings] = None) -> str:
    """Return the configured host platform key."""
    cfg = app_settings or settings
    return str(cfg.APP_PLATFORM or "web").strip().lower()


def is_native_platform(platform: str) -> bool:
    """Native installs keep the embedded store on disk and default to offline mode."""
    return platform in NATIVE_PLATFORMS


def has_network_capability(remote_api_url: str) -> bool:
    return bool((remote_api_url or "").strip())
