"""
Long-lived object graph, built once at startup and shared by every request.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from config import Settings, settings as default_settings
from schemas import ProfileCreate
from services.file_area import FileAreaManager
from services.lifecycle import AppLifecycle, LifecycleBootstrapper
from services.local_store import Clock, LocalStore
from services.mode_switch import ModeController
from services.offline_api import OfflineApiService
from services.preferences import PreferenceStore
from services.remote_api import RemoteApiService
from services.runtime import detect_platform
from services.thumbnails import ThumbnailGenerator


@dataclass
class AppContainer:
    settings: Settings
    preferences: PreferenceStore
    store: LocalStore
    files: FileAreaManager
    offline: OfflineApiService
    remote: RemoteApiService
    mode: ModeController
    lifecycle: AppLifecycle
    bootstrapper: LifecycleBootstrapper

    async def aclose(self) -> None:
        await self.bootstrapper.shutdown()
        await self.remote.close()


def build_container(
    app_settings: Optional[Settings] = None,
    *,
    remote_transport: Optional[httpx.AsyncBaseTransport] = None,
    clock: Optional[Clock] = None,
) -> AppContainer:
    cfg = app_settings or default_settings
    data_dir = Path(cfg.DATA_DIR)
    platform = detect_platform(cfg)

    preferences = PreferenceStore(data_dir / cfg.PREFERENCES_FILE_NAME)
    store = LocalStore(
        database_url=cfg.DATABASE_URL or None,
        platform=platform,
        data_dir=data_dir,
        database_name=cfg.DATABASE_NAME,
        echo=cfg.DATABASE_ECHO,
        push_window_hours=cfg.PUSH_RESET_WINDOW_HOURS,
        clock=clock,
    )
    files = FileAreaManager(data_dir / cfg.FILES_DIR_NAME, opener_command=cfg.FILE_OPENER_COMMAND)
    thumbnails = ThumbnailGenerator(
        files,
        use_ffmpeg=cfg.ENABLE_FFMPEG_THUMBNAILS,
        offset_seconds=cfg.THUMBNAIL_OFFSET_SECONDS,
    )
    offline = OfflineApiService(
        store,
        files,
        thumbnails,
        daily_push_limit=cfg.DEFAULT_DAILY_PUSH_LIMIT,
        max_video_file_size=cfg.MAX_VIDEO_FILE_SIZE,
        use_placeholder_files=cfg.USE_PLACEHOLDER_FILES,
        max_placeholder_size=cfg.MAX_PLACEHOLDER_SIZE,
        supported_formats=cfg.SUPPORTED_VIDEO_FORMATS,
    )
    remote = RemoteApiService(
        cfg.REMOTE_API_URL,
        timeout=cfg.REMOTE_API_TIMEOUT_SECONDS,
        transport=remote_transport,
    )
    mode = ModeController(
        preferences,
        remote,
        offline,
        platform=platform,
        remote_api_url=cfg.REMOTE_API_URL,
    )
    lifecycle = AppLifecycle()
    bootstrapper = LifecycleBootstrapper(
        lifecycle=lifecycle,
        mode=mode,
        offline=offline,
        preferences=preferences,
        platform=platform,
        app_version=cfg.APP_VERSION,
        default_profile=ProfileCreate(
            name=cfg.DEFAULT_PROFILE_NAME,
            channel_name=cfg.DEFAULT_PROFILE_CHANNEL_NAME,
            channel_link=cfg.DEFAULT_PROFILE_CHANNEL_LINK,
        ),
        close_store_on_background=cfg.CLOSE_STORE_ON_BACKGROUND,
    )
    return AppContainer(
        settings=cfg,
        preferences=preferences,
        store=store,
        files=files,
        offline=offline,
        remote=remote,
        mode=mode,
        lifecycle=lifecycle,
        bootstrapper=bootstrapper,
    )
