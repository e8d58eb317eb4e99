"""
App lifecycle: cold start, first-run seeding and foreground/background handling.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Dict, List, Optional

from schemas import ProfileCreate
from services.mode_switch import FORCED_OFFLINE, ModeController
from services.offline_api import OfflineApiService
from services.preferences import APP_VERSION_KEY, FIRST_RUN_COMPLETED_KEY, PreferenceStore
from services.runtime import is_native_platform

logger = logging.getLogger(__name__)

AppStateListener = Callable[[bool], Awaitable[None]]
MigrationHook = Callable[[Optional[str], str], Awaitable[None]]

FIRST_RUN = "first-run"
UPGRADED = "upgraded"
CURRENT = "current"


class AppLifecycle:
    """Fan-out of app state changes (active/background) to registered observers."""

    def __init__(self) -> None:
        self.is_active = True
        self._listeners: List[AppStateListener] = []

    def add_listener(self, listener: AppStateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def emit(self, is_active: bool) -> None:
        self.is_active = is_active
        for listener in list(self._listeners):
            await listener(is_active)


class LifecycleBootstrapper:
    def __init__(
        self,
        *,
        lifecycle: AppLifecycle,
        mode: ModeController,
        offline: OfflineApiService,
        preferences: PreferenceStore,
        platform: str,
        app_version: str,
        default_profile: ProfileCreate,
        close_store_on_background: bool = False,
        migrations: Optional[List[MigrationHook]] = None,
    ) -> None:
        self.lifecycle = lifecycle
        self.mode = mode
        self.offline = offline
        self.preferences = preferences
        self.platform = platform
        self.app_version = app_version
        self.default_profile = default_profile
        self.close_store_on_background = close_store_on_background
        # Version migrations; none are needed yet
        self.migrations: List[MigrationHook] = list(migrations or [])
        self.started = False
        self.last_error: Optional[str] = None
        self._remove_listener: Optional[Callable[[], None]] = None

    async def cold_start(self) -> bool:
        """
        Bring the app to a usable state once per process.

        Errors are logged and recorded in ``last_error`` rather than raised, so
        the API still starts and can report what went wrong.
        """
        logger.info("Initializing app on %s platform...", self.platform)
        if self._remove_listener is None:
            self._remove_listener = self.lifecycle.add_listener(self._on_app_state_change)

        try:
            if is_native_platform(self.platform) and await self.mode.preference() != FORCED_OFFLINE:
                await self.mode.set_offline_mode(True)
            await self.offline.initialize()
            await self.check_first_run()
        except Exception as exc:
            logger.exception("Error initializing app: %s", exc)
            self.last_error = str(exc)
            return False

        self.started = True
        self.last_error = None
        logger.info("App initialization complete")
        return True

    async def check_first_run(self) -> str:
        first_run_completed = await self.preferences.get(FIRST_RUN_COMPLETED_KEY)
        if not first_run_completed:
            logger.info("First run detected, setting up initial data...")
            if not await self.offline.get_profiles():
                logger.info("Creating default profile %s", self.default_profile.name)
                await self.offline.create_profile(self.default_profile)
            await self.preferences.set(FIRST_RUN_COMPLETED_KEY, "true")
            await self.preferences.set(APP_VERSION_KEY, self.app_version)
            return FIRST_RUN

        stored_version = await self.preferences.get(APP_VERSION_KEY)
        if stored_version == self.app_version:
            return CURRENT

        logger.info("App updated from %s to %s", stored_version, self.app_version)
        for hook in self.migrations:
            await hook(stored_version, self.app_version)
        await self.preferences.set(APP_VERSION_KEY, self.app_version)
        return UPGRADED

    async def _on_app_state_change(self, is_active: bool) -> None:
        if is_active:
            await self.on_foreground()
        else:
            await self.on_background()

    async def on_foreground(self) -> None:
        try:
            if not self.offline.store.is_initialized:
                logger.info("Re-opening local store after background")
                await self.offline.initialize()
        except Exception as exc:
            logger.exception("Error handling app foreground: %s", exc)
            self.last_error = str(exc)

    async def on_background(self) -> None:
        if not self.close_store_on_background:
            return
        try:
            await self.offline.store.close()
        except Exception as exc:
            logger.exception("Error handling app background: %s", exc)
            self.last_error = str(exc)

    async def shutdown(self) -> None:
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None
        await self.offline.store.close()

    def status(self) -> Dict[str, object]:
        return {
            "isActive": self.lifecycle.is_active,
            "started": self.started,
            "storeOpen": self.offline.store.is_initialized,
            "mode": self.mode.state.value,
            "platform": self.platform,
            "appVersion": self.app_version,
            "lastError": self.last_error,
        }
