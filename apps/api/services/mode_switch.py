"""Online/offline mode resolution and automatic failover."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Optional, TypeVar

from services.contracts import BasePlannerService
from services.errors import ModeUnavailable, NetworkError, NoOfflineHandler
from services.preferences import OFFLINE_MODE_KEY, PreferenceStore
from services.remote_api import RemoteApiService
from services.runtime import has_network_capability, is_native_platform

logger = logging.getLogger(__name__)

T = TypeVar("T")

FORCED_OFFLINE = "forced-offline"
AUTO_OFFLINE = "true"
AUTO_ONLINE = "false"

PLANNER_OPERATIONS: FrozenSet[str] = frozenset(BasePlannerService.__abstractmethods__)


class ConnectionState(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    DETECTING = "detecting"


class ModeController:
    """
    Decides per call whether the remote API or the offline service answers.

    The persisted preference holds ``forced-offline`` (user choice), or
    ``true``/``false`` (auto-detected offline/online). A network failure on an
    online call with an offline fallback persists ``true`` and answers offline.
    """

    def __init__(
        self,
        preferences: PreferenceStore,
        remote: RemoteApiService,
        offline: BasePlannerService,
        *,
        platform: str,
        remote_api_url: str = "",
    ) -> None:
        self.preferences = preferences
        self.remote = remote
        self.offline = offline
        self.platform = platform
        self.remote_api_url = remote_api_url
        self._state = ConnectionState.DETECTING

    @property
    def state(self) -> ConnectionState:
        return self._state

    async def preference(self) -> Optional[str]:
        return await self.preferences.get(OFFLINE_MODE_KEY)

    async def resolve_mode(self) -> ConnectionState:
        self._state = ConnectionState.DETECTING
        value = await self.preference()
        if value == FORCED_OFFLINE:
            mode = ConnectionState.OFFLINE
        elif not is_native_platform(self.platform):
            # Browser-hosted runtimes always talk to the server
            mode = ConnectionState.ONLINE
        elif value == AUTO_ONLINE:
            mode = ConnectionState.ONLINE
        else:
            mode = ConnectionState.OFFLINE
        self._state = mode
        return mode

    async def is_offline(self) -> bool:
        return await self.resolve_mode() == ConnectionState.OFFLINE

    async def force_offline(self) -> ConnectionState:
        await self.preferences.set(OFFLINE_MODE_KEY, FORCED_OFFLINE)
        self._state = ConnectionState.OFFLINE
        logger.info("Offline mode forced")
        return self._state

    async def force_online(self) -> ConnectionState:
        if not has_network_capability(self.remote_api_url):
            raise ModeUnavailable("Online mode needs a configured remote API URL.")
        await self.preferences.set(OFFLINE_MODE_KEY, AUTO_ONLINE)
        self._state = await self.resolve_mode()
        logger.info("Online mode requested; resolved to %s", self._state.value)
        return self._state

    async def set_offline_mode(self, enabled: bool) -> None:
        await self.preferences.set(OFFLINE_MODE_KEY, AUTO_OFFLINE if enabled else AUTO_ONLINE)
        self._state = ConnectionState.OFFLINE if enabled else ConnectionState.ONLINE

    async def _fail_over(self, exc: NetworkError, label: str) -> None:
        logger.warning("Request %s failed (%s); switching to offline mode", label, exc)
        await self.set_offline_mode(True)

    async def api_request(
        self,
        endpoint: str,
        options: Optional[Dict[str, Any]] = None,
        offline_handler: Optional[Callable[[], Awaitable[T]]] = None,
    ) -> Any:
        """
        Perform a remote request, or run ``offline_handler`` when offline.

        ``options`` are passed to ``RemoteApiService.request`` (method, json,
        params, return_null_on_401).
        """
        if await self.is_offline():
            if offline_handler is None:
                raise NoOfflineHandler("Offline mode active but no offline handler provided")
            return await offline_handler()

        try:
            return await self.remote.request(endpoint, **(options or {}))
        except NetworkError as exc:
            if offline_handler is None:
                raise
            await self._fail_over(exc, endpoint)
            return await offline_handler()

    async def execute(self, operation: str, *args: Any, **kwargs: Any) -> Any:
        """Dispatch a planner operation to the variant the current mode selects."""
        if operation not in PLANNER_OPERATIONS:
            raise ValueError(f"Unknown planner operation: {operation}")

        async def offline_handler() -> Any:
            return await getattr(self.offline, operation)(*args, **kwargs)

        if await self.is_offline():
            return await offline_handler()

        try:
            return await getattr(self.remote, operation)(*args, **kwargs)
        except NetworkError as exc:
            await self._fail_over(exc, operation)
            return await offline_handler()
