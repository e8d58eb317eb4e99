from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from config import Settings
from services.file_area import FileAreaManager
from services.local_store import LocalStore
from services.offline_api import OfflineApiService
from services.preferences import PreferenceStore
from services.thumbnails import ThumbnailGenerator


T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable UTC clock injected into the store."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "DATA_DIR": str(tmp_path / "data"),
        "APP_PLATFORM": "android",
        "REMOTE_API_URL": "http://remote.test",
        "ENABLE_FFMPEG_THUMBNAILS": False,
        "CLOSE_STORE_ON_BACKGROUND": False,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
async def store(tmp_path, clock):
    local_store = LocalStore(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'planner.db'}",
        platform="android",
        clock=clock,
    )
    await local_store.initialize()
    yield local_store
    await local_store.close()


@pytest_asyncio.fixture
async def files(tmp_path):
    manager = FileAreaManager(tmp_path / "files")
    await manager.initialize()
    return manager


@pytest_asyncio.fixture
async def offline(store, files):
    return OfflineApiService(
        store,
        files,
        ThumbnailGenerator(files, use_ffmpeg=False),
        daily_push_limit=10,
    )


@pytest.fixture
def preferences(tmp_path):
    return PreferenceStore(tmp_path / "preferences.json")
