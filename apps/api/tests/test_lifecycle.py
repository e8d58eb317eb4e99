from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio

from container import build_container
from services.errors import StoreInitError
from services.lifecycle import CURRENT, FIRST_RUN, UPGRADED
from services.preferences import APP_VERSION_KEY, FIRST_RUN_COMPLETED_KEY, OFFLINE_MODE_KEY

from conftest import make_settings


@pytest_asyncio.fixture
async def container(tmp_path):
    app_container = build_container(make_settings(tmp_path))
    yield app_container
    await app_container.aclose()


@pytest.mark.asyncio
async def test_cold_start_seeds_default_profile_once(container, tmp_path):
    assert await container.bootstrapper.cold_start() is True
    assert container.lifecycle.listener_count == 1
    assert (tmp_path / "data" / "youtube_planner.db").exists()

    profiles = await container.offline.get_profiles()
    assert [(p.name, p.channel_name, p.channel_link) for p in profiles] == [
        ("My YouTube Channel", "@mychannel", "https://youtube.com/@mychannel")
    ]
    assert profiles[0].daily_push_count == 0
    assert profiles[0].last_push_reset is None
    assert await container.preferences.get(FIRST_RUN_COMPLETED_KEY) == "true"
    assert await container.preferences.get(APP_VERSION_KEY) == "1.0.0"
    assert await container.preferences.get(OFFLINE_MODE_KEY) == "true"

    assert await container.bootstrapper.check_first_run() == CURRENT
    assert len(await container.offline.get_profiles()) == 1


@pytest.mark.asyncio
async def test_first_run_keeps_existing_profiles(container):
    await container.offline.initialize()
    await container.offline.create_profile(
        container.bootstrapper.default_profile.model_copy(update={"name": "Existing"})
    )
    assert await container.bootstrapper.check_first_run() == FIRST_RUN
    assert [p.name for p in await container.offline.get_profiles()] == ["Existing"]


@pytest.mark.asyncio
async def test_version_change_runs_migrations(container):
    await container.offline.initialize()
    await container.preferences.set(FIRST_RUN_COMPLETED_KEY, "true")
    await container.preferences.set(APP_VERSION_KEY, "0.9.0")
    hook = AsyncMock()
    container.bootstrapper.migrations.append(hook)

    assert await container.bootstrapper.check_first_run() == UPGRADED
    hook.assert_awaited_once_with("0.9.0", "1.0.0")
    assert await container.preferences.get(APP_VERSION_KEY) == "1.0.0"
    assert await container.offline.get_profiles() == []


@pytest.mark.asyncio
async def test_cold_start_keeps_forced_offline_preference(container):
    await container.preferences.set(OFFLINE_MODE_KEY, "forced-offline")
    assert await container.bootstrapper.cold_start() is True
    assert await container.preferences.get(OFFLINE_MODE_KEY) == "forced-offline"


@pytest.mark.asyncio
async def test_web_cold_start_leaves_mode_preference_alone(tmp_path):
    web = build_container(make_settings(tmp_path, APP_PLATFORM="web"))
    assert await web.bootstrapper.cold_start() is True
    assert await web.preferences.get(OFFLINE_MODE_KEY) is None
    assert not (tmp_path / "data" / "youtube_planner.db").exists()
    await web.aclose()


@pytest.mark.asyncio
async def test_cold_start_logs_instead_of_raising(container):
    with patch.object(container.offline, "initialize", side_effect=StoreInitError("disk full")):
        assert await container.bootstrapper.cold_start() is False
    assert container.bootstrapper.started is False
    assert container.bootstrapper.last_error == "disk full"
    assert container.bootstrapper.status()["lastError"] == "disk full"


@pytest.mark.asyncio
async def test_background_closes_store_and_foreground_reopens(tmp_path):
    app_container = build_container(make_settings(tmp_path, CLOSE_STORE_ON_BACKGROUND=True))
    await app_container.bootstrapper.cold_start()
    assert app_container.store.is_initialized

    await app_container.lifecycle.emit(False)
    assert not app_container.store.is_initialized
    assert app_container.bootstrapper.status()["isActive"] is False

    await app_container.lifecycle.emit(True)
    assert app_container.store.is_initialized
    assert len(await app_container.offline.get_profiles()) == 1
    await app_container.aclose()


@pytest.mark.asyncio
async def test_background_keeps_store_open_by_default(container):
    await container.bootstrapper.cold_start()
    await container.lifecycle.emit(False)
    assert container.store.is_initialized
