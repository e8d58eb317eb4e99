import asyncio
from datetime import date, datetime, timedelta
from unittest.mock import patch

import pytest

from database import create_engine_for_url
from schemas import ProfileCreate, ProfilePatch, VideoCreate, VideoPatch
from services.errors import ConstraintViolation, NotInitialized, StoreInitError
from services.local_store import LocalStore

from conftest import T0


def _profile(name="Chan", **overrides) -> ProfileCreate:
    values = {
        "name": name,
        "channel_name": f"@{name.lower()}",
        "channel_link": f"https://youtube.com/@{name.lower()}",
        "daily_push_count": 0,
        "last_push_reset": None,
    }
    values.update(overrides)
    return ProfileCreate(**values)


def _video(profile_id: int, title: str, schedule_date: datetime, **overrides) -> VideoCreate:
    return VideoCreate(profile_id=profile_id, title=title, schedule_date=schedule_date, **overrides)


@pytest.mark.asyncio
async def test_store_rejects_calls_before_initialize(tmp_path):
    store = LocalStore(database_url=f"sqlite+aiosqlite:///{tmp_path / 'never.db'}")
    with pytest.raises(NotInitialized):
        await store.get_profiles()


@pytest.mark.asyncio
async def test_concurrent_initialize_creates_schema_once(tmp_path):
    store = LocalStore(database_url=f"sqlite+aiosqlite:///{tmp_path / 'race.db'}")
    with patch("services.local_store.create_engine_for_url", wraps=create_engine_for_url) as engine_factory:
        await asyncio.gather(*(store.initialize() for _ in range(5)))
        await store.initialize()
    assert engine_factory.call_count == 1
    assert store.is_initialized
    await store.close()


@pytest.mark.asyncio
async def test_initialize_failure_raises_store_init_error(tmp_path):
    missing_dir = tmp_path / "missing" / "nested"
    store = LocalStore(database_url=f"sqlite+aiosqlite:///{missing_dir / 'planner.db'}")
    with pytest.raises(StoreInitError):
        await store.initialize()
    assert not store.is_initialized


@pytest.mark.asyncio
async def test_native_platform_uses_file_under_data_dir(tmp_path):
    store = LocalStore(platform="android", data_dir=tmp_path / "data", database_name="planner.db")
    assert store.resolve_database_url().endswith("planner.db")
    web_store = LocalStore(platform="web")
    assert web_store.resolve_database_url() == "sqlite+aiosqlite:///:memory:"


@pytest.mark.asyncio
async def test_increment_with_null_reset_starts_window(store, clock):
    created = await store.create_profile(_profile("Chan", channel_link="https://youtube.com/@chan"))
    assert created.id is not None
    assert created.last_push_reset is None

    updated = await store.increment_profile_push_count(created.id)
    assert updated.daily_push_count == 1
    assert updated.last_push_reset == clock.now


@pytest.mark.asyncio
async def test_increment_after_window_resets_to_one(store, clock):
    created = await store.create_profile(_profile(daily_push_count=5, last_push_reset=T0))
    clock.now = T0 + timedelta(hours=24, seconds=1)

    updated = await store.increment_profile_push_count(created.id)
    assert updated.daily_push_count == 1
    assert updated.last_push_reset == T0 + timedelta(hours=24, seconds=1)


@pytest.mark.asyncio
async def test_increment_inside_window_adds_one(store, clock):
    created = await store.create_profile(_profile(daily_push_count=5, last_push_reset=T0))
    clock.now = T0 + timedelta(hours=23, minutes=59, seconds=59)

    updated = await store.increment_profile_push_count(created.id)
    assert updated.daily_push_count == 6
    assert updated.last_push_reset == T0

    reloaded = await store.get_profile(created.id)
    assert reloaded.daily_push_count == 6
    assert reloaded.last_push_reset == T0


@pytest.mark.asyncio
async def test_reset_sets_zero_and_stamps_now(store, clock):
    created = await store.create_profile(_profile(daily_push_count=7, last_push_reset=T0))
    clock.advance(hours=3)

    reset = await store.reset_profile_push_count(created.id)
    assert reset.daily_push_count == 0
    assert reset.last_push_reset == T0 + timedelta(hours=3)


@pytest.mark.asyncio
async def test_update_profile_changes_only_supplied_fields(store):
    created = await store.create_profile(_profile("Chan"))
    updated = await store.update_profile(created.id, ProfilePatch(name="Channel Two"))
    assert updated.name == "Channel Two"
    assert updated.channel_name == created.channel_name
    assert updated.channel_link == created.channel_link


@pytest.mark.asyncio
async def test_missing_profile_returns_none_or_false(store):
    assert await store.get_profile(404) is None
    assert await store.update_profile(404, ProfilePatch(name="x")) is None
    assert await store.increment_profile_push_count(404) is None
    assert await store.delete_profile(404) is False


@pytest.mark.asyncio
async def test_profiles_are_ordered_by_name(store):
    for name in ("Zed", "Alpha", "Mid"):
        await store.create_profile(_profile(name))
    names = [profile.name for profile in await store.get_profiles()]
    assert names == ["Alpha", "Mid", "Zed"]


@pytest.mark.asyncio
async def test_video_with_unknown_profile_violates_constraint(store):
    with pytest.raises(ConstraintViolation):
        await store.create_video(_video(999, "Orphan", datetime(2024, 5, 1, 9, 0)))


@pytest.mark.asyncio
async def test_videos_by_date_match_calendar_day_in_ascending_order(store):
    profile = await store.create_profile(_profile())
    schedule = [
        ("evening", datetime(2024, 5, 1, 18, 0)),
        ("day before", datetime(2024, 4, 30, 23, 59)),
        ("midnight", datetime(2024, 5, 1, 0, 0)),
        ("day after", datetime(2024, 5, 2, 0, 0)),
        ("last second", datetime(2024, 5, 1, 23, 59, 59)),
    ]
    for title, when in schedule:
        await store.create_video(_video(profile.id, title, when))

    videos = await store.get_videos_by_date(date(2024, 5, 1))
    assert [video.title for video in videos] == ["midnight", "evening", "last second"]


@pytest.mark.asyncio
async def test_video_lists_default_to_latest_first(store):
    profile = await store.create_profile(_profile())
    await store.create_video(_video(profile.id, "first", datetime(2024, 5, 1, 9, 0)))
    await store.create_video(_video(profile.id, "third", datetime(2024, 5, 3, 9, 0)))
    await store.create_video(_video(profile.id, "second", datetime(2024, 5, 2, 9, 0)))

    assert [video.title for video in await store.get_videos()] == ["third", "second", "first"]
    assert [video.title for video in await store.get_videos_by_profile(profile.id)] == [
        "third",
        "second",
        "first",
    ]


@pytest.mark.asyncio
async def test_video_filters_by_status(store):
    chan = await store.create_profile(_profile("Chan"))
    other = await store.create_profile(_profile("Other"))
    await store.create_video(_video(chan.id, "done", datetime(2024, 5, 1, 9, 0), status="completed"))
    await store.create_video(_video(chan.id, "todo", datetime(2024, 5, 2, 9, 0)))
    await store.create_video(_video(other.id, "other done", datetime(2024, 5, 3, 9, 0), status="completed"))

    completed = await store.get_videos_by_status("completed")
    assert {video.title for video in completed} == {"done", "other done"}
    chan_completed = await store.get_videos_by_status_and_profile("completed", chan.id)
    assert [video.title for video in chan_completed] == ["done"]
    assert await store.count_videos(status="pending") == 1


@pytest.mark.asyncio
async def test_update_video_applies_patch(store):
    profile = await store.create_profile(_profile())
    video = await store.create_video(_video(profile.id, "draft", datetime(2024, 5, 1, 9, 0)))

    updated = await store.update_video(video.id, VideoPatch(title="final", is_file_uploaded=True))
    assert updated.title == "final"
    assert updated.is_file_uploaded is True
    assert updated.schedule_date == datetime(2024, 5, 1, 9, 0)
    assert await store.update_video(404, VideoPatch(title="x")) is None


@pytest.mark.asyncio
async def test_delete_profile_cascades_to_videos(store):
    profile = await store.create_profile(_profile())
    keep = await store.create_profile(_profile("Keep"))
    await store.create_video(_video(profile.id, "a", datetime(2024, 5, 1, 9, 0)))
    await store.create_video(_video(profile.id, "b", datetime(2024, 5, 2, 9, 0)))
    kept = await store.create_video(_video(keep.id, "c", datetime(2024, 5, 3, 9, 0)))

    assert await store.delete_profile(profile.id) is True
    remaining = await store.get_videos()
    assert [video.id for video in remaining] == [kept.id]


@pytest.mark.asyncio
async def test_delete_video_reports_missing(store):
    profile = await store.create_profile(_profile())
    video = await store.create_video(_video(profile.id, "a", datetime(2024, 5, 1, 9, 0)))
    assert await store.delete_video(video.id) is True
    assert await store.delete_video(video.id) is False
    assert await store.get_video(video.id) is None
