"""Embedded SQLite store for profiles and videos (offline source of truth)."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from sqlalchemy import delete, func, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.future import select

from database import Base, create_engine_for_url, create_session_maker
from models.profile import Profile
from models.video import VIDEO_STATUS_PENDING, Video
from schemas import (
    ProfileCreate,
    ProfilePatch,
    ProfileRecord,
    VideoCreate,
    VideoPatch,
    VideoRecord,
    as_utc,
)
from services.errors import ConstraintViolation, NotInitialized, StoreInitError
from services.runtime import is_native_platform

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LocalStore:
    """Durable CRUD and query surface over the profiles and videos tables.

    One instance owns the process-wide engine. ``initialize()`` is single-flight:
    concurrent callers await the same in-flight task, so table creation runs once.
    """

    def __init__(
        self,
        *,
        database_url: Optional[str] = None,
        platform: str = "web",
        data_dir: Union[str, Path] = ".",
        database_name: str = "youtube_planner.db",
        echo: bool = False,
        push_window_hours: int = 24,
        clock: Optional[Clock] = None,
    ) -> None:
        self.database_url = database_url or ""
        self.platform = platform
        self.data_dir = Path(data_dir)
        self.database_name = database_name
        self.echo = echo
        self.push_window = timedelta(hours=max(int(push_window_hours), 1))
        self._clock = clock or _utc_now
        self._engine: Optional[AsyncEngine] = None
        self._session_maker: Optional[async_sessionmaker[AsyncSession]] = None
        self._init_task: Optional[asyncio.Future] = None

    # ==================== Lifecycle ====================

    @property
    def is_initialized(self) -> bool:
        return self._session_maker is not None

    def resolve_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        if is_native_platform(self.platform):
            self.data_dir.mkdir(parents=True, exist_ok=True)
            return f"sqlite+aiosqlite:///{(self.data_dir / self.database_name).resolve()}"
        # Browser-hosted runtimes get a non-durable store
        return "sqlite+aiosqlite:///:memory:"

    async def initialize(self) -> None:
        if self._session_maker is not None:
            return
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._open())
        task = self._init_task
        try:
            await asyncio.shield(task)
        finally:
            failed = task.done() and (task.cancelled() or task.exception() is not None)
            if failed and self._init_task is task:
                self._init_task = None

    async def _open(self) -> None:
        engine: Optional[AsyncEngine] = None
        try:
            database_url = self.resolve_database_url()
            engine = create_engine_for_url(database_url, echo=self.echo)
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except Exception as exc:
            logger.exception("Error initializing SQLite database: %s", exc)
            if engine is not None:
                await engine.dispose()
            raise StoreInitError(f"Could not open local database: {exc}") from exc

        self._engine = engine
        self._session_maker = create_session_maker(engine)
        logger.info("SQLite database initialized (%s platform)", self.platform)

    async def close(self) -> None:
        engine = self._engine
        self._engine = None
        self._session_maker = None
        self._init_task = None
        if engine is not None:
            await engine.dispose()
            logger.info("SQLite connection closed")

    def _session(self) -> AsyncSession:
        if self._session_maker is None:
            raise NotInitialized("Local store used before initialize() completed.")
        return self._session_maker()

    @staticmethod
    async def _commit(db: AsyncSession) -> None:
        try:
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            raise ConstraintViolation(str(exc.orig)) from exc

    @staticmethod
    def _apply_patch(row: Any, changes: Dict[str, Any]) -> None:
        for field, value in changes.items():
            setattr(row, field, value)

    def now(self) -> datetime:
        return as_utc(self._clock())

    # ==================== Profiles ====================

    async def get_profiles(self) -> List[ProfileRecord]:
        async with self._session() as db:
            result = await db.execute(select(Profile).order_by(Profile.name.asc(), Profile.id.asc()))
            return [ProfileRecord.model_validate(row) for row in result.scalars().all()]

    async def get_profile(self, profile_id: int) -> Optional[ProfileRecord]:
        async with self._session() as db:
            row = await db.get(Profile, profile_id)
            return ProfileRecord.model_validate(row) if row else None

    async def create_profile(self, data: ProfileCreate) -> ProfileRecord:
        async with self._session() as db:
            row = Profile(**data.model_dump())
            db.add(row)
            await self._commit(db)
            return ProfileRecord.model_validate(row)

    async def update_profile(self, profile_id: int, patch: ProfilePatch) -> Optional[ProfileRecord]:
        changes = patch.changes()
        async with self._session() as db:
            row = await db.get(Profile, profile_id)
            if row is None:
                return None
            if changes:
                self._apply_patch(row, changes)
                await self._commit(db)
            return ProfileRecord.model_validate(row)

    async def delete_profile(self, profile_id: int) -> bool:
        async with self._session() as db:
            # ON DELETE CASCADE removes the profile's videos
            result = await db.execute(delete(Profile).where(Profile.id == profile_id))
            await self._commit(db)
            return bool(result.rowcount)

    def push_window_elapsed(self, last_reset: Optional[datetime], now: datetime) -> bool:
        if last_reset is None:
            return True
        return now - as_utc(last_reset) >= self.push_window

    async def increment_profile_push_count(self, profile_id: int) -> Optional[ProfileRecord]:
        """Count one push; the first push after the window starts a new window at 1."""
        async with self._session() as db:
            row = await db.get(Profile, profile_id)
            if row is None:
                return None
            now = self.now()
            if self.push_window_elapsed(row.last_push_reset, now):
                row.daily_push_count = 1
                row.last_push_reset = now
            else:
                row.daily_push_count = max(int(row.daily_push_count or 0), 0) + 1
            await self._commit(db)
            return ProfileRecord.model_validate(row)

    async def reset_profile_push_count(self, profile_id: int) -> Optional[ProfileRecord]:
        return await self.update_profile(
            profile_id,
            ProfilePatch(daily_push_count=0, last_push_reset=self.now()),
        )

    # ==================== Videos ====================

    async def _list_videos(self, *filters, ascending: bool = False) -> List[VideoRecord]:
        if ascending:
            ordering = (Video.schedule_date.asc(), Video.id.asc())
        else:
            ordering = (Video.schedule_date.desc(), Video.id.desc())
        async with self._session() as db:
            result = await db.execute(select(Video).where(*filters).order_by(*ordering))
            return [VideoRecord.model_validate(row) for row in result.scalars().all()]

    async def get_videos(self) -> List[VideoRecord]:
        return await self._list_videos()

    async def get_videos_by_profile(self, profile_id: int) -> List[VideoRecord]:
        return await self._list_videos(Video.profile_id == profile_id)

    async def get_videos_by_status(self, status: str) -> List[VideoRecord]:
        return await self._list_videos(Video.status == status)

    async def get_videos_by_status_and_profile(self, status: str, profile_id: int) -> List[VideoRecord]:
        return await self._list_videos(Video.status == status, Video.profile_id == profile_id)

    async def get_videos_by_date(self, day: Union[date, datetime]) -> List[VideoRecord]:
        """Videos scheduled on the calendar day, soonest first."""
        if isinstance(day, datetime):
            day = day.date()
        start = datetime.combine(day, time.min)
        end = start + timedelta(days=1)
        return await self._list_videos(
            Video.schedule_date >= start,
            Video.schedule_date < end,
            ascending=True,
        )

    async def get_pending_videos_before(
        self,
        cutoff: datetime,
        profile_id: Optional[int] = None,
    ) -> List[VideoRecord]:
        filters = [Video.status == VIDEO_STATUS_PENDING, Video.schedule_date < cutoff]
        if profile_id is not None:
            filters.append(Video.profile_id == profile_id)
        return await self._list_videos(*filters, ascending=True)

    async def get_video(self, video_id: int) -> Optional[VideoRecord]:
        async with self._session() as db:
            row = await db.get(Video, video_id)
            return VideoRecord.model_validate(row) if row else None

    async def create_video(self, data: VideoCreate) -> VideoRecord:
        async with self._session() as db:
            row = Video(**data.model_dump())
            db.add(row)
            await self._commit(db)
            return VideoRecord.model_validate(row)

    async def update_video(self, video_id: int, patch: VideoPatch) -> Optional[VideoRecord]:
        changes = patch.changes()
        async with self._session() as db:
            row = await db.get(Video, video_id)
            if row is None:
                return None
            if changes:
                self._apply_patch(row, changes)
                await self._commit(db)
            return VideoRecord.model_validate(row)

    async def delete_video(self, video_id: int) -> bool:
        async with self._session() as db:
            result = await db.execute(delete(Video).where(Video.id == video_id))
            await self._commit(db)
            return bool(result.rowcount)

    async def delete_videos_by_status(self, status: str) -> int:
        async with self._session() as db:
            result = await db.execute(delete(Video).where(Video.status == status))
            await self._commit(db)
            return int(result.rowcount or 0)

    async def count_videos(self, status: Optional[str] = None, profile_id: Optional[int] = None) -> int:
        stmt = select(func.count(Video.id))
        if status is not None:
            stmt = stmt.where(Video.status == status)
        if profile_id is not None:
            stmt = stmt.where(Video.profile_id == profile_id)
        async with self._session() as db:
            return int((await db.execute(stmt)).scalar_one())

    async def ping(self) -> None:
        async with self._session() as db:
            await db.execute(text("SELECT 1"))
