"""
Offline planner service.

Serves the same operation set as the remote API from the embedded store and
the local file areas, adding the derived behaviors the server would apply:
thumbnail placeholders, cascading file cleanup and status bookkeeping.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import uuid
from datetime import date, datetime, timedelta
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, List, Optional, Sequence, TypeVar, Union

from pydantic import BaseModel, ValidationError

from models.video import VIDEO_STATUS_COMPLETED, VIDEO_STATUS_MISSED, VIDEO_STATUS_PENDING
from schemas import (
    CleanupResult,
    DeleteResult,
    DeviceVideoImport,
    ExportDocument,
    ImportResult,
    MissedScheduleResult,
    ProfileCreate,
    ProfilePatch,
    ProfileRecord,
    PushCountStatus,
    RescheduleResult,
    VideoCreate,
    VideoPatch,
    VideoRecord,
    as_local_wall_clock,
)
from services.contracts import BasePlannerService
from services.errors import FileAreaError, InvalidImportFormat, UnsupportedMedia
from services.file_area import TEMP_AREA, THUMBNAILS_AREA, VIDEOS_AREA, FileAreaManager
from services.local_store import LocalStore
from services.thumbnails import ThumbnailGenerator

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

VIDEO_MIME_BY_EXT = {
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".m4v": "video/x-m4v",
    ".webm": "video/webm",
    ".avi": "video/x-msvideo",
    ".mkv": "video/x-matroska",
}


def _guess_mime(path: str) -> str:
    return VIDEO_MIME_BY_EXT.get(PurePosixPath(path).suffix.lower(), "video/mp4")


def _safe_filename(name: str) -> str:
    base = os.path.basename(name or "video.mp4")
    cleaned = "".join(ch if ch.isalnum() or ch in {"-", "_", "."} else "_" for ch in base)
    return cleaned or "video.mp4"


def _managed_video_path(name: str) -> str:
    return f"{VIDEOS_AREA}/{uuid.uuid4().hex[:8]}_{_safe_filename(name)}"


def _with_upload_fields_cleared(data: ModelT, status: str) -> ModelT:
    """Upload date and link only belong to completed videos."""
    if status == VIDEO_STATUS_COMPLETED:
        return data
    return data.model_copy(update={"uploaded_date": None, "youtube_link": None})


class OfflineApiService(BasePlannerService):
    kind = "offline"

    def __init__(
        self,
        store: LocalStore,
        files: FileAreaManager,
        thumbnails: Optional[ThumbnailGenerator] = None,
        *,
        daily_push_limit: int = 10,
        max_video_file_size: int = 2 * 1024 * 1024 * 1024,
        use_placeholder_files: bool = True,
        max_placeholder_size: int = 5 * 1024 * 1024,
        supported_formats: Sequence[str] = ("mp4", "mov", "avi", "webm", "mkv"),
    ) -> None:
        self.store = store
        self.files = files
        self.thumbnails = thumbnails or ThumbnailGenerator(files, use_ffmpeg=False)
        self.daily_push_limit = daily_push_limit
        self.max_video_file_size = max_video_file_size
        self.use_placeholder_files = use_placeholder_files
        self.max_placeholder_size = max_placeholder_size
        self.supported_formats = tuple(fmt.lower().lstrip(".") for fmt in supported_formats)

    async def initialize(self) -> None:
        await self.store.initialize()
        await self.files.initialize()
        logger.info("Offline API service initialized")

    async def _ready(self) -> None:
        if not self.store.is_initialized:
            await self.initialize()

    def _local_now(self) -> datetime:
        return self.store.now().astimezone().replace(tzinfo=None)

    async def _referenced_elsewhere(self, path: str, video_id: int) -> bool:
        for video in await self.store.get_videos():
            if video.id != video_id and path in (video.file_path, video.thumbnail_path):
                return True
        return False

    async def _delete_files(self, paths: Iterable[Optional[str]]) -> None:
        """Best-effort removal of managed files; failures are logged only."""
        for path in paths:
            if not path or not self.files.is_managed(path):
                continue
            try:
                await self.files.delete(path)
            except FileAreaError as exc:
                logger.error("Error deleting file %s: %s", exc.path, exc)

    async def _delete_video_files(self, video: VideoRecord) -> None:
        owned = []
        for path in (video.file_path, video.thumbnail_path):
            if path and not await self._referenced_elsewhere(path, video.id):
                owned.append(path)
        await self._delete_files(owned)

    # ==================== Profiles ====================

    async def get_profiles(self) -> List[ProfileRecord]:
        await self._ready()
        return await self.store.get_profiles()

    async def get_profile(self, profile_id: int) -> Optional[ProfileRecord]:
        await self._ready()
        return await self.store.get_profile(profile_id)

    async def create_profile(self, data: ProfileCreate) -> ProfileRecord:
        await self._ready()
        return await self.store.create_profile(data)

    async def update_profile(self, profile_id: int, patch: ProfilePatch) -> Optional[ProfileRecord]:
        await self._ready()
        return await self.store.update_profile(profile_id, patch)

    async def delete_profile(self, profile_id: int) -> bool:
        await self._ready()
        for video in await self.store.get_videos_by_profile(profile_id):
            await self._delete_video_files(video)
        return await self.store.delete_profile(profile_id)

    async def increment_profile_push_count(self, profile_id: int) -> Optional[ProfileRecord]:
        await self._ready()
        return await self.store.increment_profile_push_count(profile_id)

    async def reset_profile_push_count(self, profile_id: int) -> Optional[ProfileRecord]:
        await self._ready()
        return await self.store.reset_profile_push_count(profile_id)

    async def get_profile_push_count(self, profile_id: int) -> Optional[PushCountStatus]:
        await self._ready()
        profile = await self.store.get_profile(profile_id)
        if profile is None:
            return None
        count = profile.daily_push_count
        if profile.last_push_reset is not None and self.store.push_window_elapsed(
            profile.last_push_reset, self.store.now()
        ):
            # Window is over; the next push starts a fresh one
            count = 0
        return PushCountStatus(
            daily_push_count=count,
            last_reset=profile.last_push_reset,
            daily_limit=self.daily_push_limit,
            remaining=max(self.daily_push_limit - count, 0),
        )

    # ==================== Videos ====================

    async def get_videos(self) -> List[VideoRecord]:
        await self._ready()
        return await self.store.get_videos()

    async def get_videos_by_profile(self, profile_id: int) -> List[VideoRecord]:
        await self._ready()
        return await self.store.get_videos_by_profile(profile_id)

    async def get_videos_by_status(self, status: str) -> List[VideoRecord]:
        await self._ready()
        return await self.store.get_videos_by_status(status)

    async def get_videos_by_status_and_profile(self, status: str, profile_id: int) -> List[VideoRecord]:
        await self._ready()
        return await self.store.get_videos_by_status_and_profile(status, profile_id)

    async def get_videos_by_date(self, day: Union[date, datetime]) -> List[VideoRecord]:
        await self._ready()
        return await self.store.get_videos_by_date(day)

    async def get_today_videos(self) -> List[VideoRecord]:
        await self._ready()
        return await self.store.get_videos_by_date(self._local_now().date())

    async def get_video(self, video_id: int) -> Optional[VideoRecord]:
        await self._ready()
        return await self.store.get_video(video_id)

    async def create_video(self, data: VideoCreate) -> VideoRecord:
        await self._ready()
        data = _with_upload_fields_cleared(data, data.status)
        if data.file_path and not data.thumbnail_path:
            thumbnail_path = await self._generate_thumbnail(data.file_path)
            if thumbnail_path:
                data = data.model_copy(update={"thumbnail_path": thumbnail_path})
        return await self.store.create_video(data)

    async def update_video(self, video_id: int, patch: VideoPatch) -> Optional[VideoRecord]:
        await self._ready()
        existing = await self.store.get_video(video_id)
        if existing is None:
            return None
        patch = _with_upload_fields_cleared(patch, patch.changes().get("status", existing.status))
        return await self.store.update_video(video_id, patch)

    async def delete_video(self, video_id: int) -> bool:
        await self._ready()
        video = await self.store.get_video(video_id)
        if video is not None:
            await self._delete_video_files(video)
        return await self.store.delete_video(video_id)

    async def delete_videos_by_status(self, status: str) -> DeleteResult:
        await self._ready()
        for video in await self.store.get_videos_by_status(status):
            await self._delete_video_files(video)
        deleted = await self.store.delete_videos_by_status(status)
        logger.info("Deleted %s videos with status %s", deleted, status)
        return DeleteResult(deleted_count=deleted)

    async def mark_video_as_uploaded(
        self,
        video_id: int,
        youtube_link: Optional[str] = None,
    ) -> Optional[VideoRecord]:
        await self._ready()
        video = await self.store.get_video(video_id)
        if video is None:
            return None
        patch = VideoPatch(status=VIDEO_STATUS_COMPLETED, uploaded_date=self.store.now())
        if youtube_link:
            patch = patch.model_copy(update={"youtube_link": youtube_link})
        return await self.store.update_video(video_id, patch)

    async def revert_video_upload(self, video_id: int) -> Optional[VideoRecord]:
        await self._ready()
        video = await self.store.get_video(video_id)
        if video is None:
            return None
        return await self.store.update_video(
            video_id,
            VideoPatch(status=VIDEO_STATUS_PENDING, uploaded_date=None, youtube_link=None),
        )

    async def mark_missed_schedules(
        self,
        profile_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> MissedScheduleResult:
        """Move past-due pending videos to missed-schedule."""
        await self._ready()
        cutoff = as_local_wall_clock(now) if now is not None else self._local_now()
        overdue = await self.store.get_pending_videos_before(cutoff, profile_id=profile_id)
        for video in overdue:
            await self.store.update_video(video.id, VideoPatch(status=VIDEO_STATUS_MISSED))
        if overdue:
            logger.info("Marked %s videos as missed-schedule", len(overdue))
        return MissedScheduleResult(missed_count=len(overdue))

    async def reschedule_video(self, video_id: int, schedule_date: datetime) -> Optional[VideoRecord]:
        return await self.update_video(
            video_id,
            VideoPatch(schedule_date=schedule_date, status=VIDEO_STATUS_PENDING),
        )

    async def reschedule_missed_videos(
        self,
        profile_id: int,
        start: Optional[date] = None,
    ) -> RescheduleResult:
        """
        Spread a profile's missed videos over the upcoming days.

        Videos keep their time of day and their relative order; each day takes at
        most ``daily_push_limit`` of them, starting tomorrow unless ``start`` is given.
        """
        await self._ready()
        missed = await self.store.get_videos_by_status_and_profile(VIDEO_STATUS_MISSED, profile_id)
        missed.sort(key=lambda video: (video.schedule_date, video.id))
        first_day = start or (self._local_now().date() + timedelta(days=1))
        limit = max(int(self.daily_push_limit), 1)

        rescheduled: List[VideoRecord] = []
        for index, video in enumerate(missed):
            day = first_day + timedelta(days=index // limit)
            updated = await self.update_video(
                video.id,
                VideoPatch(
                    schedule_date=datetime.combine(day, video.schedule_date.time()),
                    status=VIDEO_STATUS_PENDING,
                ),
            )
            if updated is not None:
                rescheduled.append(updated)

        logger.info("Rescheduled %s missed videos for profile %s", len(rescheduled), profile_id)
        return RescheduleResult(rescheduled_count=len(rescheduled), videos=rescheduled)

    # ==================== Files ====================

    async def _generate_thumbnail(self, video_path: str, *, extract: bool = True) -> Optional[str]:
        try:
            return await self.thumbnails.generate(video_path, extract=extract)
        except Exception as exc:
            logger.error("Error generating thumbnail for %s: %s", video_path, exc)
            return None

    async def upload_video_file(self, video_id: int, file_path: str) -> bool:
        """Attach a file to a video, copying it into the videos area when needed."""
        await self._ready()
        video = await self.store.get_video(video_id)
        if video is None:
            return False

        if not self.files.is_managed(file_path, VIDEOS_AREA) or await self._referenced_elsewhere(
            file_path, video_id
        ):
            managed_path = _managed_video_path(Path(file_path).name)
            if self.files.is_managed(file_path):
                await self.files.copy(file_path, managed_path)
            else:
                await self.files.import_external(file_path, managed_path)
            file_path = managed_path

        thumbnail_path = video.thumbnail_path
        if not thumbnail_path:
            thumbnail_path = await self._generate_thumbnail(file_path)

        await self.store.update_video(
            video_id,
            VideoPatch(
                file_path=file_path,
                file_size=await self.files.size(file_path),
                is_file_uploaded=True,
                thumbnail_path=thumbnail_path,
            ),
        )
        return True

    async def _source_size(self, source: Path) -> int:
        try:
            return await asyncio.to_thread(os.path.getsize, source)
        except OSError as exc:
            raise FileAreaError(str(source), f"Cannot read picked file {source}: {exc}") from exc

    async def import_video_from_device(self, info: DeviceVideoImport) -> VideoRecord:
        """
        Register a file picked on the device as a new scheduled video.

        Small files are copied into the videos area. Larger ones are represented by
        a placeholder that records where the original lives, unless placeholders
        are disabled.
        """
        await self._ready()
        source = Path(info.file_path)
        file_name = info.file_name or source.name
        extension = PurePosixPath(file_name).suffix.lower().lstrip(".")
        if extension not in self.supported_formats:
            raise UnsupportedMedia(
                f"Unsupported video format '{extension or file_name}'. "
                f"Supported: {', '.join(self.supported_formats)}"
            )

        size = info.file_size if info.file_size is not None else await self._source_size(source)
        if size > self.max_video_file_size:
            raise UnsupportedMedia(
                f"Video is too large ({size} bytes, limit {self.max_video_file_size} bytes)."
            )

        managed_path = _managed_video_path(file_name)
        is_placeholder = self.use_placeholder_files and size > self.max_placeholder_size
        if is_placeholder:
            marker = {"originalFilePath": str(source), "originalFileSize": size, "fileName": file_name}
            await self.files.write(managed_path, json.dumps(marker).encode("utf-8"))
        else:
            await self.files.import_external(source, managed_path)

        thumbnail_path = await self._generate_thumbnail(managed_path, extract=not is_placeholder)
        video = await self.store.create_video(
            VideoCreate(
                profile_id=info.profile_id,
                title=info.title,
                description=info.description,
                schedule_date=info.schedule_date,
                file_path=managed_path,
                file_name=file_name,
                file_size=await self.files.size(managed_path),
                original_file_path=str(source),
                original_file_size=size,
                thumbnail_path=thumbnail_path,
                is_file_uploaded=True,
                is_placeholder=is_placeholder,
            )
        )
        logger.info(
            "Imported device video %s as %s (placeholder=%s)",
            file_name,
            managed_path,
            is_placeholder,
        )
        return video

    async def open_video_file(self, video_id: int) -> Optional[str]:
        """Open a video's file with the default handler and return its URI."""
        await self._ready()
        video = await self.store.get_video(video_id)
        if video is None:
            return None
        if not video.file_path:
            raise FileAreaError(f"video:{video_id}", f"Video {video_id} has no attached file")
        await self.files.open_externally(video.file_path, _guess_mime(video.file_path))
        return self.files.resolve_uri(video.file_path)

    async def cleanup_orphan_files(self) -> CleanupResult:
        """Remove managed files no video references and empty the temp area."""
        await self._ready()
        referenced = set()
        for video in await self.store.get_videos():
            referenced.update(path for path in (video.file_path, video.thumbnail_path) if path)

        removed: List[str] = []
        for area in (VIDEOS_AREA, THUMBNAILS_AREA, TEMP_AREA):
            for entry in await self.files.list(area):
                if entry.is_dir:
                    continue
                if area != TEMP_AREA and entry.path in referenced:
                    continue
                await self.files.delete(entry.path)
                removed.append(entry.path)

        logger.info("Cleanup removed %s unused files", len(removed))
        return CleanupResult(
            removed_files=removed,
            message=f"Removed {len(removed)} unused files",
        )

    # ==================== Data ====================

    async def export_data(self) -> ExportDocument:
        await self._ready()
        return ExportDocument(
            profiles=await self.store.get_profiles(),
            videos=await self.store.get_videos(),
        )

    async def import_data(self, payload: Dict[str, Any]) -> ImportResult:
        """
        Insert every profile, then every video, under new ids.

        Videos pointing at a profile from the same document follow that profile's
        new id. The first failing record stops the import; records inserted before
        it are kept.
        """
        if (
            not isinstance(payload, dict)
            or not isinstance(payload.get("profiles"), list)
            or not isinstance(payload.get("videos"), list)
        ):
            raise InvalidImportFormat("Import data must contain 'profiles' and 'videos' arrays.")

        await self._ready()
        result = ImportResult()
        profile_ids: Dict[int, int] = {}

        try:
            for index, raw in enumerate(payload["profiles"]):
                try:
                    data = ProfileCreate.model_validate(raw)
                except ValidationError as exc:
                    raise InvalidImportFormat(f"Invalid profile at index {index}: {exc}") from exc
                created = await self.store.create_profile(data)
                if isinstance(raw, dict) and isinstance(raw.get("id"), int):
                    profile_ids[raw["id"]] = created.id
                result.profiles_imported += 1

            for index, raw in enumerate(payload["videos"]):
                try:
                    data = VideoCreate.model_validate(raw)
                except ValidationError as exc:
                    raise InvalidImportFormat(f"Invalid video at index {index}: {exc}") from exc
                if data.profile_id in profile_ids:
                    data = data.model_copy(update={"profile_id": profile_ids[data.profile_id]})
                await self.store.create_video(_with_upload_fields_cleared(data, data.status))
                result.videos_imported += 1
        except Exception:
            logger.exception(
                "Import stopped after %s profiles and %s videos",
                result.profiles_imported,
                result.videos_imported,
            )
            raise

        logger.info(
            "Imported %s profiles and %s videos",
            result.profiles_imported,
            result.videos_imported,
        )
        return result
