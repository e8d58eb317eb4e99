"""Planner service contract shared by the remote and offline variants."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional, Union

from schemas import (
    CleanupResult,
    DeleteResult,
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
)


ServiceKind = Literal["remote", "offline"]


class BasePlannerService(ABC):
    """Operation surface of the planner API; the mode controller picks a variant per call."""

    kind: ServiceKind

    async def initialize(self) -> None:
        return None

    # Profiles
    @abstractmethod
    async def get_profiles(self) -> List[ProfileRecord]:
        raise NotImplementedError

    @abstractmethod
    async def get_profile(self, profile_id: int) -> Optional[ProfileRecord]:
        raise NotImplementedError

    @abstractmethod
    async def create_profile(self, data: ProfileCreate) -> ProfileRecord:
        raise NotImplementedError

    @abstractmethod
    async def update_profile(self, profile_id: int, patch: ProfilePatch) -> Optional[ProfileRecord]:
        raise NotImplementedError

    @abstractmethod
    async def delete_profile(self, profile_id: int) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def increment_profile_push_count(self, profile_id: int) -> Optional[ProfileRecord]:
        raise NotImplementedError

    @abstractmethod
    async def reset_profile_push_count(self, profile_id: int) -> Optional[ProfileRecord]:
        raise NotImplementedError

    @abstractmethod
    async def get_profile_push_count(self, profile_id: int) -> Optional[PushCountStatus]:
        raise NotImplementedError

    # Videos
    @abstractmethod
    async def get_videos(self) -> List[VideoRecord]:
        raise NotImplementedError

    @abstractmethod
    async def get_videos_by_profile(self, profile_id: int) -> List[VideoRecord]:
        raise NotImplementedError

    @abstractmethod
    async def get_videos_by_status(self, status: str) -> List[VideoRecord]:
        raise NotImplementedError

    @abstractmethod
    async def get_videos_by_status_and_profile(self, status: str, profile_id: int) -> List[VideoRecord]:
        raise NotImplementedError

    @abstractmethod
    async def get_videos_by_date(self, day: Union[date, datetime]) -> List[VideoRecord]:
        raise NotImplementedError

    @abstractmethod
    async def get_today_videos(self) -> List[VideoRecord]:
        raise NotImplementedError

    @abstractmethod
    async def get_video(self, video_id: int) -> Optional[VideoRecord]:
        raise NotImplementedError

    @abstractmethod
    async def create_video(self, data: VideoCreate) -> VideoRecord:
        raise NotImplementedError

    @abstractmethod
    async def update_video(self, video_id: int, patch: VideoPatch) -> Optional[VideoRecord]:
        raise NotImplementedError

    @abstractmethod
    async def delete_video(self, video_id: int) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def delete_videos_by_status(self, status: str) -> DeleteResult:
        raise NotImplementedError

    @abstractmethod
    async def mark_video_as_uploaded(
        self,
        video_id: int,
        youtube_link: Optional[str] = None,
    ) -> Optional[VideoRecord]:
        raise NotImplementedError

    @abstractmethod
    async def revert_video_upload(self, video_id: int) -> Optional[VideoRecord]:
        raise NotImplementedError

    @abstractmethod
    async def mark_missed_schedules(self, profile_id: Optional[int] = None) -> MissedScheduleResult:
        raise NotImplementedError

    @abstractmethod
    async def reschedule_video(self, video_id: int, schedule_date: datetime) -> Optional[VideoRecord]:
        raise NotImplementedError

    @abstractmethod
    async def reschedule_missed_videos(self, profile_id: int) -> RescheduleResult:
        raise NotImplementedError

    @abstractmethod
    async def upload_video_file(self, video_id: int, file_path: str) -> bool:
        raise NotImplementedError

    # Data
    @abstractmethod
    async def export_data(self) -> ExportDocument:
        raise NotImplementedError

    @abstractmethod
    async def import_data(self, payload: Dict[str, Any]) -> ImportResult:
        raise NotImplementedError

    @abstractmethod
    async def cleanup_orphan_files(self) -> CleanupResult:
        raise NotImplementedError
