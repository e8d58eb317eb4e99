"""
Wire schemas shared by the offline store and the remote API.

Field names are snake_case in Python and camelCase on the wire, matching the
JSON the remote service returns and the export file format.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, ClassVar, Dict, FrozenSet, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


VideoStatus = Literal["pending", "completed", "missed-schedule"]


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite drops tzinfo; stored instants are UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def as_local_wall_clock(value: Optional[datetime]) -> Optional[datetime]:
    """Schedule dates are naive local times; aware inputs are converted."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]
ScheduleDatetime = Annotated[datetime, AfterValidator(as_local_wall_clock)]


class PlannerModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PlannerPatch(PlannerModel):
    """Partial update; only explicitly supplied fields are applied."""

    # Columns that may be left out of a patch but never set to null
    required_fields: ClassVar[FrozenSet[str]] = frozenset()

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        nulled = sorted(
            name for name in self.model_fields_set
            if name in self.required_fields and getattr(self, name) is None
        )
        if nulled:
            raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return self

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


# ==================== Profiles ====================

class ProfileCreate(PlannerModel):
    name: str = Field(min_length=1)
    channel_name: str
    channel_link: str
    daily_push_count: int = Field(default=0, ge=0)
    last_push_reset: Optional[UtcDatetime] = None


class ProfileRecord(ProfileCreate):
    id: int


class ProfilePatch(PlannerPatch):
    required_fields: ClassVar[FrozenSet[str]] = frozenset(
        {"name", "channel_name", "channel_link", "daily_push_count"}
    )

    name: Optional[str] = Field(default=None, min_length=1)
    channel_name: Optional[str] = None
    channel_link: Optional[str] = None
    daily_push_count: Optional[int] = Field(default=None, ge=0)
    last_push_reset: Optional[UtcDatetime] = None


class PushCountStatus(PlannerModel):
    daily_push_count: int
    last_reset: Optional[UtcDatetime] = None
    daily_limit: int
    remaining: int


# ==================== Videos ====================

class VideoCreate(PlannerModel):
    profile_id: int
    title: str = Field(min_length=1)
    description: str = ""
    file_path: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = Field(default=None, ge=0)
    original_file_path: Optional[str] = None
    original_file_size: Optional[int] = Field(default=None, ge=0)
    thumbnail_path: Optional[str] = None
    duration: Optional[str] = None
    schedule_date: ScheduleDatetime
    status: VideoStatus = "pending"
    uploaded_date: Optional[UtcDatetime] = None
    youtube_link: Optional[str] = None
    is_file_uploaded: bool = False
    is_placeholder: bool = False


class VideoRecord(VideoCreate):
    id: int


class VideoPatch(PlannerPatch):
    required_fields: ClassVar[FrozenSet[str]] = frozenset(
        {"profile_id", "title", "description", "schedule_date", "status", "is_file_uploaded", "is_placeholder"}
    )

    profile_id: Optional[int] = None
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    file_path: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = Field(default=None, ge=0)
    original_file_path: Optional[str] = None
    original_file_size: Optional[int] = Field(default=None, ge=0)
    thumbnail_path: Optional[str] = None
    duration: Optional[str] = None
    schedule_date: Optional[ScheduleDatetime] = None
    status: Optional[VideoStatus] = None
    uploaded_date: Optional[UtcDatetime] = None
    youtube_link: Optional[str] = None
    is_file_uploaded: Optional[bool] = None
    is_placeholder: Optional[bool] = None


class DeviceVideoImport(PlannerModel):
    """A file picked on the device, registered without a server upload."""
    profile_id: int
    title: str = Field(min_length=1)
    description: str = ""
    schedule_date: ScheduleDatetime
    file_path: str
    file_name: Optional[str] = None
    file_size: Optional[int] = Field(default=None, ge=0)


# ==================== Bulk operations ====================

class ExportDocument(PlannerModel):
    profiles: List[ProfileRecord]
    videos: List[VideoRecord]


class ImportResult(PlannerModel):
    profiles_imported: int = 0
    videos_imported: int = 0


class DeleteResult(PlannerModel):
    deleted_count: int


class RescheduleResult(PlannerModel):
    rescheduled_count: int
    videos: List[VideoRecord] = []


class MissedScheduleResult(PlannerModel):
    missed_count: int


class CleanupResult(PlannerModel):
    removed_files: List[str] = []
    message: str
