"""
Video endpoints: scheduling, status transitions and attached files.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from container import AppContainer
from routers.deps import dispatch, get_container, not_found, planner_errors
from schemas import (
    DeleteResult,
    DeviceVideoImport,
    MissedScheduleResult,
    PlannerModel,
    ScheduleDatetime,
    VideoCreate,
    VideoPatch,
    VideoRecord,
    VideoStatus,
)

router = APIRouter()


class MarkUploadedRequest(PlannerModel):
    youtube_link: Optional[str] = None


class RescheduleRequest(PlannerModel):
    schedule_date: ScheduleDatetime


class AttachFileRequest(PlannerModel):
    file_path: str


@router.get("", response_model=List[VideoRecord])
async def list_videos(
    profile_id: Optional[int] = Query(default=None, alias="profileId"),
    status: Optional[VideoStatus] = Query(default=None),
    container: AppContainer = Depends(get_container),
):
    if profile_id is not None and status is not None:
        return await dispatch(container, "get_videos_by_status_and_profile", status, profile_id)
    if profile_id is not None:
        return await dispatch(container, "get_videos_by_profile", profile_id)
    if status is not None:
        return await dispatch(container, "get_videos_by_status", status)
    return await dispatch(container, "get_videos")


@router.get("/today", response_model=List[VideoRecord])
async def list_today_videos(container: AppContainer = Depends(get_container)):
    return await dispatch(container, "get_today_videos")


@router.get("/date/{day}", response_model=List[VideoRecord])
async def list_videos_by_date(day: date, container: AppContainer = Depends(get_container)):
    """Videos scheduled on ``day`` (YYYY-MM-DD), soonest first."""
    return await dispatch(container, "get_videos_by_date", day)


@router.post("/mark-missed", response_model=MissedScheduleResult)
async def mark_missed_schedules(
    profile_id: Optional[int] = Query(default=None, alias="profileId"),
    container: AppContainer = Depends(get_container),
):
    return await dispatch(container, "mark_missed_schedules", profile_id=profile_id)


@router.delete("/status/{status}", response_model=DeleteResult)
async def delete_videos_by_status(status: VideoStatus, container: AppContainer = Depends(get_container)):
    return await dispatch(container, "delete_videos_by_status", status)


@router.post("/import-device", response_model=VideoRecord, status_code=201)
async def import_device_video(
    request: DeviceVideoImport,
    container: AppContainer = Depends(get_container),
):
    """Register a file from this device; always handled locally."""
    with planner_errors():
        return await container.offline.import_video_from_device(request)


@router.post("", response_model=VideoRecord, status_code=201)
async def create_video(request: VideoCreate, container: AppContainer = Depends(get_container)):
    return await dispatch(container, "create_video", request)


@router.get("/{video_id}", response_model=VideoRecord)
async def get_video(video_id: int, container: AppContainer = Depends(get_container)):
    video = await dispatch(container, "get_video", video_id)
    if video is None:
        not_found("Video", video_id)
    return video


@router.put("/{video_id}", response_model=VideoRecord)
async def update_video(
    video_id: int,
    request: VideoPatch,
    container: AppContainer = Depends(get_container),
):
    video = await dispatch(container, "update_video", video_id, request)
    if video is None:
        not_found("Video", video_id)
    return video


@router.delete("/{video_id}")
async def delete_video(video_id: int, container: AppContainer = Depends(get_container)):
    if not await dispatch(container, "delete_video", video_id):
        not_found("Video", video_id)
    return {"success": True}


@router.post("/{video_id}/mark-uploaded", response_model=VideoRecord)
async def mark_video_uploaded(
    video_id: int,
    request: Optional[MarkUploadedRequest] = None,
    container: AppContainer = Depends(get_container),
):
    youtube_link = request.youtube_link if request else None
    video = await dispatch(container, "mark_video_as_uploaded", video_id, youtube_link)
    if video is None:
        not_found("Video", video_id)
    return video


@router.post("/{video_id}/revert-upload", response_model=VideoRecord)
async def revert_video_upload(video_id: int, container: AppContainer = Depends(get_container)):
    video = await dispatch(container, "revert_video_upload", video_id)
    if video is None:
        not_found("Video", video_id)
    return video


@router.post("/{video_id}/reschedule", response_model=VideoRecord)
async def reschedule_video(
    video_id: int,
    request: RescheduleRequest,
    container: AppContainer = Depends(get_container),
):
    video = await dispatch(container, "reschedule_video", video_id, request.schedule_date)
    if video is None:
        not_found("Video", video_id)
    return video


@router.post("/{video_id}/file")
async def attach_video_file(
    video_id: int,
    request: AttachFileRequest,
    container: AppContainer = Depends(get_container),
):
    if not await dispatch(container, "upload_video_file", video_id, request.file_path):
        not_found("Video", video_id)
    return {"success": True}


@router.post("/{video_id}/open")
async def open_video_file(video_id: int, container: AppContainer = Depends(get_container)):
    """Open the video's local file with the device's default player."""
    with planner_errors():
        uri = await container.offline.open_video_file(video_id)
    if uri is None:
        not_found("Video", video_id)
    return {"uri": uri}
