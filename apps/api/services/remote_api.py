"""Remote planner API client (online mode)."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

import httpx

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
from services.contracts import BasePlannerService
from services.errors import NetworkError, RemoteApiError

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = body.get("message") or body.get("detail")
            if detail:
                return str(detail)
    return response.reason_phrase or "Server error"


class RemoteApiService(BasePlannerService):
    kind = "remote"

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        return_null_on_401: bool = False,
    ) -> Any:
        """
        Call the remote API and return the decoded JSON body.

        Transport failures raise ``NetworkError``; non-2xx answers raise
        ``RemoteApiError`` unless it is a 401 and ``return_null_on_401`` is set.
        """
        if not self.base_url:
            raise NetworkError("Remote API URL is not configured.")
        try:
            response = await self._get_client().request(method, endpoint, json=json, params=params)
        except httpx.HTTPError as exc:
            logger.warning("Network request %s %s failed: %s", method, endpoint, exc)
            raise NetworkError(f"Network request to {endpoint} failed: {exc}") from exc

        if return_null_on_401 and response.status_code == 401:
            return None
        if not response.is_success:
            raise RemoteApiError(response.status_code, _error_message(response))
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteApiError(response.status_code, f"Invalid JSON from {endpoint}") from exc

    async def _request_or_none(self, endpoint: str, method: str = "GET", json: Any = None) -> Any:
        try:
            return await self.request(endpoint, method=method, json=json)
        except RemoteApiError as exc:
            if exc.status_code == 404:
                return None
            raise

    # ==================== Profiles ====================

    async def get_profiles(self) -> List[ProfileRecord]:
        data = await self.request("/api/profiles")
        return [ProfileRecord.model_validate(item) for item in data or []]

    async def get_profile(self, profile_id: int) -> Optional[ProfileRecord]:
        data = await self._request_or_none(f"/api/profiles/{profile_id}")
        return ProfileRecord.model_validate(data) if data else None

    async def create_profile(self, data: ProfileCreate) -> ProfileRecord:
        body = await self.request(
            "/api/profiles",
            method="POST",
            json=data.model_dump(mode="json", by_alias=True),
        )
        return ProfileRecord.model_validate(body)

    async def update_profile(self, profile_id: int, patch: ProfilePatch) -> Optional[ProfileRecord]:
        body = await self._request_or_none(
            f"/api/profiles/{profile_id}",
            method="PUT",
            json=patch.model_dump(mode="json", by_alias=True, exclude_unset=True),
        )
        return ProfileRecord.model_validate(body) if body else None

    async def delete_profile(self, profile_id: int) -> bool:
        try:
            await self.request(f"/api/profiles/{profile_id}", method="DELETE")
        except RemoteApiError as exc:
            if exc.status_code == 404:
                return False
            raise
        return True

    async def increment_profile_push_count(self, profile_id: int) -> Optional[ProfileRecord]:
        body = await self._request_or_none(
            f"/api/profiles/{profile_id}/increment-push-count",
            method="POST",
        )
        return ProfileRecord.model_validate(body) if body else None

    async def reset_profile_push_count(self, profile_id: int) -> Optional[ProfileRecord]:
        body = await self._request_or_none(f"/api/profiles/{profile_id}/reset-push-count", method="POST")
        return ProfileRecord.model_validate(body) if body else None

    async def get_profile_push_count(self, profile_id: int) -> Optional[PushCountStatus]:
        body = await self._request_or_none(f"/api/profiles/{profile_id}/push-count")
        return PushCountStatus.model_validate(body) if body else None

    # ==================== Videos ====================

    async def _video_list(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> List[VideoRecord]:
        data = await self.request(endpoint, params=params)
        return [VideoRecord.model_validate(item) for item in data or []]

    async def get_videos(self) -> List[VideoRecord]:
        return await self._video_list("/api/videos")

    async def get_videos_by_profile(self, profile_id: int) -> List[VideoRecord]:
        return await self._video_list("/api/videos", {"profileId": profile_id})

    async def get_videos_by_status(self, status: str) -> List[VideoRecord]:
        return await self._video_list("/api/videos", {"status": status})

    async def get_videos_by_status_and_profile(self, status: str, profile_id: int) -> List[VideoRecord]:
        return await self._video_list("/api/videos", {"status": status, "profileId": profile_id})

    async def get_videos_by_date(self, day: Union[date, datetime]) -> List[VideoRecord]:
        if isinstance(day, datetime):
            day = day.date()
        return await self._video_list(f"/api/videos/date/{day.isoformat()}")

    async def get_today_videos(self) -> List[VideoRecord]:
        return await self._video_list("/api/videos/today")

    async def get_video(self, video_id: int) -> Optional[VideoRecord]:
        data = await self._request_or_none(f"/api/videos/{video_id}")
        return VideoRecord.model_validate(data) if data else None

    async def create_video(self, data: VideoCreate) -> VideoRecord:
        body = await self.request(
            "/api/videos",
            method="POST",
            json=data.model_dump(mode="json", by_alias=True),
        )
        return VideoRecord.model_validate(body)

    async def update_video(self, video_id: int, patch: VideoPatch) -> Optional[VideoRecord]:
        body = await self._request_or_none(
            f"/api/videos/{video_id}",
            method="PUT",
            json=patch.model_dump(mode="json", by_alias=True, exclude_unset=True),
        )
        return VideoRecord.model_validate(body) if body else None

    async def delete_video(self, video_id: int) -> bool:
        try:
            await self.request(f"/api/videos/{video_id}", method="DELETE")
        except RemoteApiError as exc:
            if exc.status_code == 404:
                return False
            raise
        return True

    async def delete_videos_by_status(self, status: str) -> DeleteResult:
        body = await self.request(f"/api/videos/status/{status}", method="DELETE")
        return DeleteResult.model_validate(body or {"deletedCount": 0})

    async def mark_video_as_uploaded(
        self,
        video_id: int,
        youtube_link: Optional[str] = None,
    ) -> Optional[VideoRecord]:
        payload = {"youtubeLink": youtube_link} if youtube_link else None
        body = await self._request_or_none(f"/api/videos/{video_id}/mark-uploaded", method="POST", json=payload)
        return VideoRecord.model_validate(body) if body else None

    async def revert_video_upload(self, video_id: int) -> Optional[VideoRecord]:
        body = await self._request_or_none(f"/api/videos/{video_id}/revert-upload", method="POST")
        return VideoRecord.model_validate(body) if body else None

    async def mark_missed_schedules(self, profile_id: Optional[int] = None) -> MissedScheduleResult:
        params = {"profileId": profile_id} if profile_id is not None else None
        body = await self.request("/api/videos/mark-missed", method="POST", params=params)
        return MissedScheduleResult.model_validate(body)

    async def reschedule_video(self, video_id: int, schedule_date: datetime) -> Optional[VideoRecord]:
        body = await self._request_or_none(
            f"/api/videos/{video_id}/reschedule",
            method="POST",
            json={"scheduleDate": schedule_date.isoformat()},
        )
        return VideoRecord.model_validate(body) if body else None

    async def reschedule_missed_videos(self, profile_id: int) -> RescheduleResult:
        body = await self.request(f"/api/profiles/{profile_id}/reschedule-missed", method="POST")
        return RescheduleResult.model_validate(body)

    async def upload_video_file(self, video_id: int, file_path: str) -> bool:
        body = await self._request_or_none(
            f"/api/videos/{video_id}/file",
            method="POST",
            json={"filePath": file_path},
        )
        return body is not None

    # ==================== Data ====================

    async def export_data(self) -> ExportDocument:
        return ExportDocument.model_validate(await self.request("/api/export"))

    async def import_data(self, payload: Dict[str, Any]) -> ImportResult:
        body = await self.request("/api/import", method="POST", json=payload)
        return ImportResult.model_validate(body or {})

    async def cleanup_orphan_files(self) -> CleanupResult:
        body = await self.request("/api/maintenance/cleanup", method="POST")
        return CleanupResult.model_validate(body)
