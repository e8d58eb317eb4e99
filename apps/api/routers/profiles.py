"""
Profile endpoints: CRUD and the daily push budget.
"""

from typing import List

from fastapi import APIRouter, Depends

from container import AppContainer
from routers.deps import dispatch, get_container, not_found
from schemas import ProfileCreate, ProfilePatch, ProfileRecord, PushCountStatus, RescheduleResult

router = APIRouter()


@router.get("", response_model=List[ProfileRecord])
async def list_profiles(container: AppContainer = Depends(get_container)):
    return await dispatch(container, "get_profiles")


@router.post("", response_model=ProfileRecord, status_code=201)
async def create_profile(
    request: ProfileCreate,
    container: AppContainer = Depends(get_container),
):
    return await dispatch(container, "create_profile", request)


@router.get("/{profile_id}", response_model=ProfileRecord)
async def get_profile(profile_id: int, container: AppContainer = Depends(get_container)):
    profile = await dispatch(container, "get_profile", profile_id)
    if profile is None:
        not_found("Profile", profile_id)
    return profile


@router.put("/{profile_id}", response_model=ProfileRecord)
async def update_profile(
    profile_id: int,
    request: ProfilePatch,
    container: AppContainer = Depends(get_container),
):
    profile = await dispatch(container, "update_profile", profile_id, request)
    if profile is None:
        not_found("Profile", profile_id)
    return profile


@router.delete("/{profile_id}")
async def delete_profile(profile_id: int, container: AppContainer = Depends(get_container)):
    """Delete a profile together with its videos and their files."""
    if not await dispatch(container, "delete_profile", profile_id):
        not_found("Profile", profile_id)
    return {"success": True}


@router.post("/{profile_id}/increment-push-count", response_model=ProfileRecord)
async def increment_push_count(profile_id: int, container: AppContainer = Depends(get_container)):
    profile = await dispatch(container, "increment_profile_push_count", profile_id)
    if profile is None:
        not_found("Profile", profile_id)
    return profile


@router.post("/{profile_id}/reset-push-count", response_model=ProfileRecord)
async def reset_push_count(profile_id: int, container: AppContainer = Depends(get_container)):
    profile = await dispatch(container, "reset_profile_push_count", profile_id)
    if profile is None:
        not_found("Profile", profile_id)
    return profile


@router.get("/{profile_id}/push-count", response_model=PushCountStatus)
async def get_push_count(profile_id: int, container: AppContainer = Depends(get_container)):
    status = await dispatch(container, "get_profile_push_count", profile_id)
    if status is None:
        not_found("Profile", profile_id)
    return status


@router.post("/{profile_id}/reschedule-missed", response_model=RescheduleResult)
async def reschedule_missed(profile_id: int, container: AppContainer = Depends(get_container)):
    """Move the profile's missed videos onto upcoming days."""
    return await dispatch(container, "reschedule_missed_videos", profile_id)
