import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from container import build_container
from main import app
from routers.deps import get_container

from conftest import make_settings


def _remote_down(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


@pytest_asyncio.fixture
async def planner_client(tmp_path):
    container = build_container(
        make_settings(tmp_path),
        remote_transport=httpx.MockTransport(_remote_down),
    )
    await container.bootstrapper.cold_start()

    app.dependency_overrides[get_container] = lambda: container
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client, container

    app.dependency_overrides.pop(get_container, None)
    await container.aclose()


async def _create_profile(client, name="Chan"):
    response = await client.post(
        "/api/profiles",
        json={"name": name, "channelName": f"@{name.lower()}", "channelLink": "https://youtube.com/@chan"},
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_health_reports_local_store(planner_client):
    client, _ = planner_client
    response = await client.get("/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "healthy"
    assert payload["database"] == "up"
    assert payload["files"] == "up"

    ready = await client.get("/health/ready")
    assert ready.status_code == 200
    assert ready.json() == {"ready": True}


@pytest.mark.asyncio
async def test_profiles_crud_and_push_count(planner_client):
    client, _ = planner_client
    listed = await client.get("/api/profiles")
    assert [profile["name"] for profile in listed.json()] == ["My YouTube Channel"]

    created = await _create_profile(client)
    assert created["dailyPushCount"] == 0
    assert created["lastPushReset"] is None

    pushed = await client.post(f"/api/profiles/{created['id']}/increment-push-count")
    assert pushed.status_code == 200
    assert pushed.json()["dailyPushCount"] == 1
    assert pushed.json()["lastPushReset"] is not None

    status = await client.get(f"/api/profiles/{created['id']}/push-count")
    assert status.json()["remaining"] == 9

    renamed = await client.put(f"/api/profiles/{created['id']}", json={"name": "Chan TV"})
    assert renamed.json()["name"] == "Chan TV"
    assert renamed.json()["channelName"] == "@chan"

    reset = await client.post(f"/api/profiles/{created['id']}/reset-push-count")
    assert reset.json()["dailyPushCount"] == 0

    deleted = await client.delete(f"/api/profiles/{created['id']}")
    assert deleted.json() == {"success": True}
    missing = await client.get(f"/api/profiles/{created['id']}")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_video_routes_follow_status_rules(planner_client):
    client, _ = planner_client
    profile = await _create_profile(client)

    orphan = await client.post(
        "/api/videos",
        json={"profileId": 999, "title": "Orphan", "scheduleDate": "2024-05-01T09:00:00"},
    )
    assert orphan.status_code == 409

    for title, when in (("late", "2024-05-01T18:00:00"), ("early", "2024-05-01T07:30:00"), ("next", "2024-05-02T07:30:00")):
        response = await client.post(
            "/api/videos",
            json={"profileId": profile["id"], "title": title, "scheduleDate": when},
        )
        assert response.status_code == 201

    by_date = await client.get("/api/videos/date/2024-05-01")
    assert [video["title"] for video in by_date.json()] == ["early", "late"]

    video_id = by_date.json()[0]["id"]
    uploaded = await client.post(f"/api/videos/{video_id}/mark-uploaded", json={"youtubeLink": "https://youtu.be/x"})
    assert uploaded.json()["status"] == "completed"
    assert uploaded.json()["youtubeLink"] == "https://youtu.be/x"

    completed = await client.get("/api/videos", params={"status": "completed", "profileId": profile["id"]})
    assert [video["id"] for video in completed.json()] == [video_id]

    reverted = await client.post(f"/api/videos/{video_id}/revert-upload")
    assert reverted.json()["status"] == "pending"
    assert reverted.json()["uploadedDate"] is None

    missed = await client.post("/api/videos/mark-missed", params={"profileId": profile["id"]})
    assert missed.json()["missedCount"] == 3

    rescheduled = await client.post(f"/api/profiles/{profile['id']}/reschedule-missed")
    assert rescheduled.json()["rescheduledCount"] == 3

    assert (await client.get("/api/videos/404")).status_code == 404


@pytest.mark.asyncio
async def test_export_import_and_validation(planner_client):
    client, _ = planner_client
    profile = await _create_profile(client)
    await client.post(
        "/api/videos",
        json={"profileId": profile["id"], "title": "Clip", "scheduleDate": "2024-05-01T09:00:00"},
    )

    exported = await client.get("/api/export")
    document = exported.json()
    assert {p["name"] for p in document["profiles"]} == {"My YouTube Channel", "Chan"}
    assert [v["title"] for v in document["videos"]] == ["Clip"]

    imported = await client.post("/api/import", json=document)
    assert imported.json() == {"profilesImported": 2, "videosImported": 1}

    invalid = await client.post("/api/import", json={"profiles": "nope"})
    assert invalid.status_code == 422

    cleanup = await client.post("/api/maintenance/cleanup")
    assert cleanup.status_code == 200
    assert cleanup.json()["removedFiles"] == []


@pytest.mark.asyncio
async def test_online_mode_fails_over_when_remote_is_down(planner_client):
    client, container = planner_client
    mode = await client.get("/api/mode")
    assert mode.json()["mode"] == "offline"

    online = await client.post("/api/mode/online")
    assert online.json()["mode"] == "online"
    assert online.json()["preference"] == "false"

    profiles = await client.get("/api/profiles")
    assert profiles.status_code == 200
    assert [profile["name"] for profile in profiles.json()] == ["My YouTube Channel"]

    after = await client.get("/api/mode")
    assert after.json()["mode"] == "offline"
    assert after.json()["preference"] == "true"

    forced = await client.post("/api/mode/offline")
    assert forced.json()["preference"] == "forced-offline"


@pytest.mark.asyncio
async def test_lifecycle_state_reports_transitions(planner_client):
    client, container = planner_client
    state = await client.get("/api/lifecycle/state")
    assert state.json()["started"] is True
    assert state.json()["storeOpen"] is True

    background = await client.post("/api/lifecycle/state", json={"isActive": False})
    assert background.json()["isActive"] is False
    foreground = await client.post("/api/lifecycle/state", json={"isActive": True})
    assert foreground.json()["isActive"] is True
    assert foreground.json()["storeOpen"] is True


@pytest.mark.asyncio
async def test_patches_reject_null_for_required_fields(planner_client):
    client, _ = planner_client
    profile = await _create_profile(client)
    created = await client.post(
        "/api/videos",
        json={"profileId": profile["id"], "title": "Clip", "scheduleDate": "2024-05-01T09:00:00"},
    )
    video_id = created.json()["id"]

    for payload in ({"title": None}, {"scheduleDate": None}, {"status": None}, {"isFileUploaded": None}):
        response = await client.put(f"/api/videos/{video_id}", json=payload)
        assert response.status_code == 422

    renamed = await client.put(f"/api/profiles/{profile['id']}", json={"name": None})
    assert renamed.status_code == 422

    cleared = await client.put(f"/api/videos/{video_id}", json={"duration": None, "description": "notes"})
    assert cleared.status_code == 200
    assert cleared.json()["duration"] is None
    assert cleared.json()["title"] == "Clip"
