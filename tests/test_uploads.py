from __future__ import annotations

import pytest

from flame_api.config import get_settings
from flame_api.db import get_db
from flame_api.db.collections import PROFILE_PHOTOS_COLLECTION, PROFILES_COLLECTION
from flame_api.repositories.exceptions import RepositoryError
from flame_api.repositories.photo import ProfilePhotoRepository

PNG = ("photo.png", b"\x89PNG\r\n\x1a\n-image-bytes", "image/png")
JPEG = ("photo.jpg", b"\xff\xd8\xff-image-bytes", "image/jpeg")


@pytest.mark.asyncio
async def test_avatar_upload_updates_profile(api_client, register_user, storage) -> None:
    user = await register_user("avatar@example.com")

    response = await api_client.post("/api/upload/avatar", files={"file": PNG}, headers=user["headers"])
    assert response.status_code == 200, response.text
    payload = response.json()
    assert payload["url"].startswith("https://cdn.test/")
    assert payload["file_name"].startswith(f"flame/avatars/{user['id']}/avatar-")
    assert storage.puts == [payload["file_name"]]

    profile = await get_db()[PROFILES_COLLECTION].find_one({"_id": user["id"]})
    assert profile["avatar_url"] == payload["url"]


@pytest.mark.asyncio
async def test_rejected_type_writes_nothing(api_client, register_user, storage) -> None:
    user = await register_user("pdf@example.com")

    response = await api_client.post(
        "/api/upload/avatar",
        files={"file": ("cv.pdf", b"%PDF-1.7", "application/pdf")},
        headers=user["headers"],
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid file type"}
    assert storage.puts == []

    missing = await api_client.post("/api/upload/avatar", headers=user["headers"])
    assert missing.status_code == 400


@pytest.mark.asyncio
async def test_oversized_file_rejected(api_client, register_user, storage, monkeypatch: pytest.MonkeyPatch) -> None:
    user = await register_user("big@example.com")
    monkeypatch.setenv("MAX_FILE_SIZE", "16")
    get_settings.cache_clear()  # type: ignore[attr-defined]

    response = await api_client.post(
        "/api/upload/profile-photos",
        files=[("files", ("big.png", b"x" * 64, "image/png"))],
        headers=user["headers"],
    )
    assert response.status_code == 400
    assert response.json()["error"].startswith("File too large")
    assert storage.puts == []


@pytest.mark.asyncio
async def test_profile_photos_batch_appends_in_order(api_client, register_user, storage) -> None:
    user = await register_user("batch@example.com")

    first = await api_client.post(
        "/api/upload/profile-photos",
        files=[("files", PNG), ("files", JPEG)],
        headers=user["headers"],
    )
    assert first.status_code == 201, first.text
    assert [p["order"] for p in first.json()] == [0, 1]
    assert "storage_key" not in first.json()[0]

    second = await api_client.post(
        "/api/upload/profile-photos",
        files=[("files", PNG)],
        headers=user["headers"],
    )
    assert [p["order"] for p in second.json()] == [2]

    public = await api_client.get(f"/api/profiles/{user['id']}")
    assert [p["order"] for p in public.json()["profile_photos"]] == [0, 1, 2]


@pytest.mark.asyncio
async def test_batch_with_invalid_file_is_rejected_up_front(api_client, register_user, storage) -> None:
    user = await register_user("mixed@example.com")

    response = await api_client.post(
        "/api/upload/profile-photos",
        files=[("files", PNG), ("files", ("notes.txt", b"hello", "text/plain"))],
        headers=user["headers"],
    )
    assert response.status_code == 400
    assert storage.puts == []
    assert await get_db()[PROFILE_PHOTOS_COLLECTION].count_documents({}) == 0


@pytest.mark.asyncio
async def test_partial_batch_failure_rolls_back(api_client, register_user, storage) -> None:
    user = await register_user("rollback@example.com")
    storage.fail_on_put = 2

    response = await api_client.post(
        "/api/upload/profile-photos",
        files=[("files", PNG), ("files", JPEG), ("files", PNG)],
        headers=user["headers"],
    )
    assert response.status_code == 500
    assert response.json()["error"].startswith("Failed to upload file")
    assert len(storage.puts) == 1
    assert storage.deletes == storage.puts
    assert storage.objects == {}
    assert await get_db()[PROFILE_PHOTOS_COLLECTION].count_documents({"user_id": user["id"]}) == 0


@pytest.mark.asyncio
async def test_delete_photo_checks_ownership(api_client, register_user, storage) -> None:
    owner = await register_user("owner@example.com")
    intruder = await register_user("intruder@example.com")

    uploaded = await api_client.post(
        "/api/upload/profile-photos",
        files=[("files", PNG)],
        headers=owner["headers"],
    )
    photo_id = uploaded.json()[0]["id"]

    denied = await api_client.delete(f"/api/upload/profile-photos/{photo_id}", headers=intruder["headers"])
    assert denied.status_code == 403
    assert storage.deletes == []

    deleted = await api_client.delete(f"/api/upload/profile-photos/{photo_id}", headers=owner["headers"])
    assert deleted.status_code == 200
    assert deleted.json() == {"success": True}
    assert storage.objects == {}

    again = await api_client.delete(f"/api/upload/profile-photos/{photo_id}", headers=owner["headers"])
    assert again.status_code == 404
    assert again.json() == {"error": "Photo not found"}


@pytest.mark.asyncio
async def test_batch_over_limit_rejected(api_client, register_user, storage) -> None:
    user = await register_user("eleven@example.com")

    response = await api_client.post(
        "/api/upload/profile-photos",
        files=[("files", PNG) for _ in range(11)],
        headers=user["headers"],
    )
    assert response.status_code == 400
    assert response.json()["error"].startswith("Too many files")
    assert storage.puts == []
    assert await get_db()[PROFILE_PHOTOS_COLLECTION].count_documents({}) == 0


@pytest.mark.asyncio
async def test_rollback_discards_blobs_when_row_cleanup_fails(
    api_client, register_user, storage, monkeypatch: pytest.MonkeyPatch
) -> None:
    user = await register_user("cleanup@example.com")
    storage.fail_on_put = 2

    async def _broken_delete_many(self, photo_ids) -> int:
        raise RepositoryError("failed to delete photos")

    monkeypatch.setattr(ProfilePhotoRepository, "delete_many", _broken_delete_many)

    response = await api_client.post(
        "/api/upload/profile-photos",
        files=[("files", PNG), ("files", JPEG)],
        headers=user["headers"],
    )
    assert response.status_code == 500
    assert response.json()["error"].startswith("Failed to upload file")
    assert len(storage.puts) == 1
    assert storage.deletes == storage.puts
    assert storage.objects == {}
