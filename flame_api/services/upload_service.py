from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional, Sequence

from fastapi import UploadFile

from ..config import get_settings
from ..db import get_db
from ..errors import Forbidden, InvalidInput, NotFound, UpstreamFailure
from ..integrations.cloudinary import ObjectStorage
from ..models.identifiers import utc_now
from ..models.profile import ProfilePhoto, ProfilePhotoDocument
from ..models.upload import AvatarUploadResponse, StoredObject
from ..repositories.exceptions import NotFoundRepositoryError, RepositoryError
from ..repositories.photo import ProfilePhotoRepository
from ..repositories.profile import ProfileRepository
from .profile_service import to_profile_photo

LOGGER = logging.getLogger("uvicorn.error")


@dataclass
class IncomingFile:
    """An uploaded file that passed type and size checks."""

    filename: str
    mime: str
    data: bytes


class UploadService:
    """Validates image uploads and writes them through to the object store."""

    def __init__(
        self,
        profiles: ProfileRepository,
        photos: ProfilePhotoRepository,
        storage: ObjectStorage,
        *,
        allowed_types: Sequence[str],
        max_file_size: int,
        max_batch: int,
        avatar_folder: str,
        photo_folder: str,
    ) -> None:
        self._profiles = profiles
        self._photos = photos
        self._storage = storage
        self._allowed_types = {t.strip().lower() for t in allowed_types if t.strip()}
        self._max_file_size = max_file_size
        self._max_batch = max_batch
        self._avatar_folder = avatar_folder
        self._photo_folder = photo_folder

    async def _read_validated(self, upload: UploadFile) -> IncomingFile:
        # Some clients append parameters (e.g. "image/png; charset=binary")
        mime = (upload.content_type or "").split(";")[0].strip().lower()
        if mime not in self._allowed_types:
            raise InvalidInput("Invalid file type")
        data = await upload.read(self._max_file_size + 1)
        if len(data) > self._max_file_size:
            raise InvalidInput(f"File too large. Max {self._max_file_size} bytes")
        if not data:
            raise InvalidInput("No file provided")
        return IncomingFile(filename=upload.filename or "", mime=mime, data=data)

    async def upload_avatar(self, user_id: str, upload: Optional[UploadFile]) -> AvatarUploadResponse:
        if upload is None:
            raise InvalidInput("No file provided")
        incoming = await self._read_validated(upload)

        name = f"avatar-{uuid.uuid4()}"
        try:
            stored = await self._storage.put(
                incoming.data,
                mime=incoming.mime,
                folder=f"{self._avatar_folder}/{user_id}",
                public_id=name,
            )
        except Exception as exc:
            LOGGER.error("Avatar upload failed for %s: %s", user_id, exc)
            raise UpstreamFailure("Failed to upload file") from exc

        try:
            await self._profiles.update_profile(
                user_id=user_id,
                updates={"avatar_url": stored.url, "updated_at": utc_now()},
            )
        except NotFoundRepositoryError:
            await self._discard([stored])
            raise NotFound("Profile not found") from None
        return AvatarUploadResponse(url=stored.url, file_name=stored.key)

    async def upload_profile_photos(
        self,
        user_id: str,
        uploads: Optional[List[UploadFile]],
    ) -> List[ProfilePhoto]:
        """Store a batch of photos; the batch succeeds or fails as a whole.

        Every file is validated before the first write. If a write fails part
        way, photos already stored by this batch are removed again.
        """

        files = [u for u in (uploads or []) if u is not None]
        if not files:
            raise InvalidInput("No files provided")
        if len(files) > self._max_batch:
            raise InvalidInput(f"Too many files. Max {self._max_batch} per upload")
        incoming = [await self._read_validated(upload) for upload in files]

        start = await self._photos.next_order(user_id)
        stored_objects: List[StoredObject] = []
        created: List[ProfilePhotoDocument] = []
        for index, item in enumerate(incoming):
            try:
                stored = await self._storage.put(
                    item.data,
                    mime=item.mime,
                    folder=f"{self._photo_folder}/{user_id}",
                    public_id=f"profile-{uuid.uuid4()}",
                )
                stored_objects.append(stored)
                created.append(
                    await self._photos.add_photo(
                        user_id=user_id,
                        photo_url=stored.url,
                        storage_key=stored.key,
                        order=start + index,
                        created_at=utc_now(),
                    )
                )
            except Exception as exc:
                LOGGER.error(
                    "Photo batch for %s failed at %s/%s (%s); rolling back",
                    user_id,
                    index + 1,
                    len(incoming),
                    exc,
                )
                try:
                    await self._photos.delete_many(p.id for p in created)
                except RepositoryError as cleanup_exc:
                    LOGGER.error("Failed to remove photo rows for %s: %s", user_id, cleanup_exc)
                await self._discard(stored_objects)
                raise UpstreamFailure(f"Failed to upload file: {item.filename or index + 1}") from exc

        return [to_profile_photo(p) for p in created]

    async def delete_profile_photo(self, user_id: str, photo_id: str) -> None:
        photo = await self._photos.get_by_id(photo_id)
        if not photo:
            raise NotFound("Photo not found")
        if photo.user_id != user_id:
            raise Forbidden("You can only delete your own photos")
        try:
            await self._storage.delete(photo.storage_key)
        except Exception as exc:
            raise UpstreamFailure("Failed to delete file from storage") from exc
        await self._photos.delete(photo.id)

    async def _discard(self, objects: Sequence[StoredObject]) -> None:
        for obj in objects:
            try:
                await self._storage.delete(obj.key)
            except Exception as exc:  # pragma: no cover - orphaned blobs are tolerated
                LOGGER.warning("Failed to remove blob %s: %s", obj.key, exc)


def build_upload_service(storage: ObjectStorage) -> UploadService:
    settings = get_settings()
    db = get_db()
    return UploadService(
        ProfileRepository(db),
        ProfilePhotoRepository(db),
        storage,
        allowed_types=settings.allowed_file_types,
        max_file_size=settings.max_file_size,
        max_batch=settings.max_profile_photos_per_upload,
        avatar_folder=settings.avatar_folder,
        photo_folder=settings.profile_photo_folder,
    )


__all__ = ["IncomingFile", "UploadService", "build_upload_service"]
