"""Repository helpers for ordered profile photos."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from ..db.collections import PROFILE_PHOTOS_COLLECTION
from ..models.identifiers import new_id
from ..models.profile import ProfilePhotoDocument
from .exceptions import RepositoryError


class ProfilePhotoRepository:
    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[PROFILE_PHOTOS_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def add_photo(
        self,
        *,
        user_id: str,
        photo_url: str,
        storage_key: str,
        order: int,
        created_at: datetime,
    ) -> ProfilePhotoDocument:
        doc = {
            "_id": new_id(),
            "user_id": user_id,
            "photo_url": photo_url,
            "storage_key": storage_key,
            "order": order,
            "created_at": created_at,
        }
        try:
            await self._collection.insert_one(doc)
        except PyMongoError as exc:
            raise RepositoryError("failed to save photo metadata") from exc
        return ProfilePhotoDocument(**doc)

    async def get_by_id(self, photo_id: str) -> Optional[ProfilePhotoDocument]:
        doc = await self._collection.find_one({"_id": photo_id})
        return ProfilePhotoDocument(**doc) if doc else None

    async def list_for_user(self, user_id: str) -> List[ProfilePhotoDocument]:
        cursor = self._collection.find({"user_id": user_id}).sort("order", ASCENDING)
        return [ProfilePhotoDocument(**doc) async for doc in cursor]

    async def list_for_users(self, user_ids: Iterable[str]) -> dict[str, List[ProfilePhotoDocument]]:
        ids = list(dict.fromkeys(user_ids))
        out: dict[str, List[ProfilePhotoDocument]] = {user_id: [] for user_id in ids}
        if not ids:
            return out
        cursor = self._collection.find({"user_id": {"$in": ids}}).sort("order", ASCENDING)
        async for doc in cursor:
            photo = ProfilePhotoDocument(**doc)
            out.setdefault(photo.user_id, []).append(photo)
        return out

    async def next_order(self, user_id: str) -> int:
        doc = await self._collection.find_one(
            {"user_id": user_id},
            projection={"order": 1},
            sort=[("order", DESCENDING)],
        )
        return int(doc["order"]) + 1 if doc else 0

    async def delete(self, photo_id: str) -> bool:
        result = await self._collection.delete_one({"_id": photo_id})
        return bool(result.deleted_count)

    async def delete_many(self, photo_ids: Iterable[str]) -> int:
        ids = list(photo_ids)
        if not ids:
            return 0
        try:
            result = await self._collection.delete_many({"_id": {"$in": ids}})
        except PyMongoError as exc:
            raise RepositoryError("failed to delete photos") from exc
        return int(result.deleted_count)

    async def delete_for_user(self, user_id: str) -> List[ProfilePhotoDocument]:
        photos = await self.list_for_user(user_id)
        await self._collection.delete_many({"user_id": user_id})
        return photos


__all__ = ["ProfilePhotoRepository"]
