"""Repository helpers for profiles and their 1:1 details rows."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..db.collections import PROFILE_DETAILS_COLLECTION, PROFILES_COLLECTION
from ..models.identifiers import new_id
from ..models.profile import (
    DEFAULT_GENDER,
    DETAIL_DEFAULTS,
    ProfileDetailsDocument,
    ProfileDocument,
)
from .exceptions import DuplicateKeyRepositoryError, NotFoundRepositoryError, RepositoryError

LOGGER = logging.getLogger("uvicorn.error")


class ProfileRepository:
    """MongoDB access layer for profile and profile-details documents."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[PROFILES_COLLECTION]
        self._details: AsyncIOMotorCollection = database[PROFILE_DETAILS_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    @property
    def details_collection(self) -> AsyncIOMotorCollection:
        return self._details

    async def create_profile(
        self,
        *,
        user_id: str,
        email: str,
        name: str,
        age: int,
        gender: Optional[str],
        created_at: datetime,
    ) -> ProfileDocument:
        doc = {
            "_id": user_id,
            "email": email.lower(),
            "name": name,
            "age": age,
            "bio": "",
            "gender": gender or DEFAULT_GENDER,
            "gender_interest": DEFAULT_GENDER,
            "province": "",
            "neighborhood": "",
            "avatar_url": None,
            "created_at": created_at,
            "updated_at": created_at,
        }
        try:
            await self._collection.insert_one(doc)
        except DuplicateKeyError as exc:
            raise DuplicateKeyRepositoryError("profile already exists", details=exc.details) from exc
        except PyMongoError as exc:
            raise RepositoryError("failed to create profile") from exc
        return ProfileDocument(**doc)

    async def create_details(self, *, user_id: str, created_at: datetime) -> ProfileDetailsDocument:
        doc = {
            "_id": new_id(),
            "user_id": user_id,
            **{key: (list(value) if isinstance(value, list) else value) for key, value in DETAIL_DEFAULTS.items()},
            "created_at": created_at,
            "updated_at": created_at,
        }
        try:
            await self._details.insert_one(doc)
        except DuplicateKeyError as exc:
            raise DuplicateKeyRepositoryError("profile details already exist", details=exc.details) from exc
        except PyMongoError as exc:
            raise RepositoryError("failed to create profile details") from exc
        return ProfileDetailsDocument(**doc)

    async def get_by_id(self, user_id: str) -> Optional[ProfileDocument]:
        doc = await self._collection.find_one({"_id": user_id})
        return ProfileDocument(**doc) if doc else None

    async def exists(self, user_id: str) -> bool:
        doc = await self._collection.find_one({"_id": user_id}, projection={"_id": 1})
        return doc is not None

    async def get_many(self, user_ids: Iterable[str]) -> dict[str, ProfileDocument]:
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return {}
        out: dict[str, ProfileDocument] = {}
        async for doc in self._collection.find({"_id": {"$in": ids}}):
            profile = ProfileDocument(**doc)
            out[profile.id] = profile
        return out

    async def get_details(self, user_id: str) -> Optional[ProfileDetailsDocument]:
        doc = await self._details.find_one({"user_id": user_id})
        return ProfileDetailsDocument(**doc) if doc else None

    async def get_details_many(self, user_ids: Iterable[str]) -> dict[str, ProfileDetailsDocument]:
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return {}
        out: dict[str, ProfileDetailsDocument] = {}
        async for doc in self._details.find({"user_id": {"$in": ids}}):
            details = ProfileDetailsDocument(**doc)
            out[details.user_id] = details
        return out

    async def update_profile(self, *, user_id: str, updates: dict[str, Any]) -> ProfileDocument:
        result = await self._collection.find_one_and_update(
            {"_id": user_id},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        if not result:
            raise NotFoundRepositoryError("profile not found")
        return ProfileDocument(**result)

    async def update_details(self, *, user_id: str, updates: dict[str, Any]) -> ProfileDetailsDocument:
        result = await self._details.find_one_and_update(
            {"user_id": user_id},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        if not result:
            raise NotFoundRepositoryError("profile details not found")
        return ProfileDetailsDocument(**result)

    async def list_profiles(
        self,
        *,
        exclude_ids: Iterable[str],
        limit: int,
        offset: int,
    ) -> List[ProfileDocument]:
        """Newest-first page of profiles whose id is not in ``exclude_ids``."""

        excluded = list(dict.fromkeys(exclude_ids))
        cursor = (
            self._collection.find({"_id": {"$nin": excluded}})
            .sort([("created_at", DESCENDING), ("_id", DESCENDING)])
            .skip(offset)
            .limit(limit)
        )
        return [ProfileDocument(**doc) async for doc in cursor]

    async def delete_profile(self, user_id: str) -> bool:
        await self._details.delete_many({"user_id": user_id})
        result = await self._collection.delete_one({"_id": user_id})
        return bool(result.deleted_count)


__all__ = ["ProfileRepository"]
