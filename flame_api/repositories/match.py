"""Repository helpers for mutual matches."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Set, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..db.collections import MATCHES_COLLECTION
from ..models.identifiers import new_id
from ..models.match import MatchDocument
from .exceptions import DuplicateKeyRepositoryError, RepositoryError


def canonical_pair(user_a: str, user_b: str) -> Tuple[str, str]:
    """Order an unordered pair so the lexicographically smaller id comes first."""

    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


def _participant_filter(user_id: str) -> dict:
    return {"$or": [{"user_id_1": user_id}, {"user_id_2": user_id}]}


class MatchRepository:
    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[MATCHES_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def create(self, *, user_a: str, user_b: str, matched_at: datetime) -> MatchDocument:
        """Insert the match for the pair; raises ``DuplicateKeyRepositoryError`` if it exists."""

        user_id_1, user_id_2 = canonical_pair(user_a, user_b)
        doc = {
            "_id": new_id(),
            "user_id_1": user_id_1,
            "user_id_2": user_id_2,
            "matched_at": matched_at,
        }
        try:
            await self._collection.insert_one(doc)
        except DuplicateKeyError as exc:
            raise DuplicateKeyRepositoryError("match already exists", details=exc.details) from exc
        except PyMongoError as exc:
            raise RepositoryError("failed to create match") from exc
        return MatchDocument(**doc)

    async def get_by_id(self, match_id: str) -> Optional[MatchDocument]:
        doc = await self._collection.find_one({"_id": match_id})
        return MatchDocument(**doc) if doc else None

    async def get_by_pair(self, user_a: str, user_b: str) -> Optional[MatchDocument]:
        user_id_1, user_id_2 = canonical_pair(user_a, user_b)
        doc = await self._collection.find_one({"user_id_1": user_id_1, "user_id_2": user_id_2})
        return MatchDocument(**doc) if doc else None

    async def list_for_user(self, user_id: str) -> List[MatchDocument]:
        cursor = self._collection.find(_participant_filter(user_id)).sort("matched_at", DESCENDING)
        return [MatchDocument(**doc) async for doc in cursor]

    async def partner_ids(self, user_id: str) -> Set[str]:
        partners: Set[str] = set()
        async for doc in self._collection.find(_participant_filter(user_id)):
            match = MatchDocument(**doc)
            partners.add(match.other_participant(user_id))
        return partners

    async def count_for_user(self, user_id: str) -> int:
        return await self._collection.count_documents(_participant_filter(user_id))

    async def delete_for_user(self, user_id: str) -> List[str]:
        """Delete every match involving the user and return the removed match ids."""

        ids = [doc["_id"] async for doc in self._collection.find(_participant_filter(user_id), projection={"_id": 1})]
        if ids:
            await self._collection.delete_many({"_id": {"$in": ids}})
        return ids


__all__ = ["MatchRepository", "canonical_pair"]
