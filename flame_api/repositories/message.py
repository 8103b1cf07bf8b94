"""Repository helpers for per-match chat messages."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from ..db.collections import MESSAGES_COLLECTION
from ..models.identifiers import new_id
from ..models.message import MessageDocument
from .exceptions import RepositoryError


class MessageRepository:
    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[MESSAGES_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def create(
        self,
        *,
        match_id: str,
        sender_id: str,
        content: str,
        created_at: datetime,
    ) -> MessageDocument:
        doc = {
            "_id": new_id(),
            "match_id": match_id,
            "sender_id": sender_id,
            "content": content,
            "read_at": None,
            "created_at": created_at,
        }
        try:
            await self._collection.insert_one(doc)
        except PyMongoError as exc:
            raise RepositoryError("failed to send message") from exc
        return MessageDocument(**doc)

    async def get_by_id(self, message_id: str) -> Optional[MessageDocument]:
        doc = await self._collection.find_one({"_id": message_id})
        return MessageDocument(**doc) if doc else None

    async def list_newest_first(self, match_id: str, *, limit: int, offset: int) -> List[MessageDocument]:
        cursor = (
            self._collection.find({"match_id": match_id})
            .sort([("created_at", DESCENDING), ("_id", DESCENDING)])
            .skip(offset)
            .limit(limit)
        )
        return [MessageDocument(**doc) async for doc in cursor]

    async def mark_read(self, message_id: str, read_at: datetime) -> Optional[MessageDocument]:
        """Set ``read_at`` only if it is unset; returns the stored message either way."""

        doc = await self._collection.find_one_and_update(
            {"_id": message_id, "read_at": None},
            {"$set": {"read_at": read_at}},
            return_document=ReturnDocument.AFTER,
        )
        if doc:
            return MessageDocument(**doc)
        return await self.get_by_id(message_id)

    async def count_for_match(self, match_id: str) -> int:
        return await self._collection.count_documents({"match_id": match_id})

    async def delete_for_matches(self, match_ids: Iterable[str]) -> int:
        ids = list(match_ids)
        if not ids:
            return 0
        result = await self._collection.delete_many({"match_id": {"$in": ids}})
        return int(result.deleted_count)


__all__ = ["MessageRepository"]
