"""Repository helpers for directed user interactions."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Set

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..db.collections import INTERACTIONS_COLLECTION
from ..models.identifiers import new_id
from ..models.interaction import InteractionDocument, InteractionType
from .exceptions import DuplicateKeyRepositoryError, RepositoryError

LOGGER = logging.getLogger("uvicorn.error")


class InteractionRepository:
    """Interactions are insert-only; there is no update path."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[INTERACTIONS_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def create(
        self,
        *,
        user_id: str,
        target_user_id: str,
        interaction_type: InteractionType,
        comment_text: Optional[str],
        created_at: datetime,
    ) -> InteractionDocument:
        doc = {
            "_id": new_id(),
            "user_id": user_id,
            "target_user_id": target_user_id,
            "interaction_type": interaction_type.value,
            "comment_text": comment_text,
            "created_at": created_at,
        }
        try:
            await self._collection.insert_one(doc)
        except DuplicateKeyError as exc:
            LOGGER.debug(
                "Duplicate interaction %s -> %s (%s)",
                user_id,
                target_user_id,
                interaction_type.value,
            )
            raise DuplicateKeyRepositoryError("interaction already recorded", details=exc.details) from exc
        except PyMongoError as exc:
            raise RepositoryError("failed to create interaction") from exc
        return InteractionDocument(**doc)

    async def find(
        self,
        *,
        user_id: str,
        target_user_id: str,
        interaction_type: InteractionType,
    ) -> Optional[InteractionDocument]:
        doc = await self._collection.find_one(
            {
                "user_id": user_id,
                "target_user_id": target_user_id,
                "interaction_type": interaction_type.value,
            }
        )
        return InteractionDocument(**doc) if doc else None

    async def list_by_user(self, user_id: str) -> List[InteractionDocument]:
        cursor = self._collection.find({"user_id": user_id}).sort("created_at", DESCENDING)
        return [InteractionDocument(**doc) async for doc in cursor]

    async def target_ids_for_user(self, user_id: str) -> Set[str]:
        """Every user the given actor has interacted with, of any type."""

        targets: Set[str] = set()
        async for doc in self._collection.find({"user_id": user_id}, projection={"target_user_id": 1}):
            target = doc.get("target_user_id")
            if isinstance(target, str):
                targets.add(target)
        return targets

    async def count_received(self, user_id: str, interaction_type: InteractionType) -> int:
        return await self._collection.count_documents(
            {"target_user_id": user_id, "interaction_type": interaction_type.value}
        )

    async def delete_involving(self, user_id: str) -> int:
        result = await self._collection.delete_many(
            {"$or": [{"user_id": user_id}, {"target_user_id": user_id}]}
        )
        return int(result.deleted_count)


__all__ = ["InteractionRepository"]
