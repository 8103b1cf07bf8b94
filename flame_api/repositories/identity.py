"""Repository helpers for credentials and refresh sessions."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..db.collections import IDENTITIES_COLLECTION, SESSIONS_COLLECTION
from ..models.auth import IdentityDocument, SessionDocument
from ..models.identifiers import new_id
from .exceptions import DuplicateKeyRepositoryError, RepositoryError

LOGGER = logging.getLogger("uvicorn.error")


class IdentityRepository:
    """Thin abstraction over the identities collection."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[IDENTITIES_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def create_identity(
        self,
        *,
        email: str,
        password_hash: str,
        created_at: datetime,
    ) -> IdentityDocument:
        doc = {
            "_id": new_id(),
            "email": email.lower(),
            "password_hash": password_hash,
            "created_at": created_at,
        }
        try:
            await self._collection.insert_one(doc)
        except DuplicateKeyError as exc:
            LOGGER.debug("Duplicate identity insertion for email=%s", email)
            raise DuplicateKeyRepositoryError("email already registered", details=exc.details) from exc
        except PyMongoError as exc:
            raise RepositoryError("failed to create identity") from exc
        return IdentityDocument(**doc)

    async def get_by_email(self, email: str) -> Optional[IdentityDocument]:
        doc = await self._collection.find_one({"email": email.strip().lower()})
        return IdentityDocument(**doc) if doc else None

    async def get_by_id(self, identity_id: str) -> Optional[IdentityDocument]:
        doc = await self._collection.find_one({"_id": identity_id})
        return IdentityDocument(**doc) if doc else None

    async def delete(self, identity_id: str) -> bool:
        result = await self._collection.delete_one({"_id": identity_id})
        return bool(result.deleted_count)


class SessionRepository:
    """Refresh sessions; only the SHA-256 of a refresh token is ever stored."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[SESSIONS_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def create_session(
        self,
        *,
        user_id: str,
        refresh_token_hash: str,
        created_at: datetime,
        expires_at: datetime,
    ) -> SessionDocument:
        doc = {
            "_id": new_id(),
            "user_id": user_id,
            "refresh_token_hash": refresh_token_hash,
            "created_at": created_at,
            "expires_at": expires_at,
            "revoked_at": None,
        }
        try:
            await self._collection.insert_one(doc)
        except PyMongoError as exc:
            raise RepositoryError("failed to create session") from exc
        return SessionDocument(**doc)

    async def get_by_id(self, session_id: str) -> Optional[SessionDocument]:
        doc = await self._collection.find_one({"_id": session_id})
        return SessionDocument(**doc) if doc else None

    async def get_by_refresh_hash(self, refresh_token_hash: str) -> Optional[SessionDocument]:
        doc = await self._collection.find_one({"refresh_token_hash": refresh_token_hash})
        return SessionDocument(**doc) if doc else None

    async def revoke(self, session_id: str, revoked_at: datetime) -> bool:
        """Revoke an active session; returns False if it was already revoked."""

        result = await self._collection.update_one(
            {"_id": session_id, "revoked_at": None},
            {"$set": {"revoked_at": revoked_at}},
        )
        return bool(result.modified_count)

    async def delete_for_user(self, user_id: str) -> int:
        result = await self._collection.delete_many({"user_id": user_id})
        return int(result.deleted_count)


__all__ = ["IdentityRepository", "SessionRepository"]
