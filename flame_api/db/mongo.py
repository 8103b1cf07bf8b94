import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from .collections import (
    IDENTITIES_COLLECTION,
    INTERACTIONS_COLLECTION,
    MATCHES_COLLECTION,
    MESSAGES_COLLECTION,
    PROFILE_DETAILS_COLLECTION,
    PROFILE_PHOTOS_COLLECTION,
    PROFILES_COLLECTION,
    SESSIONS_COLLECTION,
)

LOGGER = logging.getLogger("uvicorn.error")


async def ensure_identity_indexes(db: AsyncIOMotorDatabase) -> None:
    await db[IDENTITIES_COLLECTION].create_index("email", name="identities_email_unique", unique=True)
    await db[SESSIONS_COLLECTION].create_index(
        "refresh_token_hash",
        name="sessions_refresh_token_unique",
        unique=True,
    )
    await db[SESSIONS_COLLECTION].create_index("user_id", name="sessions_user_id_idx")


async def ensure_profile_indexes(db: AsyncIOMotorDatabase) -> None:
    await db[PROFILES_COLLECTION].create_index("email", name="profiles_email_unique", unique=True)
    await db[PROFILES_COLLECTION].create_index([("created_at", DESCENDING)], name="profiles_created_at_idx")
    await db[PROFILE_DETAILS_COLLECTION].create_index(
        "user_id",
        name="profile_details_user_id_unique",
        unique=True,
    )
    await db[PROFILE_PHOTOS_COLLECTION].create_index(
        [("user_id", ASCENDING), ("order", ASCENDING)],
        name="profile_photos_user_order_idx",
    )


async def ensure_interaction_indexes(db: AsyncIOMotorDatabase) -> None:
    collection = db[INTERACTIONS_COLLECTION]
    # At most one row per (actor, target, type); duplicates surface as DuplicateKeyError.
    await collection.create_index(
        [("user_id", ASCENDING), ("target_user_id", ASCENDING), ("interaction_type", ASCENDING)],
        name="interactions_actor_target_type_unique",
        unique=True,
    )
    await collection.create_index(
        [("target_user_id", ASCENDING), ("interaction_type", ASCENDING)],
        name="interactions_target_type_idx",
    )


async def ensure_match_indexes(db: AsyncIOMotorDatabase) -> None:
    # user_id_1 < user_id_2 always, so this makes the unordered pair unique.
    await db[MATCHES_COLLECTION].create_index(
        [("user_id_1", ASCENDING), ("user_id_2", ASCENDING)],
        name="matches_pair_unique",
        unique=True,
    )
    await db[MATCHES_COLLECTION].create_index("user_id_2", name="matches_user_id_2_idx")
    await db[MESSAGES_COLLECTION].create_index(
        [("match_id", ASCENDING), ("created_at", DESCENDING)],
        name="messages_match_created_idx",
    )


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create every index the service relies on (idempotent)."""

    for ensure in (
        ensure_identity_indexes,
        ensure_profile_indexes,
        ensure_interaction_indexes,
        ensure_match_indexes,
    ):
        try:
            await ensure(db)
        except Exception as exc:  # pragma: no cover - best-effort logging
            LOGGER.error("Failed to ensure indexes (%s): %s", ensure.__name__, exc)
            raise


__all__ = [
    "ensure_identity_indexes",
    "ensure_profile_indexes",
    "ensure_interaction_indexes",
    "ensure_match_indexes",
    "ensure_indexes",
]
