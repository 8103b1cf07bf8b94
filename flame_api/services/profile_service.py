from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..config import get_settings
from ..db import get_db
from ..errors import NotFound
from ..integrations.cloudinary import ObjectStorage
from ..models.identifiers import utc_now
from ..models.profile import (
    OwnProfile,
    ProfileDetails,
    ProfileDetailsDocument,
    ProfileDetailsUpdate,
    ProfileDocument,
    ProfilePhoto,
    ProfilePhotoDocument,
    ProfileUpdate,
    PublicDetails,
    PublicPhoto,
    PublicProfile,
)
from ..repositories.exceptions import NotFoundRepositoryError
from ..repositories.identity import IdentityRepository, SessionRepository
from ..repositories.interaction import InteractionRepository
from ..repositories.match import MatchRepository
from ..repositories.message import MessageRepository
from ..repositories.photo import ProfilePhotoRepository
from ..repositories.profile import ProfileRepository

LOGGER = logging.getLogger("uvicorn.error")

FEED_DEFAULT_LIMIT = 10
FEED_MAX_LIMIT = 50

# Details that always carry a value; a null in an update leaves them unchanged
_REQUIRED_DETAIL_FIELDS = frozenset({"smoking", "drinking", "exercise", "children", "relationship_intention"})
_LIST_DETAIL_FIELDS = frozenset({"diet", "pets", "interests", "languages", "life_desires"})


def _clean_list(values: List[str], limit: int = 30) -> List[str]:
    cleaned: List[str] = []
    for entry in values:
        text = entry.strip() if isinstance(entry, str) else ""
        if not text or text in cleaned:
            continue
        cleaned.append(text)
        if len(cleaned) >= limit:
            break
    return cleaned


def clamp_page(limit: Optional[int], offset: Optional[int], *, default: int, maximum: int) -> tuple[int, int]:
    n = default if limit is None else max(1, min(int(limit), maximum))
    return n, max(0, int(offset or 0))


def to_public_profile(
    profile: ProfileDocument,
    details: Optional[ProfileDetailsDocument],
    photos: List[ProfilePhotoDocument],
) -> PublicProfile:
    return PublicProfile(
        id=profile.id,
        name=profile.name,
        age=profile.age,
        bio=profile.bio,
        gender=profile.gender,
        province=profile.province,
        neighborhood=profile.neighborhood,
        avatar_url=profile.avatar_url,
        profile_details=PublicDetails(**details.model_dump(include=set(PublicDetails.model_fields)))
        if details
        else None,
        profile_photos=[PublicPhoto(photo_url=p.photo_url, order=p.order) for p in photos],
    )


def to_profile_photo(photo: ProfilePhotoDocument) -> ProfilePhoto:
    return ProfilePhoto(**photo.model_dump(exclude={"storage_key"}))


class ProfileService:
    """Read projections and owner-only mutations of profiles."""

    def __init__(
        self,
        profiles: ProfileRepository,
        photos: ProfilePhotoRepository,
        interactions: InteractionRepository,
        matches: MatchRepository,
        *,
        feed_exclude_interacted: bool = False,
    ) -> None:
        self._profiles = profiles
        self._photos = photos
        self._interactions = interactions
        self._matches = matches
        self._feed_exclude_interacted = feed_exclude_interacted

    async def get_public_profile(self, user_id: str) -> PublicProfile:
        profile = await self._profiles.get_by_id(user_id)
        if not profile:
            raise NotFound("Profile not found")
        details = await self._profiles.get_details(user_id)
        photos = await self._photos.list_for_user(user_id)
        return to_public_profile(profile, details, photos)

    async def get_own_profile(self, user_id: str) -> OwnProfile:
        profile = await self._profiles.get_by_id(user_id)
        if not profile:
            raise NotFound("Profile not found")
        details = await self._profiles.get_details(user_id)
        photos = await self._photos.list_for_user(user_id)
        return OwnProfile(
            **profile.model_dump(),
            profile_details=ProfileDetails(**details.model_dump()) if details else None,
            profile_photos=[to_profile_photo(p) for p in photos],
        )

    async def update_profile(self, user_id: str, patch: ProfileUpdate) -> OwnProfile:
        updates: Dict[str, Any] = patch.model_dump(exclude_unset=True, exclude_none=True)
        if updates:
            updates["updated_at"] = utc_now()
            try:
                await self._profiles.update_profile(user_id=user_id, updates=updates)
            except NotFoundRepositoryError:
                raise NotFound("Profile not found") from None
        return await self.get_own_profile(user_id)

    async def update_details(self, user_id: str, patch: ProfileDetailsUpdate) -> ProfileDetails:
        updates: Dict[str, Any] = patch.model_dump(exclude_unset=True)
        for key, value in list(updates.items()):
            if value is None and key in _REQUIRED_DETAIL_FIELDS:
                updates.pop(key)
            elif value is None and key in _LIST_DETAIL_FIELDS:
                updates[key] = []
            elif isinstance(value, list):
                updates[key] = _clean_list(value)
        if not updates:
            details = await self._profiles.get_details(user_id)
            if not details:
                raise NotFound("Profile details not found")
            return ProfileDetails(**details.model_dump())

        updates["updated_at"] = utc_now()
        try:
            details = await self._profiles.update_details(user_id=user_id, updates=updates)
        except NotFoundRepositoryError:
            raise NotFound("Profile details not found") from None
        return ProfileDetails(**details.model_dump())

    async def explore_feed(
        self,
        user_id: str,
        *,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        exclude_interacted: Optional[bool] = None,
    ) -> List[PublicProfile]:
        """Page of other users' profiles, newest first.

        Profiles already liked, passed or matched are only hidden when
        exclusion is switched on, by setting or per request.
        """

        n, skip = clamp_page(limit, offset, default=FEED_DEFAULT_LIMIT, maximum=FEED_MAX_LIMIT)
        exclude = {user_id}
        should_exclude = self._feed_exclude_interacted if exclude_interacted is None else exclude_interacted
        if should_exclude:
            exclude |= await self._interactions.target_ids_for_user(user_id)
            exclude |= await self._matches.partner_ids(user_id)

        profiles = await self._profiles.list_profiles(exclude_ids=exclude, limit=n, offset=skip)
        ids = [p.id for p in profiles]
        details = await self._profiles.get_details_many(ids)
        photos = await self._photos.list_for_users(ids)
        return [to_public_profile(p, details.get(p.id), photos.get(p.id, [])) for p in profiles]


class AccountService:
    """Deletes a profile and everything that depends on it."""

    def __init__(
        self,
        profiles: ProfileRepository,
        photos: ProfilePhotoRepository,
        interactions: InteractionRepository,
        matches: MatchRepository,
        messages: MessageRepository,
        identities: IdentityRepository,
        sessions: SessionRepository,
    ) -> None:
        self._profiles = profiles
        self._photos = photos
        self._interactions = interactions
        self._matches = matches
        self._messages = messages
        self._identities = identities
        self._sessions = sessions

    async def delete_account(self, user_id: str, storage: ObjectStorage) -> None:
        if not await self._profiles.exists(user_id):
            raise NotFound("Profile not found")

        removed_photos = await self._photos.delete_for_user(user_id)
        match_ids = await self._matches.delete_for_user(user_id)
        await self._messages.delete_for_matches(match_ids)
        await self._interactions.delete_involving(user_id)
        await self._profiles.delete_profile(user_id)
        await self._sessions.delete_for_user(user_id)
        await self._identities.delete(user_id)

        for photo in removed_photos:
            try:
                await storage.delete(photo.storage_key)
            except Exception as exc:  # pragma: no cover - orphaned blobs are tolerated
                LOGGER.warning("Failed to delete blob %s for %s: %s", photo.storage_key, user_id, exc)
        LOGGER.info(
            "Deleted account %s (%s photos, %s matches)",
            user_id,
            len(removed_photos),
            len(match_ids),
        )


def get_profile_service() -> ProfileService:
    db = get_db()
    return ProfileService(
        ProfileRepository(db),
        ProfilePhotoRepository(db),
        InteractionRepository(db),
        MatchRepository(db),
        feed_exclude_interacted=get_settings().feed_exclude_interacted,
    )


def get_account_service() -> AccountService:
    db = get_db()
    return AccountService(
        ProfileRepository(db),
        ProfilePhotoRepository(db),
        InteractionRepository(db),
        MatchRepository(db),
        MessageRepository(db),
        IdentityRepository(db),
        SessionRepository(db),
    )


__all__ = [
    "AccountService",
    "ProfileService",
    "clamp_page",
    "get_account_service",
    "get_profile_service",
    "to_public_profile",
]
