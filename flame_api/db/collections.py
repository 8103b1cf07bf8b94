"""MongoDB collection names used by the Flame API."""

from __future__ import annotations

IDENTITIES_COLLECTION = "identities"
SESSIONS_COLLECTION = "sessions"
PROFILES_COLLECTION = "profiles"
PROFILE_DETAILS_COLLECTION = "profile_details"
PROFILE_PHOTOS_COLLECTION = "profile_photos"
INTERACTIONS_COLLECTION = "interactions"
MATCHES_COLLECTION = "matches"
MESSAGES_COLLECTION = "messages"

__all__ = [
    "IDENTITIES_COLLECTION",
    "SESSIONS_COLLECTION",
    "PROFILES_COLLECTION",
    "PROFILE_DETAILS_COLLECTION",
    "PROFILE_PHOTOS_COLLECTION",
    "INTERACTIONS_COLLECTION",
    "MATCHES_COLLECTION",
    "MESSAGES_COLLECTION",
]
