"""Repository layer to abstract MongoDB access patterns."""

from .identity import IdentityRepository, SessionRepository
from .interaction import InteractionRepository
from .match import MatchRepository, canonical_pair
from .message import MessageRepository
from .photo import ProfilePhotoRepository
from .profile import ProfileRepository

__all__ = [
    "IdentityRepository",
    "InteractionRepository",
    "MatchRepository",
    "MessageRepository",
    "ProfilePhotoRepository",
    "ProfileRepository",
    "SessionRepository",
    "canonical_pair",
]
