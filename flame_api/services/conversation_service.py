from __future__ import annotations

from typing import List, Optional

from ..db import get_db
from ..errors import Forbidden, InvalidInput, NotFound, UpstreamFailure
from ..models.identifiers import utc_now
from ..models.match import MatchDocument
from ..models.message import (
    MarkReadResponse,
    Message,
    MessageDocument,
    MessageSender,
    MessageWithSender,
)
from ..repositories.exceptions import RepositoryError
from ..repositories.match import MatchRepository
from ..repositories.message import MessageRepository
from ..repositories.profile import ProfileRepository
from .profile_service import clamp_page

MESSAGES_DEFAULT_LIMIT = 50
MESSAGES_MAX_LIMIT = 100

NOT_A_PARTICIPANT = "You are not a participant in this match"


def to_message(doc: MessageDocument) -> Message:
    return Message(**doc.model_dump())


class ConversationGate:
    """Message access restricted to the two participants of a match."""

    def __init__(
        self,
        matches: MatchRepository,
        messages: MessageRepository,
        profiles: ProfileRepository,
    ) -> None:
        self._matches = matches
        self._messages = messages
        self._profiles = profiles

    async def can_participate(self, match_id: str, user_id: str) -> bool:
        match = await self._matches.get_by_id(match_id)
        return bool(match and match.has_participant(user_id))

    async def _require_participant(self, match_id: str, user_id: str) -> MatchDocument:
        match = await self._matches.get_by_id(match_id)
        if not match:
            raise NotFound("Match not found")
        if not match.has_participant(user_id):
            raise Forbidden(NOT_A_PARTICIPANT)
        return match

    async def send_message(self, match_id: str, sender_id: str, content: Optional[str]) -> Message:
        text = (content or "").strip()
        if not text:
            raise InvalidInput("Message content is required")
        match = await self._require_participant(match_id, sender_id)
        try:
            doc = await self._messages.create(
                match_id=match.id,
                sender_id=sender_id,
                content=text,
                created_at=utc_now(),
            )
        except RepositoryError as exc:
            raise UpstreamFailure("Failed to send message") from exc
        return to_message(doc)

    async def list_messages(
        self,
        match_id: str,
        user_id: str,
        *,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[MessageWithSender]:
        """Page of messages in chronological order.

        ``offset`` counts back from the newest message, so offset 0 is the
        latest page.
        """

        match = await self._require_participant(match_id, user_id)
        n, skip = clamp_page(limit, offset, default=MESSAGES_DEFAULT_LIMIT, maximum=MESSAGES_MAX_LIMIT)
        docs = await self._messages.list_newest_first(match.id, limit=n, offset=skip)
        docs.reverse()

        senders = await self._profiles.get_many(doc.sender_id for doc in docs)
        out: List[MessageWithSender] = []
        for doc in docs:
            profile = senders.get(doc.sender_id)
            sender = (
                MessageSender(id=profile.id, name=profile.name, avatar_url=profile.avatar_url)
                if profile
                else MessageSender(id=doc.sender_id)
            )
            out.append(MessageWithSender(**doc.model_dump(), sender=sender))
        return out

    async def mark_read(self, message_id: str, user_id: str) -> MarkReadResponse:
        message = await self._messages.get_by_id(message_id)
        if not message:
            raise NotFound("Message not found")
        match = await self._matches.get_by_id(message.match_id)
        if not match or not match.has_participant(user_id):
            raise Forbidden(NOT_A_PARTICIPANT)
        if message.read_at is not None:
            return MarkReadResponse(read_at=message.read_at)

        updated = await self._messages.mark_read(message.id, utc_now())
        if not updated or updated.read_at is None:
            raise UpstreamFailure("Failed to mark as read")
        return MarkReadResponse(read_at=updated.read_at)


def get_conversation_gate() -> ConversationGate:
    db = get_db()
    return ConversationGate(MatchRepository(db), MessageRepository(db), ProfileRepository(db))


__all__ = [
    "ConversationGate",
    "NOT_A_PARTICIPANT",
    "get_conversation_gate",
    "to_message",
]
