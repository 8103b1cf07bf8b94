from __future__ import annotations

from typing import List

from ..db import get_db
from ..errors import Forbidden, NotFound
from ..models.match import Match, MatchPartner, MatchSummary
from ..repositories.match import MatchRepository
from ..repositories.message import MessageRepository
from ..repositories.profile import ProfileRepository
from .conversation_service import NOT_A_PARTICIPANT


class MatchService:
    def __init__(
        self,
        matches: MatchRepository,
        messages: MessageRepository,
        profiles: ProfileRepository,
    ) -> None:
        self._matches = matches
        self._messages = messages
        self._profiles = profiles

    async def list_matches(self, user_id: str) -> List[MatchSummary]:
        matches = await self._matches.list_for_user(user_id)
        partners = await self._profiles.get_many(m.other_participant(user_id) for m in matches)

        out: List[MatchSummary] = []
        for match in matches:
            partner = partners.get(match.other_participant(user_id))
            out.append(
                MatchSummary(
                    **match.model_dump(),
                    other_user=MatchPartner(
                        id=partner.id,
                        name=partner.name,
                        age=partner.age,
                        avatar_url=partner.avatar_url,
                        bio=partner.bio,
                    )
                    if partner
                    else None,
                    message_count=await self._messages.count_for_match(match.id),
                )
            )
        return out

    async def get_match(self, match_id: str, user_id: str) -> Match:
        match = await self._matches.get_by_id(match_id)
        if not match:
            raise NotFound("Match not found")
        if not match.has_participant(user_id):
            raise Forbidden(NOT_A_PARTICIPANT)
        return Match(**match.model_dump())


def get_match_service() -> MatchService:
    db = get_db()
    return MatchService(MatchRepository(db), MessageRepository(db), ProfileRepository(db))


__all__ = ["MatchService", "get_match_service"]
