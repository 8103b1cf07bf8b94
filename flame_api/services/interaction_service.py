from __future__ import annotations

import logging
from typing import List, Optional

from ..db import get_db
from ..errors import Conflict, Forbidden, InvalidOperation, NotFound, UpstreamFailure
from ..models.identifiers import utc_now
from ..models.interaction import (
    Interaction,
    InteractionCreate,
    InteractionDocument,
    InteractionResult,
    InteractionStats,
    InteractionType,
)
from ..models.match import MatchDocument
from ..repositories.exceptions import DuplicateKeyRepositoryError, RepositoryError
from ..repositories.interaction import InteractionRepository
from ..repositories.match import MatchRepository
from ..repositories.profile import ProfileRepository

LOGGER = logging.getLogger("uvicorn.error")

DUPLICATE_INTERACTION = "You have already interacted with this user in this way"


def to_interaction(doc: InteractionDocument) -> Interaction:
    return Interaction(**doc.model_dump())


class MatchPromoter:
    """Turns a pair of opposite-direction likes into exactly one match."""

    def __init__(self, interactions: InteractionRepository, matches: MatchRepository) -> None:
        self._interactions = interactions
        self._matches = matches

    async def promote(self, actor_id: str, target_id: str) -> Optional[MatchDocument]:
        """Run after actor's like on target has been stored.

        Returns the match when one exists for the pair as a result of this
        like, whether this call inserted it or a concurrent promotion did.
        """

        reciprocal = await self._interactions.find(
            user_id=target_id,
            target_user_id=actor_id,
            interaction_type=InteractionType.LIKE,
        )
        if not reciprocal:
            return None

        # Insert and let the unique pair index arbitrate; no check-then-insert.
        try:
            match = await self._matches.create(user_a=actor_id, user_b=target_id, matched_at=utc_now())
        except DuplicateKeyRepositoryError as exc:
            existing = await self._matches.get_by_pair(actor_id, target_id)
            LOGGER.info(
                "Match for %s/%s already existed (%s, key=%s)",
                actor_id,
                target_id,
                existing.id if existing else "unknown",
                ",".join(exc.key_pattern) or "?",
            )
            return existing
        except RepositoryError as exc:
            # The like is kept; a repeated like from either side re-runs promotion.
            raise UpstreamFailure("Failed to create match") from exc

        LOGGER.info("Match %s created for %s/%s", match.id, match.user_id_1, match.user_id_2)
        return match


class InteractionService:
    """Records directed interactions and reports whether a like produced a match."""

    def __init__(
        self,
        interactions: InteractionRepository,
        matches: MatchRepository,
        profiles: ProfileRepository,
    ) -> None:
        self._interactions = interactions
        self._matches = matches
        self._profiles = profiles
        self._promoter = MatchPromoter(interactions, matches)

    async def record(self, actor_id: str, payload: InteractionCreate) -> InteractionResult:
        target_id = payload.target_user_id
        if target_id == actor_id:
            raise InvalidOperation("Cannot interact with yourself")

        comment_text: Optional[str] = None
        if payload.interaction_type is InteractionType.COMMENT:
            comment_text = (payload.comment_text or "").strip()
            if not comment_text:
                raise InvalidOperation("comment_text is required for comment interactions")

        if not await self._profiles.exists(target_id):
            raise NotFound("Target user not found")

        try:
            doc = await self._interactions.create(
                user_id=actor_id,
                target_user_id=target_id,
                interaction_type=payload.interaction_type,
                comment_text=comment_text,
                created_at=utc_now(),
            )
        except DuplicateKeyRepositoryError:
            if payload.interaction_type is InteractionType.LIKE:
                # A repeated like still repairs a match lost after both likes were stored
                await self._promoter.promote(actor_id, target_id)
            raise Conflict(DUPLICATE_INTERACTION) from None
        except RepositoryError as exc:
            raise UpstreamFailure("Failed to create interaction") from exc

        matched = False
        if payload.interaction_type is InteractionType.LIKE:
            matched = await self._promoter.promote(actor_id, target_id) is not None

        return InteractionResult(interaction=to_interaction(doc), matched=matched)

    async def list_for_user(self, caller_id: str, user_id: str) -> List[Interaction]:
        if caller_id != user_id:
            raise Forbidden("You can only view your own interactions")
        docs = await self._interactions.list_by_user(user_id)
        return [to_interaction(doc) for doc in docs]

    async def stats(self, user_id: str) -> InteractionStats:
        return InteractionStats(
            likes=await self._interactions.count_received(user_id, InteractionType.LIKE),
            matches=await self._matches.count_for_user(user_id),
            comments=await self._interactions.count_received(user_id, InteractionType.COMMENT),
        )


def get_interaction_service() -> InteractionService:
    db = get_db()
    return InteractionService(
        InteractionRepository(db),
        MatchRepository(db),
        ProfileRepository(db),
    )


__all__ = [
    "DUPLICATE_INTERACTION",
    "InteractionService",
    "MatchPromoter",
    "get_interaction_service",
    "to_interaction",
]
