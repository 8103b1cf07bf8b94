from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .identifiers import UtcDatetime


class MatchDocument(BaseModel):
    """Symmetric match row; ``user_id_1`` always sorts before ``user_id_2``."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    user_id_1: str
    user_id_2: str
    matched_at: UtcDatetime

    def has_participant(self, user_id: str) -> bool:
        return user_id in (self.user_id_1, self.user_id_2)

    def other_participant(self, user_id: str) -> str:
        return self.user_id_2 if user_id == self.user_id_1 else self.user_id_1


class Match(BaseModel):
    id: str
    user_id_1: str
    user_id_2: str
    matched_at: UtcDatetime


class MatchPartner(BaseModel):
    id: str
    name: str
    age: int
    avatar_url: Optional[str] = None
    bio: str = ""


class MatchSummary(Match):
    other_user: Optional[MatchPartner] = None
    message_count: int = 0


__all__ = ["Match", "MatchDocument", "MatchPartner", "MatchSummary"]
