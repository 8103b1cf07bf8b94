from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .identifiers import EntityId, UtcDatetime


class InteractionType(str, Enum):
    LIKE = "like"
    PASS = "pass"
    FAVORITE = "favorite"
    ARCHIVE = "archive"
    COMMENT = "comment"


class InteractionCreate(BaseModel):
    """Body of ``POST /api/interactions``."""

    model_config = ConfigDict(str_strip_whitespace=True)

    target_user_id: EntityId
    interaction_type: InteractionType
    comment_text: Optional[str] = Field(default=None, max_length=1000)


class InteractionDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    user_id: str
    target_user_id: str
    interaction_type: InteractionType
    comment_text: Optional[str] = None
    created_at: UtcDatetime


class Interaction(BaseModel):
    id: str
    user_id: str
    target_user_id: str
    interaction_type: InteractionType
    comment_text: Optional[str] = None
    created_at: UtcDatetime


class InteractionResult(BaseModel):
    interaction: Interaction
    matched: bool = False


class InteractionStats(BaseModel):
    likes: int = 0
    matches: int = 0
    comments: int = 0


__all__ = [
    "Interaction",
    "InteractionCreate",
    "InteractionDocument",
    "InteractionResult",
    "InteractionStats",
    "InteractionType",
]
