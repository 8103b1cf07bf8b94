from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .identifiers import UtcDatetime

MAX_MESSAGE_LENGTH = 5000


class MessageCreate(BaseModel):
    """Body of ``POST /api/messages/{match_id}``.

    Blank content is rejected by the conversation gate rather than here so the
    caller gets a specific error message instead of a schema failure.
    """

    content: str = Field(default="", max_length=MAX_MESSAGE_LENGTH)


class MessageDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    match_id: str
    sender_id: str
    content: str
    read_at: Optional[UtcDatetime] = None
    created_at: UtcDatetime


class MessageSender(BaseModel):
    id: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None


class Message(BaseModel):
    id: str
    match_id: str
    sender_id: str
    content: str
    read_at: Optional[UtcDatetime] = None
    created_at: UtcDatetime


class MessageWithSender(Message):
    sender: Optional[MessageSender] = None


class MarkReadResponse(BaseModel):
    success: bool = True
    read_at: UtcDatetime


__all__ = [
    "MAX_MESSAGE_LENGTH",
    "MarkReadResponse",
    "Message",
    "MessageCreate",
    "MessageDocument",
    "MessageSender",
    "MessageWithSender",
]
