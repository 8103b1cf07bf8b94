from typing import List

from fastapi import APIRouter, Depends, Query, Response, status

from ..models.auth import CurrentUser
from ..models.message import MarkReadResponse, Message, MessageCreate, MessageWithSender
from ..services.conversation_service import ConversationGate, get_conversation_gate
from ..utils.http import set_no_cache_headers
from .auth import require_current_user

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("/{match_id}", response_model=Message, status_code=status.HTTP_201_CREATED)
async def send_message(
    match_id: str,
    body: MessageCreate,
    current: CurrentUser = Depends(require_current_user),
    gate: ConversationGate = Depends(get_conversation_gate),
):
    return await gate.send_message(match_id.strip(), current.id, body.content)


@router.get("/{match_id}", response_model=List[MessageWithSender])
async def list_messages(
    match_id: str,
    response: Response,
    limit: int = Query(default=50),
    offset: int = Query(default=0),
    current: CurrentUser = Depends(require_current_user),
    gate: ConversationGate = Depends(get_conversation_gate),
):
    set_no_cache_headers(response)
    return await gate.list_messages(match_id.strip(), current.id, limit=limit, offset=offset)


@router.patch("/{message_id}/read", response_model=MarkReadResponse)
async def mark_read(
    message_id: str,
    current: CurrentUser = Depends(require_current_user),
    gate: ConversationGate = Depends(get_conversation_gate),
):
    return await gate.mark_read(message_id.strip(), current.id)


__all__ = ["router"]
