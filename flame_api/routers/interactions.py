from typing import List

from fastapi import APIRouter, Depends, status

from ..models.auth import CurrentUser
from ..models.interaction import (
    Interaction,
    InteractionCreate,
    InteractionResult,
    InteractionStats,
)
from ..services.interaction_service import InteractionService, get_interaction_service
from .auth import require_current_user

router = APIRouter(prefix="/interactions", tags=["interactions"])


@router.post("", response_model=InteractionResult, status_code=status.HTTP_201_CREATED)
async def create_interaction(
    payload: InteractionCreate,
    current: CurrentUser = Depends(require_current_user),
    service: InteractionService = Depends(get_interaction_service),
):
    return await service.record(current.id, payload)


@router.get("/stats", response_model=InteractionStats)
async def interaction_stats(
    current: CurrentUser = Depends(require_current_user),
    service: InteractionService = Depends(get_interaction_service),
):
    return await service.stats(current.id)


@router.get("/user/{user_id}", response_model=List[Interaction])
async def list_user_interactions(
    user_id: str,
    current: CurrentUser = Depends(require_current_user),
    service: InteractionService = Depends(get_interaction_service),
):
    return await service.list_for_user(current.id, user_id.strip())


__all__ = ["router"]
