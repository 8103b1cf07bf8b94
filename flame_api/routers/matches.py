from typing import List

from fastapi import APIRouter, Depends, Response

from ..models.auth import CurrentUser
from ..models.match import Match, MatchSummary
from ..services.match_service import MatchService, get_match_service
from ..utils.http import set_no_cache_headers
from .auth import require_current_user

router = APIRouter(prefix="/matches", tags=["matches"])


@router.get("", response_model=List[MatchSummary])
async def list_matches(
    response: Response,
    current: CurrentUser = Depends(require_current_user),
    service: MatchService = Depends(get_match_service),
):
    set_no_cache_headers(response)
    return await service.list_matches(current.id)


@router.get("/{match_id}", response_model=Match)
async def get_match(
    match_id: str,
    current: CurrentUser = Depends(require_current_user),
    service: MatchService = Depends(get_match_service),
):
    return await service.get_match(match_id.strip(), current.id)


__all__ = ["router"]
