from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status

from ..config import get_settings
from ..integrations.cloudinary import ObjectStorage, get_object_storage
from ..models.auth import CurrentUser
from ..models.profile import (
    OwnProfile,
    ProfileDetails,
    ProfileDetailsUpdate,
    ProfileUpdate,
    PublicProfile,
)
from ..services.profile_service import (
    AccountService,
    ProfileService,
    get_account_service,
    get_profile_service,
)
from ..utils.http import not_modified, set_cache_headers, set_no_cache_headers, weak_etag
from .auth import require_current_user

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/me", response_model=OwnProfile)
async def get_me(
    response: Response,
    current: CurrentUser = Depends(require_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    set_no_cache_headers(response)
    return await service.get_own_profile(current.id)


@router.put("/me", response_model=OwnProfile)
async def update_me(
    patch: ProfileUpdate,
    current: CurrentUser = Depends(require_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    return await service.update_profile(current.id, patch)


@router.put("/me/details", response_model=ProfileDetails)
async def update_my_details(
    patch: ProfileDetailsUpdate,
    current: CurrentUser = Depends(require_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    return await service.update_details(current.id, patch)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_me(
    current: CurrentUser = Depends(require_current_user),
    service: AccountService = Depends(get_account_service),
    storage: ObjectStorage = Depends(get_object_storage),
):
    await service.delete_account(current.id, storage)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/explore/feed", response_model=List[PublicProfile])
async def explore_feed(
    limit: int = Query(default=10),
    offset: int = Query(default=0),
    exclude_interacted: Optional[bool] = Query(default=None),
    current: CurrentUser = Depends(require_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    return await service.explore_feed(
        current.id,
        limit=limit,
        offset=offset,
        exclude_interacted=exclude_interacted,
    )


@router.get("/{user_id}", response_model=PublicProfile)
async def get_profile(
    user_id: str,
    request: Request,
    response: Response,
    service: ProfileService = Depends(get_profile_service),
):
    profile = await service.get_public_profile(user_id.strip())
    tag = weak_etag(profile.model_dump(mode="json"))
    if not_modified(request, tag):
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers={"ETag": tag})
    set_cache_headers(response, get_settings().public_profile_max_age, etag=tag)
    return profile


__all__ = ["router"]
