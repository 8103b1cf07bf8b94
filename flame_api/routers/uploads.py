from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, File, UploadFile, status

from ..integrations.cloudinary import ObjectStorage, get_object_storage, get_status as get_cloud_status
from ..models.auth import CurrentUser
from ..models.profile import ProfilePhoto
from ..models.upload import AvatarUploadResponse, SuccessResponse
from ..services.upload_service import UploadService, build_upload_service
from .auth import require_current_user

router = APIRouter(prefix="/upload", tags=["upload"])


def get_upload_service(storage: ObjectStorage = Depends(get_object_storage)) -> UploadService:
    return build_upload_service(storage)


@router.get("/status")
async def storage_status() -> Dict:
    return get_cloud_status()


@router.post("/avatar", response_model=AvatarUploadResponse)
async def upload_avatar(
    file: Optional[UploadFile] = File(default=None),
    current: CurrentUser = Depends(require_current_user),
    service: UploadService = Depends(get_upload_service),
):
    return await service.upload_avatar(current.id, file)


@router.post("/profile-photos", response_model=List[ProfilePhoto], status_code=status.HTTP_201_CREATED)
async def upload_profile_photos(
    files: Optional[List[UploadFile]] = File(default=None),
    current: CurrentUser = Depends(require_current_user),
    service: UploadService = Depends(get_upload_service),
):
    return await service.upload_profile_photos(current.id, files)


@router.delete("/profile-photos/{photo_id}", response_model=SuccessResponse)
async def delete_profile_photo(
    photo_id: str,
    current: CurrentUser = Depends(require_current_user),
    service: UploadService = Depends(get_upload_service),
):
    await service.delete_profile_photo(current.id, photo_id.strip())
    return SuccessResponse()


__all__ = ["get_upload_service", "router"]
