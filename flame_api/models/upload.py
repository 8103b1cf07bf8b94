from pydantic import BaseModel


class StoredObject(BaseModel):
    """Result of writing a blob to the object store."""

    url: str
    key: str


class AvatarUploadResponse(BaseModel):
    url: str
    file_name: str


class SuccessResponse(BaseModel):
    success: bool = True


__all__ = ["AvatarUploadResponse", "StoredObject", "SuccessResponse"]
