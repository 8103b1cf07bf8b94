from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .identifiers import UtcDatetime

DEFAULT_GENDER = "não-especificado"

DETAIL_DEFAULTS = {
    "height": None,
    "occupation": None,
    "company": None,
    "education": None,
    "educational_institution": None,
    "smoking": "Não",
    "drinking": "Não",
    "exercise": "Moderado",
    "diet": [],
    "pets": [],
    "children": "Talvez",
    "interests": [],
    "languages": [],
    "religion": None,
    "political_view": None,
    "life_desires": [],
    "relationship_intention": "relacionamento-serio",
}


class ProfileDocument(BaseModel):
    """Canonical profile row; ``id`` is the identity subject."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    email: str
    name: str
    age: int
    bio: str = ""
    gender: str = DEFAULT_GENDER
    gender_interest: str = DEFAULT_GENDER
    province: str = ""
    neighborhood: str = ""
    avatar_url: Optional[str] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime


class ProfileDetailsDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    user_id: str
    height: Optional[int] = None
    occupation: Optional[str] = None
    company: Optional[str] = None
    education: Optional[str] = None
    educational_institution: Optional[str] = None
    smoking: str = "Não"
    drinking: str = "Não"
    exercise: str = "Moderado"
    diet: List[str] = Field(default_factory=list)
    pets: List[str] = Field(default_factory=list)
    children: str = "Talvez"
    interests: List[str] = Field(default_factory=list)
    languages: List[str] = Field(default_factory=list)
    religion: Optional[str] = None
    political_view: Optional[str] = None
    life_desires: List[str] = Field(default_factory=list)
    relationship_intention: str = "relacionamento-serio"
    created_at: UtcDatetime
    updated_at: UtcDatetime


class ProfilePhotoDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    user_id: str
    photo_url: str
    storage_key: str
    order: int
    created_at: UtcDatetime


class ProfilePhoto(BaseModel):
    id: str
    user_id: str
    photo_url: str
    order: int
    created_at: UtcDatetime


class PublicPhoto(BaseModel):
    photo_url: str
    order: int


class PublicDetails(BaseModel):
    """Lifestyle fields visible to other users."""

    height: Optional[int] = None
    occupation: Optional[str] = None
    smoking: Optional[str] = None
    drinking: Optional[str] = None
    exercise: Optional[str] = None
    interests: List[str] = Field(default_factory=list)
    languages: List[str] = Field(default_factory=list)
    religion: Optional[str] = None
    life_desires: List[str] = Field(default_factory=list)
    relationship_intention: Optional[str] = None


class PublicProfile(BaseModel):
    """Projection served by the discovery feed and the public profile view."""

    id: str
    name: str
    age: int
    bio: str = ""
    gender: str = DEFAULT_GENDER
    province: str = ""
    neighborhood: str = ""
    avatar_url: Optional[str] = None
    profile_details: Optional[PublicDetails] = None
    profile_photos: List[PublicPhoto] = Field(default_factory=list)


class ProfileDetails(BaseModel):
    id: str
    user_id: str
    height: Optional[int] = None
    occupation: Optional[str] = None
    company: Optional[str] = None
    education: Optional[str] = None
    educational_institution: Optional[str] = None
    smoking: str
    drinking: str
    exercise: str
    diet: List[str] = Field(default_factory=list)
    pets: List[str] = Field(default_factory=list)
    children: str
    interests: List[str] = Field(default_factory=list)
    languages: List[str] = Field(default_factory=list)
    religion: Optional[str] = None
    political_view: Optional[str] = None
    life_desires: List[str] = Field(default_factory=list)
    relationship_intention: str
    created_at: UtcDatetime
    updated_at: UtcDatetime


class OwnProfile(BaseModel):
    """Full profile returned to its owner."""

    id: str
    email: str
    name: str
    age: int
    bio: str
    gender: str
    gender_interest: str
    province: str
    neighborhood: str
    avatar_url: Optional[str] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime
    profile_details: Optional[ProfileDetails] = None
    profile_photos: List[ProfilePhoto] = Field(default_factory=list)


class ProfileUpdate(BaseModel):
    """Mutable profile fields; omitted fields are left untouched."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=80)
    age: Optional[int] = Field(default=None, ge=18, le=120)
    bio: Optional[str] = Field(default=None, max_length=600)
    gender: Optional[str] = Field(default=None, max_length=40)
    gender_interest: Optional[str] = Field(default=None, max_length=40)
    province: Optional[str] = Field(default=None, max_length=80)
    neighborhood: Optional[str] = Field(default=None, max_length=80)


class ProfileDetailsUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    height: Optional[int] = Field(default=None, ge=50, le=280)
    occupation: Optional[str] = Field(default=None, max_length=120)
    company: Optional[str] = Field(default=None, max_length=120)
    education: Optional[str] = Field(default=None, max_length=120)
    educational_institution: Optional[str] = Field(default=None, max_length=160)
    smoking: Optional[str] = Field(default=None, max_length=40)
    drinking: Optional[str] = Field(default=None, max_length=40)
    exercise: Optional[str] = Field(default=None, max_length=40)
    diet: Optional[List[str]] = Field(default=None, max_length=20)
    pets: Optional[List[str]] = Field(default=None, max_length=20)
    children: Optional[str] = Field(default=None, max_length=40)
    interests: Optional[List[str]] = Field(default=None, max_length=30)
    languages: Optional[List[str]] = Field(default=None, max_length=20)
    religion: Optional[str] = Field(default=None, max_length=80)
    political_view: Optional[str] = Field(default=None, max_length=80)
    life_desires: Optional[List[str]] = Field(default=None, max_length=20)
    relationship_intention: Optional[str] = Field(default=None, max_length=60)


__all__ = [
    "DEFAULT_GENDER",
    "DETAIL_DEFAULTS",
    "OwnProfile",
    "ProfileDetails",
    "ProfileDetailsDocument",
    "ProfileDetailsUpdate",
    "ProfileDocument",
    "ProfilePhoto",
    "ProfilePhotoDocument",
    "ProfileUpdate",
    "PublicDetails",
    "PublicPhoto",
    "PublicProfile",
]
