from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .identifiers import UtcDatetime


class RegisterRequest(BaseModel):
    """Payload for creating a new account via the public sign-up flow."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    name: str = Field(min_length=1, max_length=80)
    age: int = Field(ge=18, le=120)
    gender: Optional[str] = Field(default=None, max_length=40)


class LoginRequest(BaseModel):
    """Credentials provided during login."""

    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class IdentityDocument(BaseModel):
    """Credential record stored in the identities collection."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    email: str
    password_hash: str
    created_at: UtcDatetime


class SessionDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    user_id: str
    refresh_token_hash: str
    created_at: UtcDatetime
    expires_at: UtcDatetime
    revoked_at: Optional[UtcDatetime] = None


class AuthUser(BaseModel):
    id: str
    email: str


class CurrentUser(AuthUser):
    """Authenticated caller resolved from a bearer token."""

    session_id: str


class SessionPayload(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    expires_at: int
    user: AuthUser


class AuthResponse(BaseModel):
    """Response envelope for register/login/refresh."""

    user: AuthUser
    session: SessionPayload


class VerifyResponse(BaseModel):
    authenticated: bool = True
    user: AuthUser


class MessageResponse(BaseModel):
    message: str


__all__ = [
    "AuthResponse",
    "AuthUser",
    "CurrentUser",
    "IdentityDocument",
    "LoginRequest",
    "MessageResponse",
    "RefreshRequest",
    "RegisterRequest",
    "SessionDocument",
    "SessionPayload",
    "VerifyResponse",
]
