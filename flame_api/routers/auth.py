from fastapi import APIRouter, Depends, Header, status

from ..errors import Unauthorized
from ..models.auth import (
    AuthResponse,
    AuthUser,
    CurrentUser,
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    VerifyResponse,
)
from ..services.auth_service import AuthService, get_auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


def _extract_token(authorization: str) -> str:
    if not authorization.lower().startswith("bearer "):
        raise Unauthorized("No authorization token")
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise Unauthorized("No authorization token")
    return token


async def require_current_user(
    authorization: str = Header(default=""),
    service: AuthService = Depends(get_auth_service),
) -> CurrentUser:
    """Dependency resolving the bearer token to the calling user."""
    if not authorization:
        raise Unauthorized("No authorization token")
    return await service.authenticate(_extract_token(authorization))


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
):
    return await service.register(body)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    service: AuthService = Depends(get_auth_service),
):
    return await service.login(body)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current: CurrentUser = Depends(require_current_user),
    service: AuthService = Depends(get_auth_service),
):
    await service.logout(current)
    return MessageResponse(message="Logged out successfully")


@router.post("/refresh", response_model=AuthResponse)
async def refresh(
    body: RefreshRequest,
    service: AuthService = Depends(get_auth_service),
):
    return await service.refresh(body.refresh_token)


@router.post("/verify", response_model=VerifyResponse)
async def verify(current: CurrentUser = Depends(require_current_user)):
    return VerifyResponse(user=AuthUser(id=current.id, email=current.email))


__all__ = ["require_current_user", "router"]
