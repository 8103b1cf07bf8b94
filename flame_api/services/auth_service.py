from __future__ import annotations

import hashlib
import logging
import secrets
import time
from datetime import timedelta
from typing import Any, Dict, Optional

import bcrypt
import jwt

from ..config import get_settings
from ..db import get_db
from ..errors import Conflict, InvalidInput, Unauthorized, UpstreamFailure
from ..models.auth import (
    AuthResponse,
    AuthUser,
    CurrentUser,
    LoginRequest,
    RegisterRequest,
    SessionPayload,
)
from ..models.identifiers import utc_now
from ..repositories.exceptions import DuplicateKeyRepositoryError, RepositoryError
from ..repositories.identity import IdentityRepository, SessionRepository
from ..repositories.profile import ProfileRepository

LOGGER = logging.getLogger("uvicorn.error")

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_TOKEN = "Invalid token"
INVALID_REFRESH_TOKEN = "Invalid refresh token"


class AuthService:
    """Identity provider: credentials, bearer tokens and refresh sessions."""

    def __init__(
        self,
        identities: IdentityRepository,
        sessions: SessionRepository,
        profiles: ProfileRepository,
        *,
        jwt_secret: str,
        access_token_ttl: int,
        refresh_token_ttl: int,
    ) -> None:
        self._identities = identities
        self._sessions = sessions
        self._profiles = profiles
        self._jwt_secret = jwt_secret
        self._access_ttl = access_token_ttl
        self._refresh_ttl = refresh_token_ttl

    @staticmethod
    def hash_password(raw: str) -> str:
        salt = bcrypt.gensalt()
        return bcrypt.hashpw(raw.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def verify_password(raw: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(raw.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False

    @staticmethod
    def hash_refresh_token(token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()

    def issue_access_token(self, user: AuthUser, session_id: str) -> tuple[str, int]:
        now = int(time.time())
        expires_at = now + self._access_ttl
        payload = {
            "sub": user.id,
            "email": user.email,
            "sid": session_id,
            "iat": now,
            "exp": expires_at,
        }
        return jwt.encode(payload, self._jwt_secret, algorithm="HS256"), expires_at

    def decode_token(self, token: str) -> Optional[Dict[str, Any]]:
        try:
            return jwt.decode(token, self._jwt_secret, algorithms=["HS256"])
        except jwt.PyJWTError:
            return None

    async def _open_session(self, user: AuthUser) -> SessionPayload:
        refresh_token = secrets.token_urlsafe(48)
        now = utc_now()
        try:
            session = await self._sessions.create_session(
                user_id=user.id,
                refresh_token_hash=self.hash_refresh_token(refresh_token),
                created_at=now,
                expires_at=now + timedelta(seconds=self._refresh_ttl),
            )
        except RepositoryError as exc:
            raise UpstreamFailure("Failed to create session") from exc
        access_token, expires_at = self.issue_access_token(user, session.id)
        return SessionPayload(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self._access_ttl,
            expires_at=expires_at,
            user=user,
        )

    async def _rollback_registration(self, user_id: str) -> None:
        try:
            await self._profiles.delete_profile(user_id)
            await self._identities.delete(user_id)
        except Exception:  # pragma: no cover - best-effort cleanup
            LOGGER.exception("Failed to roll back registration for %s", user_id)

    async def register(self, payload: RegisterRequest) -> AuthResponse:
        email = str(payload.email).strip().lower()
        name = payload.name.strip()
        if not name:
            raise InvalidInput("Missing required fields")

        now = utc_now()
        try:
            identity = await self._identities.create_identity(
                email=email,
                password_hash=self.hash_password(payload.password),
                created_at=now,
            )
        except DuplicateKeyRepositoryError:
            raise Conflict("Email is already registered") from None
        except RepositoryError as exc:
            raise UpstreamFailure("Registration failed") from exc

        # Profile and details are created with the identity or not at all
        try:
            await self._profiles.create_profile(
                user_id=identity.id,
                email=email,
                name=name,
                age=payload.age,
                gender=(payload.gender or "").strip() or None,
                created_at=now,
            )
        except RepositoryError as exc:
            await self._rollback_registration(identity.id)
            raise UpstreamFailure("Failed to create profile") from exc
        try:
            await self._profiles.create_details(user_id=identity.id, created_at=now)
        except RepositoryError as exc:
            await self._rollback_registration(identity.id)
            raise UpstreamFailure("Failed to create profile details") from exc

        user = AuthUser(id=identity.id, email=identity.email)
        LOGGER.info("Registered user %s", user.id)
        return AuthResponse(user=user, session=await self._open_session(user))

    async def login(self, payload: LoginRequest) -> AuthResponse:
        identity = await self._identities.get_by_email(payload.email)
        # Same answer for unknown email and wrong password
        if not identity or not self.verify_password(payload.password, identity.password_hash):
            raise Unauthorized(INVALID_CREDENTIALS)
        user = AuthUser(id=identity.id, email=identity.email)
        return AuthResponse(user=user, session=await self._open_session(user))

    async def refresh(self, refresh_token: str) -> AuthResponse:
        token = (refresh_token or "").strip()
        if not token:
            raise InvalidInput("Refresh token is required")
        session = await self._sessions.get_by_refresh_hash(self.hash_refresh_token(token))
        if not session or session.revoked_at is not None or session.expires_at <= utc_now():
            raise Unauthorized(INVALID_REFRESH_TOKEN)
        # Rotation: the first caller to revoke wins, a replayed token loses
        if not await self._sessions.revoke(session.id, utc_now()):
            raise Unauthorized(INVALID_REFRESH_TOKEN)
        identity = await self._identities.get_by_id(session.user_id)
        if not identity:
            raise Unauthorized(INVALID_REFRESH_TOKEN)
        user = AuthUser(id=identity.id, email=identity.email)
        return AuthResponse(user=user, session=await self._open_session(user))

    async def logout(self, current: CurrentUser) -> None:
        await self._sessions.revoke(current.session_id, utc_now())

    async def authenticate(self, token: str) -> CurrentUser:
        """Resolve a bearer token to the caller, or raise ``Unauthorized``."""

        payload = self.decode_token(token) if token else None
        if not payload:
            raise Unauthorized(INVALID_TOKEN)
        user_id = str(payload.get("sub") or "").strip()
        session_id = str(payload.get("sid") or "").strip()
        if not user_id or not session_id:
            raise Unauthorized(INVALID_TOKEN)
        session = await self._sessions.get_by_id(session_id)
        if not session or session.user_id != user_id or session.revoked_at is not None:
            raise Unauthorized(INVALID_TOKEN)
        return CurrentUser(id=user_id, email=str(payload.get("email") or ""), session_id=session_id)


def get_auth_service() -> AuthService:
    settings = get_settings()
    db = get_db()
    return AuthService(
        IdentityRepository(db),
        SessionRepository(db),
        ProfileRepository(db),
        jwt_secret=settings.jwt_secret,
        access_token_ttl=settings.access_token_ttl,
        refresh_token_ttl=settings.refresh_token_ttl,
    )


__all__ = [
    "AuthService",
    "INVALID_CREDENTIALS",
    "INVALID_TOKEN",
    "get_auth_service",
]
