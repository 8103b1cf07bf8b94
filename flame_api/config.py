import os
from functools import lru_cache
from pathlib import Path as _Path
from typing import List

from pydantic import BaseModel, Field

# Fallback: attempt to load .env early if not already loaded
try:
    from dotenv import load_dotenv as _load_dotenv  # type: ignore
    _load_dotenv(dotenv_path=_Path(__file__).resolve().parent.parent / ".env", override=False)
except ImportError:
    pass


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_csv(*names: str, default: str) -> List[str]:
    raw = next((os.getenv(n) for n in names if os.getenv(n)), None) or default
    return [part.strip() for part in raw.split(",") if part.strip()]


def _app_env() -> str:
    return (os.getenv("APP_ENV") or os.getenv("NODE_ENV") or "development").strip().lower()


def _rate_limit_enabled_default() -> bool:
    explicit = os.getenv("RATE_LIMIT_ENABLED")
    if explicit is not None:
        return explicit.strip().lower() in ("1", "true", "yes", "on")
    return _app_env() == "production"


class Settings(BaseModel):
    # Support multiple common env var names for Mongo connection string
    mongo_uri: str = Field(
        default_factory=lambda: (
            os.getenv("MONGO_URI")
            or os.getenv("MONGODB_URI")
            or os.getenv("MONGO_URL")
            or ""
        )
    )
    mongo_db: str = Field(default_factory=lambda: os.getenv("MONGO_DB_NAME", "flame"))
    # Optional: provide a non-SRV fallback URI (e.g., mongodb://127.0.0.1:27017)
    mongo_alt_uri: str = Field(default_factory=lambda: os.getenv("MONGO_ALT_URI", ""))
    mongo_direct: bool = Field(default_factory=lambda: _env_flag("MONGO_DIRECT"))

    app_env: str = Field(default_factory=_app_env)
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "3000")))
    cors_origins: List[str] = Field(
        default_factory=lambda: _env_csv("FRONTEND_URL", "CORS_ORIGIN", default="http://localhost:5173")
    )

    # Identity
    jwt_secret: str = Field(default_factory=lambda: os.getenv("JWT_SECRET", "dev-secret-change-me"))
    access_token_ttl: int = Field(default_factory=lambda: int(os.getenv("ACCESS_TOKEN_TTL_SECONDS", "3600")))
    refresh_token_ttl: int = Field(
        default_factory=lambda: int(os.getenv("REFRESH_TOKEN_TTL_SECONDS", str(30 * 24 * 3600)))
    )

    # Rate limiting
    rate_limit_window_ms: int = Field(default_factory=lambda: int(os.getenv("RATE_LIMIT_WINDOW_MS", "900000")))
    rate_limit_max_requests: int = Field(default_factory=lambda: int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100")))
    rate_limit_enabled: bool = Field(default_factory=_rate_limit_enabled_default)

    # Uploads
    max_file_size: int = Field(default_factory=lambda: int(os.getenv("MAX_FILE_SIZE", str(5 * 1024 * 1024))))
    allowed_file_types: List[str] = Field(
        default_factory=lambda: _env_csv("ALLOWED_FILE_TYPES", default="image/jpeg,image/png,image/webp")
    )
    max_profile_photos_per_upload: int = Field(
        default_factory=lambda: int(os.getenv("MAX_PROFILE_PHOTOS_PER_UPLOAD", "10"))
    )
    avatar_folder: str = Field(default_factory=lambda: os.getenv("CLOUDINARY_AVATAR_FOLDER", "flame/avatars"))
    profile_photo_folder: str = Field(
        default_factory=lambda: os.getenv("CLOUDINARY_PHOTO_FOLDER", "flame/profile-photos")
    )

    # Discovery feed
    feed_exclude_interacted: bool = Field(default_factory=lambda: _env_flag("FEED_EXCLUDE_INTERACTED"))

    # HTTP
    public_profile_max_age: int = Field(default_factory=lambda: int(os.getenv("PUBLIC_PROFILE_MAX_AGE", "300")))
    slow_request_ms: int = Field(default_factory=lambda: int(os.getenv("SLOW_REQUEST_MS", "800")))

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
