from pathlib import Path as _Path

# Load .env ASAP to ensure settings see env vars before any imports cache them
try:
    from dotenv import load_dotenv as _load_dotenv  # type: ignore
    _load_dotenv(dotenv_path=_Path(__file__).resolve().parent.parent / ".env", override=False)
except ImportError:
    pass

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import get_settings
from .db import close_mongo_connection, connect_to_mongo, is_connected
from .errors import AppError
from .middleware import install_middleware
from .routers import auth, interactions, matches, messages, profiles, uploads

LOGGER = logging.getLogger("uvicorn.error")


def _log_storage_status() -> None:
    from .integrations.cloudinary import get_status as cld_status, is_enabled as cld_enabled

    if not cld_enabled():
        LOGGER.warning("[Cloudinary] not configured; uploads will fail")
        return
    info = cld_status() or {}
    LOGGER.info(
        "[Cloudinary] configured=%s cloud=%s via_url=%s",
        bool(info.get("configured")),
        info.get("cloudName") or "unknown",
        "yes" if info.get("usingUrl") else "no",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_to_mongo()
    _log_storage_status()
    settings = get_settings()
    LOGGER.info("Flame API ready (env=%s, cors=%s)", settings.app_env, ",".join(settings.cors_origins))
    yield
    await close_mongo_connection()


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "header")]
    field = ".".join(loc)
    msg = str(first.get("msg") or "invalid value")
    return f"{field}: {msg}" if field else msg


def install_error_handlers(app: FastAPI) -> None:
    """Render every failure as ``{"error": "<message>"}``."""

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _validation_message(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = "Route not found"
        else:
            message = str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        LOGGER.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Flame API", default_response_class=ORJSONResponse, lifespan=lifespan)

    install_middleware(app, settings)
    install_error_handlers(app)

    app.include_router(auth.router, prefix="/api")
    app.include_router(profiles.router, prefix="/api")
    app.include_router(interactions.router, prefix="/api")
    app.include_router(matches.router, prefix="/api")
    app.include_router(messages.router, prefix="/api")
    app.include_router(uploads.router, prefix="/api")

    @app.get("/health")
    async def health():
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.get("/api/health/db")
    async def db_health():
        return {
            "mongo": "connected" if is_connected() else "disconnected",
            "db": get_settings().mongo_db,
        }

    return app


app = create_app()

__all__ = ["app", "create_app"]
