from __future__ import annotations

import logging
import math
import time
from typing import Dict, Tuple

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from .config import Settings

LOGGER = logging.getLogger("uvicorn.error")

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


class RateLimiter:
    """Very small in-memory fixed-window rate limiter keyed by client."""

    def __init__(self, window_seconds: float, max_attempts: int) -> None:
        self._window = float(window_seconds)
        self._max_attempts = max_attempts
        self._state: Dict[str, Dict[str, float]] = {}

    @property
    def limit(self) -> int:
        return self._max_attempts

    def increment(self, key: str) -> Tuple[bool, int, float]:
        """Count a hit; returns (allowed, remaining, reset_at)."""
        now = time.time()
        record = self._state.get(key)
        if not record or record.get("expires", 0) <= now:
            self._sweep(now)
            record = {"count": 0.0, "expires": now + self._window}
        record["count"] = record.get("count", 0.0) + 1.0
        self._state[key] = record
        remaining = max(0, self._max_attempts - int(record["count"]))
        return record["count"] <= self._max_attempts, remaining, record["expires"]

    def _sweep(self, now: float) -> None:
        expired = [k for k, v in self._state.items() if v.get("expires", 0) <= now]
        for k in expired:
            self._state.pop(k, None)


def _client_key(request: Request) -> str:
    # Forwarded headers are only trusted once uvicorn's --proxy-headers has
    # rewritten request.client from an allowed proxy.
    return request.client.host if request.client else "unknown"


def install_middleware(app: FastAPI, settings: Settings) -> None:
    """Register CORS, compression, security headers, rate limiting and request timing."""

    # Starlette runs the last-added middleware first, so rate limiting sits
    # inside the security-header and timing layers.
    if settings.rate_limit_enabled:
        limiter = RateLimiter(settings.rate_limit_window_ms / 1000.0, settings.rate_limit_max_requests)

        @app.middleware("http")
        async def rate_limit(request: Request, call_next):
            if request.method == "OPTIONS" or request.url.path == "/health":
                return await call_next(request)
            allowed, remaining, reset_at = limiter.increment(_client_key(request))
            headers = {
                "RateLimit-Limit": str(limiter.limit),
                "RateLimit-Remaining": str(remaining),
                "RateLimit-Reset": str(max(0, math.ceil(reset_at - time.time()))),
            }
            if not allowed:
                return JSONResponse(status_code=429, content={"error": RATE_LIMIT_MESSAGE}, headers=headers)
            response = await call_next(request)
            response.headers.update(headers)
            return response

    hsts = settings.is_production

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Cross-Origin-Resource-Policy", "cross-origin")
        response.headers.setdefault("X-DNS-Prefetch-Control", "off")
        if hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=15552000; includeSubDomains")
        return response

    slow_ms = settings.slow_request_ms

    @app.middleware("http")
    async def log_slow_requests(request: Request, call_next):
        t0 = time.perf_counter()
        response = await call_next(request)
        dt = (time.perf_counter() - t0) * 1000
        if dt >= slow_ms:
            LOGGER.warning(
                "[perf] slow request %s %s %dms status=%s",
                request.method,
                request.url.path,
                int(dt),
                response.status_code,
            )
        return response

    app.add_middleware(GZipMiddleware, minimum_size=512)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["ETag", "RateLimit-Limit", "RateLimit-Remaining", "RateLimit-Reset"],
        allow_credentials=True,
    )


__all__ = ["RATE_LIMIT_MESSAGE", "RateLimiter", "install_middleware"]
