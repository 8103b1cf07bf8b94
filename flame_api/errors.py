"""Error taxonomy surfaced to API clients as ``{"error": "<message>"}``."""

from __future__ import annotations


class AppError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(AppError):
    """Missing or malformed fields, self-interaction, empty message."""

    status_code = 400
    default_message = "Invalid input"


# Interaction Recorder rejects self-targets and unknown kinds with this name.
InvalidOperation = InvalidInput


class Unauthorized(AppError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(AppError):
    status_code = 403
    default_message = "Unauthorized"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Conflict"


class UpstreamFailure(AppError):
    """A store or object-storage call failed for reasons other than a constraint."""

    status_code = 500
    default_message = "Upstream service failure"


__all__ = [
    "AppError",
    "Conflict",
    "Forbidden",
    "InvalidInput",
    "InvalidOperation",
    "NotFound",
    "Unauthorized",
    "UpstreamFailure",
]
