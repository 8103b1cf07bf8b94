"""Errors raised by the Mongo repositories.

Services catch these and translate them into the HTTP-facing errors in
``flame_api.errors``; repositories never raise those directly.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional


class RepositoryError(RuntimeError):
    """A store call failed for a reason other than a uniqueness violation."""


class DuplicateKeyRepositoryError(RepositoryError):
    """A write was rejected by one of the unique indexes from ``db.mongo``."""

    def __init__(self, message: str, *, details: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(message)
        details = details or {}
        self.key_pattern = dict(details.get("keyPattern") or {})


class NotFoundRepositoryError(RepositoryError):
    """An update targeted a document that does not exist."""


__all__ = [
    "DuplicateKeyRepositoryError",
    "NotFoundRepositoryError",
    "RepositoryError",
]
