import hashlib
import json
from typing import Any, Optional

from fastapi import Request, Response

__all__ = ["weak_etag", "set_cache_headers", "set_no_cache_headers", "not_modified"]


def weak_etag(payload: Any) -> str:
    """Return a deterministic weak ETag for a JSON-serializable payload or string.
    Accepts dict/list/str/bytes; dict/list will be normalized to a compact JSON string with sorted keys.
    """
    if isinstance(payload, (dict, list)):
        raw = json.dumps(payload, separators=(",", ":"), sort_keys=True, default=str)
    elif isinstance(payload, (bytes, bytearray)):
        raw = bytes(payload).decode("utf-8", errors="ignore")
    else:
        raw = str(payload)
    return 'W/"' + hashlib.md5(raw.encode("utf-8")).hexdigest() + '"'


def set_cache_headers(response: Response, max_age: int = 3600, etag: Optional[str] = None) -> None:
    response.headers["Cache-Control"] = f"public, max-age={max(0, int(max_age))}, must-revalidate"
    if etag:
        response.headers["ETag"] = etag


def set_no_cache_headers(response: Response) -> None:
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"


def not_modified(request: Request, etag: str) -> bool:
    inm = request.headers.get("if-none-match")
    if not inm:
        return False
    return etag in [tag.strip() for tag in inm.split(",")]
