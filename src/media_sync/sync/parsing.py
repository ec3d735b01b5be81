from __future__ import annotations

from typing import Any, Optional

import httpx

# Errors a provider row can raise while being turned into a MediaItem.
ROW_ERRORS = (TypeError, ValueError, AttributeError, OverflowError)


def as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def as_text(value: Any) -> Optional[str]:
    """Plain strings and numbers as text; anything else (objects, lists, blanks) is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value
    return None


def error_detail(response: httpx.Response, limit: int = 200) -> str:
    """Best-effort human readable message from a provider error body."""
    try:
        payload = response.json()
    except ValueError:
        return response.text[:limit].strip()
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            return str(error.get("message") or "")[:limit]
        if error:
            return str(error)[:limit]
        message = payload.get("message")
        if message:
            return str(message)[:limit]
    return ""
