from __future__ import annotations

from fastapi import Request

DEFAULT_REQUEST_EMAIL = "system@local"


def _header_email(request: Request) -> str | None:
    email = request.headers.get("X-User-Email") or request.headers.get("X-User")
    text = (email or "").strip().lower()
    return text or None


def get_request_email(request: Request) -> str:
    """Audit identity for created_by / last_changed_by columns."""
    return _header_email(request) or DEFAULT_REQUEST_EMAIL
