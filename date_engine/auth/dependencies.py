from __future__ import annotations

from fastapi import HTTPException, Request


def get_bearer_token(request: Request) -> str | None:
    """Return the token from ``Authorization: Bearer <token>``, or ``None``."""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_authorization(request: Request) -> str:
    """Raise 401 when the caller sent no bearer token."""
    token = get_bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Authorization required")
    return token
