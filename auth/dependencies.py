"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two credential sources are checked in priority order:
  1. Session cookie ("token") -- set by signup/signin/reset.
  2. Authorization: Bearer <token> header -- API clients holding the same JWT.

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises Unauthenticated.
require_permission(*perms) wraps get_current_user() and raises Forbidden
unless the user holds at least one of perms.

Ownership checks need the resource loaded first, so they live in the route
body via auth.permissions.authorize().

Layer rule: no imports from core/ or shop/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.errors import Unauthenticated
from auth.models import Permission, User
from auth.permissions import has_permission
from auth.session import SessionManager
from auth.tokens import SESSION_COOKIE


def _request_token(request: Request) -> str | None:
    token: str | None = request.cookies.get(SESSION_COOKIE)
    if not token:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:]
    return token or None


def try_get_current_user(request: Request) -> User | None:
    """Resolve the request's principal. Never raises on a bad or missing token."""
    sessions: SessionManager = request.app.state.sessions
    return sessions.current_user(_request_token(request))


def get_current_user(request: Request) -> User:
    """Require authentication.

    Use as a FastAPI dependency:
        @router.post("/items")
        def route(user: User = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise Unauthenticated()
    return user


def require_permission(*permissions: Permission):
    """Dependency factory: require any one of `permissions`.

    Use as a FastAPI dependency:
        @router.get("/users")
        def route(user: User = Depends(require_permission(Permission.ADMIN))): ...
    """

    def _dep(request: Request) -> User:
        user = get_current_user(request)
        has_permission(user, permissions)
        return user

    return _dep
