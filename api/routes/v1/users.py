"""
api/routes/v1/users.py -- User administration endpoints.

Routes:
  GET /api/v1/users                       -- list all users
  PUT /api/v1/users/{user_id}/permissions -- replace a user's permission set

Both require ADMIN or PERMISSIONUPDATE.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from api.models import PermissionsUpdate, UserResponse
from auth.dependencies import require_permission
from auth.errors import NotFound
from auth.models import Permission, User
from auth.store import UserStore

logger = logging.getLogger("shopkeep.api.users")

router = APIRouter()

_can_manage_users = require_permission(Permission.ADMIN, Permission.PERMISSIONUPDATE)


@router.get("/users", response_model=list[UserResponse])
def list_users(request: Request, current_user: User = Depends(_can_manage_users)) -> list[UserResponse]:
    user_store: UserStore = request.app.state.user_store
    return [UserResponse.from_user(u) for u in user_store.list_users()]


@router.put("/users/{user_id}/permissions", response_model=UserResponse)
def update_permissions(
    request: Request,
    user_id: str,
    body: PermissionsUpdate,
    current_user: User = Depends(_can_manage_users),
) -> UserResponse:
    """Replace the target user's permissions with exactly the given set."""
    user_store: UserStore = request.app.state.user_store
    if not user_store.update_permissions(user_id, body.permissions):
        raise NotFound("User not found.")
    updated = user_store.get_by_id(user_id)
    if updated is None:
        raise NotFound("User not found.")
    logger.info(
        "User %s set permissions of %s to %s",
        current_user.id,
        user_id,
        [p.value for p in updated.permissions],
    )
    return UserResponse.from_user(updated)
