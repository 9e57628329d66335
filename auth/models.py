"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in shop/models.py -- dataclasses own domain shape; stores and routes do the
work.

Layer rule: no imports from api/, core/, or shop/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Permission(str, Enum):
    ADMIN = "ADMIN"
    USER = "USER"
    ITEMCREATE = "ITEMCREATE"
    ITEMUPDATE = "ITEMUPDATE"
    ITEMDELETE = "ITEMDELETE"
    PERMISSIONUPDATE = "PERMISSIONUPDATE"


@dataclass
class User:
    """A principal: an identity that can sign in.

    email is always stored lowercased; the store enforces uniqueness.

    reset_token / reset_token_expiry are either both None or both set. The
    expiry is epoch seconds so the store can compare it in SQL. Only
    UserStore.set_reset_token() and UserStore.consume_reset_token() write
    them, and each writes both columns in one statement.

    id is None before the record is written to the database.
    """

    email: str
    name: str
    password_hash: str
    permissions: list[Permission] = field(default_factory=lambda: [Permission.USER])
    id: str | None = None
    reset_token: str | None = None
    reset_token_expiry: float | None = None
    created_at: str | None = None
