"""
auth/permissions.py -- Permission evaluation and owner-or-permission checks.

has_permission() is the single place that decides whether a principal's
permission set satisfies a requirement. Semantics are OR: holding any one of
the required permissions is enough. An empty requirement or an empty
permission set never authorizes (fail closed).

authorize() adds the ownership rule used by item and cart mutations: the
caller passes when they own the resource OR hold one of the override
permissions. Routes must call it after loading the resource and before
writing anything.

Layer rule: no imports from api/, core/, or shop/.
"""

from __future__ import annotations

from collections.abc import Iterable

from auth.errors import Forbidden
from auth.models import Permission, User


def _granted(user: User | None, required: Iterable[Permission]) -> bool:
    held = {Permission(p) for p in (getattr(user, "permissions", None) or [])}
    wanted = {Permission(p) for p in required}
    return bool(held & wanted)


def has_permission(user: User | None, required: Iterable[Permission]) -> None:
    """Raise Forbidden unless the user holds at least one of the required permissions."""
    if not _granted(user, required):
        raise Forbidden()


def authorize(
    user: User,
    any_of: Iterable[Permission] = (),
    owner_id: str | None = None,
) -> None:
    """Allow the resource owner, or anyone holding one of any_of.

    owner_id=None means the resource has no owner rule; only permissions count.
    """
    if owner_id is not None and user.id is not None and owner_id == user.id:
        return
    if _granted(user, any_of):
        return
    raise Forbidden()
