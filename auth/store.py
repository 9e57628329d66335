"""
auth/store.py -- SQLAlchemy Core persistence layer for principals.

Pattern: Repository + Data Mapper (same as shop/store.py).
UserStore is the repository; _row_to_user is the mapper. Route and service
code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  consume_reset_token() is the only writer that clears reset fields and it
  does so in the same conditional UPDATE that writes the new password hash.
  The WHERE clause re-checks token and expiry, so when two requests race with
  the same token exactly one UPDATE matches a row; the other sees rowcount 0.

  email is UNIQUE at the SQL level. create_user() lets IntegrityError
  propagate; SessionManager.signup() turns it into a ValidationError.

Layer rule: no imports from api/ or shop/.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import Column, Float, MetaData, String, Table, Text, create_engine, event, select
from sqlalchemy.engine import Engine

from auth.models import Permission, User

logger = logging.getLogger("shopkeep.auth.store")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'shopkeep.db'}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(32), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("name", String(255), nullable=False, server_default=""),
    Column("password_hash", Text, nullable=False),
    Column("permissions", Text, nullable=False),  # JSON array of Permission values
    Column("reset_token", String(64), index=True),
    Column("reset_token_expiry", Float),  # epoch seconds
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block behind a writer.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _dump_permissions(permissions: Iterable[Permission]) -> str:
    # Deduplicate while keeping first-seen order
    seen: list[str] = []
    for p in permissions:
        value = Permission(p).value
        if value not in seen:
            seen.append(value)
    return json.dumps(seen)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore()
        user_id = store.create_user(User(email="a@x.com", name="A", password_hash=hash_password("pw")))
        user = store.get_by_email("a@x.com")
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> str:
        """Insert a new user and return its assigned ID.

        The email is lowercased before insert. Raises
        sqlalchemy.exc.IntegrityError if the email is already registered.
        """
        user_id = uuid.uuid4().hex
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=user_id,
                    email=user.email.strip().lower(),
                    name=user.name,
                    password_hash=user.password_hash,
                    permissions=_dump_permissions(user.permissions),
                    reset_token=None,
                    reset_token_expiry=None,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
        return user_id

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by email (case-insensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email.strip().lower())).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: str) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        """Return all users ordered by email."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.email)).fetchall()
        return [_row_to_user(r) for r in rows]

    def update_permissions(self, user_id: str, permissions: Iterable[Permission]) -> bool:
        """Replace the user's permission set. Returns False if user_id was not found."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == user_id).values(permissions=_dump_permissions(permissions))
            )
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Reset tokens
    # ------------------------------------------------------------------

    def set_reset_token(self, user_id: str, token: str, expiry: float) -> bool:
        """Store a reset token and its expiry, replacing any previous token.

        Overwriting keeps at most one active token per user.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == user_id).values(reset_token=token, reset_token_expiry=expiry)
            )
            conn.commit()
        return result.rowcount > 0

    def consume_reset_token(self, token: str, password_hash: str, now: float) -> User | None:
        """Swap in a new password hash if `token` is live, clearing the reset fields.

        Returns the updated User, or None when the token is unknown, expired,
        or was consumed by a concurrent request first.
        """
        if not token:
            return None
        live = (_users.c.reset_token == token) & (_users.c.reset_token_expiry > now)
        with self.engine.connect() as conn:
            row = conn.execute(select(_users.c.id).where(live)).fetchone()
        if row is None:
            return None
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where((_users.c.id == row.id) & live)
                .values(password_hash=password_hash, reset_token=None, reset_token_expiry=None)
            )
            conn.commit()
        if result.rowcount == 0:
            logger.info("Reset token for user %s was consumed concurrently", row.id)
            return None
        return self.get_by_id(row.id)

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        name=row.name,
        password_hash=row.password_hash,
        permissions=[Permission(p) for p in json.loads(row.permissions or "[]")],
        reset_token=row.reset_token,
        reset_token_expiry=row.reset_token_expiry,
        created_at=row.created_at,
    )
