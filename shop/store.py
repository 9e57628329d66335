"""
shop/store.py -- SQLAlchemy-backed persistence layer for the catalog and carts.

Uses SQLAlchemy Core (not ORM) so the dataclasses in shop/models.py remain
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change.

Pattern: Repository + Data Mapper. ShopStore is the repository; the
_row_to_* functions are the mappers. Route handlers never touch SQL directly.

This store does not check who is asking. Callers run the owner/permission
checks first and only then call a mutating method.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = ShopStore()
    item_id = store.create_item(Item(title="Hat", description="Red", price=1500, user_id=uid))
    store.add_to_cart(uid, item_id)
    store.close()
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, UniqueConstraint, create_engine, event
from sqlalchemy.engine import Engine

from shop.models import CartItem, Item

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'shopkeep.db'}"

# Columns an item update may touch. id and user_id (ownership) are fixed.
_ITEM_MUTABLE = {"title", "description", "price", "image", "large_image"}

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_items = Table(
    "items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(255), nullable=False),
    Column("description", Text, nullable=False),
    Column("price", Integer, nullable=False),
    Column("image", Text),
    Column("large_image", Text),
    Column("user_id", String(32), nullable=False),
    Column("created_at", String(32), nullable=False),
)

_cart_items = Table(
    "cart_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(32), nullable=False),
    Column("item_id", Integer, nullable=False),
    Column("quantity", Integer, nullable=False, server_default="1"),
    UniqueConstraint("user_id", "item_id", name="uq_cart_user_item"),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ShopStore:
    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def create_item(self, item: Item) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(
                _items.insert().values(
                    title=item.title,
                    description=item.description,
                    price=item.price,
                    image=item.image,
                    large_image=item.large_image,
                    user_id=item.user_id,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_item(self, item_id: int) -> Optional[Item]:
        with self.engine.connect() as conn:
            row = conn.execute(_items.select().where(_items.c.id == item_id)).fetchone()
        return _row_to_item(row) if row is not None else None

    def list_items(self, skip: int = 0, limit: int = 50) -> list[Item]:
        """Return items newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(_items.select().order_by(_items.c.id.desc()).offset(skip).limit(limit)).fetchall()
        return [_row_to_item(r) for r in rows]

    def update_item(self, item_id: int, **fields) -> bool:
        """Update mutable item fields. Unknown keys raise ValueError.

        Returns True if a row was updated, False if item_id was not found.
        """
        unknown = set(fields) - _ITEM_MUTABLE
        if unknown:
            raise ValueError(f"Unknown item fields: {unknown!r}")
        if not fields:
            return self.get_item(item_id) is not None
        with self.engine.connect() as conn:
            result = conn.execute(_items.update().where(_items.c.id == item_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def delete_item(self, item_id: int) -> bool:
        """Delete an item and every cart line pointing at it."""
        with self.engine.connect() as conn:
            conn.execute(_cart_items.delete().where(_cart_items.c.item_id == item_id))
            result = conn.execute(_items.delete().where(_items.c.id == item_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Cart
    # ------------------------------------------------------------------

    def add_to_cart(self, user_id: str, item_id: int) -> CartItem:
        """Add one unit of item_id to the user's cart.

        Increments quantity when the item is already in the cart, otherwise
        creates a new line with quantity 1. Runs in one transaction.
        """
        with self.engine.begin() as conn:
            row = conn.execute(
                _cart_items.select().where((_cart_items.c.user_id == user_id) & (_cart_items.c.item_id == item_id))
            ).fetchone()
            if row is not None:
                conn.execute(
                    _cart_items.update()
                    .where(_cart_items.c.id == row.id)
                    .values(quantity=_cart_items.c.quantity + 1)
                )
                cart_id = row.id
            else:
                result = conn.execute(_cart_items.insert().values(user_id=user_id, item_id=item_id, quantity=1))
                cart_id = result.inserted_primary_key[0]
            fresh = conn.execute(_cart_items.select().where(_cart_items.c.id == cart_id)).fetchone()
        return _row_to_cart_item(fresh)

    def get_cart_item(self, cart_item_id: int) -> Optional[CartItem]:
        with self.engine.connect() as conn:
            row = conn.execute(_cart_items.select().where(_cart_items.c.id == cart_item_id)).fetchone()
        return _row_to_cart_item(row) if row is not None else None

    def list_cart(self, user_id: str) -> list[CartItem]:
        with self.engine.connect() as conn:
            rows = conn.execute(
                _cart_items.select().where(_cart_items.c.user_id == user_id).order_by(_cart_items.c.id)
            ).fetchall()
        return [_row_to_cart_item(r) for r in rows]

    def remove_from_cart(self, cart_item_id: int) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(_cart_items.delete().where(_cart_items.c.id == cart_item_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_item(row) -> Item:
    return Item(
        id=row.id,
        title=row.title,
        description=row.description,
        price=row.price,
        image=row.image,
        large_image=row.large_image,
        user_id=row.user_id,
        created_at=row.created_at,
    )


def _row_to_cart_item(row) -> CartItem:
    return CartItem(
        id=row.id,
        user_id=row.user_id,
        item_id=row.item_id,
        quantity=row.quantity,
    )
