"""
shop/models.py -- Domain dataclasses for the Shopkeep catalog and carts.

These are pure data containers with zero logic. Persistence lives in
shop/store.py; access rules (who may change what) live in the route layer
via auth.permissions.authorize().

id is None before the record is written to the database.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Item:
    """A catalog listing. user_id is the principal who created it (the owner)."""

    title: str
    description: str
    price: int  # cents
    user_id: str
    image: Optional[str] = None
    large_image: Optional[str] = None
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert


@dataclass
class CartItem:
    """One line in a user's cart. (user_id, item_id) is unique; quantity >= 1."""

    user_id: str
    item_id: int
    quantity: int = 1
    id: Optional[int] = None
