"""
api/routes/v1/cart.py -- Shopping cart endpoints. All require a signed-in user.

Routes:
  GET    /api/v1/cart                -- caller's cart lines
  POST   /api/v1/cart                -- add one unit of an item
  DELETE /api/v1/cart/{cart_item_id} -- remove a line (owner only, no override)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.models import CartAdd, CartItemResponse
from auth.dependencies import get_current_user
from auth.errors import NotFound
from auth.models import User
from auth.permissions import authorize
from shop.store import ShopStore

router = APIRouter()


@router.get("/cart", response_model=list[CartItemResponse])
def list_cart(request: Request, current_user: User = Depends(get_current_user)) -> list[CartItemResponse]:
    shop: ShopStore = request.app.state.shop
    return [CartItemResponse.from_cart_item(c) for c in shop.list_cart(current_user.id)]


@router.post("/cart", response_model=CartItemResponse)
def add_to_cart(
    request: Request,
    body: CartAdd,
    current_user: User = Depends(get_current_user),
) -> CartItemResponse:
    """Add the item to the cart, or bump its quantity if it is already there."""
    shop: ShopStore = request.app.state.shop
    if shop.get_item(body.item_id) is None:
        raise NotFound("Item not found.")
    return CartItemResponse.from_cart_item(shop.add_to_cart(current_user.id, body.item_id))


@router.delete("/cart/{cart_item_id}", status_code=204)
def remove_from_cart(
    request: Request,
    cart_item_id: int,
    current_user: User = Depends(get_current_user),
) -> Response:
    shop: ShopStore = request.app.state.shop
    cart_item = shop.get_cart_item(cart_item_id)
    if cart_item is None:
        raise NotFound("No cart item found!")
    authorize(current_user, owner_id=cart_item.user_id)
    shop.remove_from_cart(cart_item_id)
    return Response(status_code=204)
