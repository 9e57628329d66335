"""
api/routes/v1/items.py -- Catalog endpoints.

Routes:
  GET    /api/v1/items            -- list items (public)
  GET    /api/v1/items/{item_id}  -- item detail (public)
  POST   /api/v1/items            -- create item; owner is the caller
  PATCH  /api/v1/items/{item_id}  -- owner, or ADMIN / ITEMUPDATE
  DELETE /api/v1/items/{item_id}  -- owner, or ADMIN / ITEMDELETE

Mutations load the item, run authorize(), and only then write.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, Response

from api.models import ItemCreate, ItemResponse, ItemUpdate
from auth.dependencies import get_current_user
from auth.errors import NotFound
from auth.models import Permission, User
from auth.permissions import authorize
from shop.models import Item
from shop.store import ShopStore

router = APIRouter()


def _load_item(store: ShopStore, item_id: int) -> Item:
    item = store.get_item(item_id)
    if item is None:
        raise NotFound("Item not found.")
    return item


@router.get("/items", response_model=list[ItemResponse])
def list_items(
    request: Request,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
) -> list[ItemResponse]:
    shop: ShopStore = request.app.state.shop
    return [ItemResponse.from_item(i) for i in shop.list_items(skip=skip, limit=limit)]


@router.get("/items/{item_id}", response_model=ItemResponse)
def get_item(request: Request, item_id: int) -> ItemResponse:
    shop: ShopStore = request.app.state.shop
    return ItemResponse.from_item(_load_item(shop, item_id))


@router.post("/items", response_model=ItemResponse, status_code=201)
def create_item(
    request: Request,
    body: ItemCreate,
    current_user: User = Depends(get_current_user),
) -> ItemResponse:
    shop: ShopStore = request.app.state.shop
    item_id = shop.create_item(
        Item(
            title=body.title,
            description=body.description,
            price=body.price,
            image=body.image,
            large_image=body.large_image,
            user_id=current_user.id,
        )
    )
    return ItemResponse.from_item(_load_item(shop, item_id))


@router.patch("/items/{item_id}", response_model=ItemResponse)
def update_item(
    request: Request,
    item_id: int,
    body: ItemUpdate,
    current_user: User = Depends(get_current_user),
) -> ItemResponse:
    shop: ShopStore = request.app.state.shop
    item = _load_item(shop, item_id)
    authorize(current_user, any_of=(Permission.ADMIN, Permission.ITEMUPDATE), owner_id=item.user_id)
    shop.update_item(item_id, **body.model_dump(exclude_unset=True))
    return ItemResponse.from_item(_load_item(shop, item_id))


@router.delete("/items/{item_id}", status_code=204)
def delete_item(
    request: Request,
    item_id: int,
    current_user: User = Depends(get_current_user),
) -> Response:
    shop: ShopStore = request.app.state.shop
    item = _load_item(shop, item_id)
    authorize(current_user, any_of=(Permission.ADMIN, Permission.ITEMDELETE), owner_id=item.user_id)
    shop.delete_item(item_id)
    return Response(status_code=204)
