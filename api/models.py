"""
API request and response models for Shopkeep REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
shop/models.py, which own the internal domain representation. Route handlers
map between the two.

UserResponse deliberately has no password_hash or reset_token fields -- those
never leave the server.
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import Permission, User
from auth.tokens import MAX_PASSWORD_BYTES
from shop.models import CartItem, Item

# Simple shape check only; deliverability is the mail relay's problem.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _password_fits(value: str) -> str:
    # Passwords are stored exactly as typed; only the byte length is checked.
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded")
    return value


# ---------------------------------------------------------------------------
# Auth -- request models
#
# Whitespace is stripped from email and name only. Password fields are never
# touched, so signup, signin and reset all see the same secret.
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    email: str = Field(max_length=255)
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_BYTES)
    name: str = Field(max_length=255)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not re.match(EMAIL_PATTERN, value):
            raise ValueError("must be an email address")
        return value

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return _password_fits(value)


class SigninRequest(BaseModel):
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_BYTES)

    @field_validator("email")
    @classmethod
    def strip_email(cls, value: str) -> str:
        return value.strip()

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return _password_fits(value)


class RequestResetRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(min_length=1, max_length=255)


class ResetPasswordRequest(BaseModel):
    """Body for POST /auth/reset-password.

    The password comparison is done by PasswordResetFlow, not here, so a
    mismatch surfaces as the same validation_error code the flow uses.
    """

    reset_token: str = Field(min_length=1, max_length=128)
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_BYTES)
    confirm_password: str = Field(min_length=1, max_length=MAX_PASSWORD_BYTES)

    @field_validator("password", "confirm_password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return _password_fits(value)


class PermissionsUpdate(BaseModel):
    permissions: list[Permission] = Field(max_length=len(Permission))


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: str
    permissions: list[Permission]
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            permissions=list(user.permissions),
            created_at=user.created_at or "",
        )


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Catalog and cart
# ---------------------------------------------------------------------------


class ItemCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1, max_length=5000)
    price: int = Field(ge=0)
    image: Optional[str] = Field(default=None, max_length=2048)
    large_image: Optional[str] = Field(default=None, max_length=2048)


class ItemUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    price: Optional[int] = Field(default=None, ge=0)
    image: Optional[str] = Field(default=None, max_length=2048)
    large_image: Optional[str] = Field(default=None, max_length=2048)

    @field_validator("title", "description", "price")
    @classmethod
    def not_null(cls, value):
        # Omit the field to leave it alone; these columns cannot be cleared.
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class ItemResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    description: str
    price: int
    image: Optional[str]
    large_image: Optional[str]
    user_id: str
    created_at: str

    @classmethod
    def from_item(cls, item: Item) -> "ItemResponse":
        return cls(
            id=item.id,
            title=item.title,
            description=item.description,
            price=item.price,
            image=item.image,
            large_image=item.large_image,
            user_id=item.user_id,
            created_at=item.created_at,
        )


class CartAdd(BaseModel):
    item_id: int


class CartItemResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    item_id: int
    quantity: int

    @classmethod
    def from_cart_item(cls, cart_item: CartItem) -> "CartItemResponse":
        return cls(id=cart_item.id, item_id=cart_item.item_id, quantity=cart_item.quantity)


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
