"""
auth/tokens.py -- Password hashing, session JWTs, reset tokens, and the session cookie.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry user_id and an explicit exp claim
       set to the same lifetime as the cookie Max-Age, so a stolen token stops
       working server-side when the cookie would have expired client-side.
       Any decode failure raises InvalidToken; SessionManager turns that into
       "anonymous".

  Passwords: bcrypt directly (no passlib wrapper). The cost factor comes from
       Settings.bcrypt_rounds (default 10).

  Reset tokens: secrets.token_hex(28) gives 224 bits of entropy as 56 hex
       characters. They are only ever compared by equality inside a single
       conditional UPDATE (see UserStore.consume_reset_token).

  Settings are passed in by the caller. Nothing here reads configuration at
  import time.

Layer rule: no imports from api/ or shop/. Import from core/ is allowed --
core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import secrets
import time
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Optional, Protocol

import bcrypt
from jose import JWTError, jwt

from auth.errors import InvalidToken, ValidationError

if TYPE_CHECKING:
    from core.config import Settings

_ALGORITHM = "HS256"

SESSION_COOKIE = "token"
RESET_TOKEN_BYTES = 28

# bcrypt refuses longer secrets rather than truncating them.
MAX_PASSWORD_BYTES = 72


class CookieWriter(Protocol):
    """Anything that can set and delete cookies, e.g. a Starlette Response."""

    def set_cookie(
        self,
        key: str,
        value: str = "",
        max_age: Optional[int] = None,
        *,
        httponly: bool = False,
        samesite: Optional[str] = "lax",
        secure: bool = False,
    ) -> None: ...

    def delete_cookie(self, key: str) -> None: ...


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int = 10) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    Raises ValidationError for passwords over 72 bytes once UTF-8 encoded.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed or empty hash is a mismatch, not an error.
    """
    if not plain or not hashed:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# ---------------------------------------------------------------------------
# Session JWT encode / decode
# ---------------------------------------------------------------------------


def create_session_token(user_id: str, settings: Settings) -> str:
    """Encode a signed JWT identifying the principal, valid for the session lifetime."""
    expire = datetime.now(timezone.utc) + timedelta(seconds=settings.session_expire_seconds)
    payload = {"user_id": user_id, "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=_ALGORITHM)


def decode_session_token(token: str, settings: Settings) -> str:
    """Verify a session JWT and return the user_id it carries.

    Raises InvalidToken on a bad signature, an expired exp claim, a truncated
    or garbled token, or a payload without a usable user_id.
    """
    if not token:
        raise InvalidToken()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError as exc:
        raise InvalidToken() from exc
    user_id = payload.get("user_id")
    if not isinstance(user_id, str) or not user_id.strip():
        raise InvalidToken()
    return user_id


# ---------------------------------------------------------------------------
# Reset tokens
# ---------------------------------------------------------------------------


def generate_reset_token(settings: Settings) -> tuple[str, float]:
    """Return (token, expiry) where expiry is epoch seconds."""
    token = secrets.token_hex(RESET_TOKEN_BYTES)
    return token, time.time() + settings.reset_token_expire_seconds


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_session_cookie(response: CookieWriter, token: str, settings: Settings) -> None:
    """Write the session JWT as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="lax": not sent on cross-site POST -- CSRF mitigation.
    secure: only sent over HTTPS when SECURE_COOKIES=true.
    max_age: matches the JWT exp so both expire together.
    """
    response.set_cookie(
        SESSION_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
        max_age=settings.session_expire_seconds,
    )


def clear_session_cookie(response: CookieWriter) -> None:
    response.delete_cookie(SESSION_COOKIE)
