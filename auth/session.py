"""
auth/session.py -- Session lifecycle: signup, signin, signout, and principal lookup.

Per client there are two states: anonymous (no valid `token` cookie) and
authenticated (cookie holds a JWT naming an existing user). SessionManager
moves clients between them by setting or clearing the cookie on the
outgoing response; it keeps no server-side session state.

SessionManager is built once at startup with the store and the Settings
instance and is shared across requests. It is safe to share: it holds no
mutable state of its own.

Layer rule: no imports from api/ or shop/. The `response` arguments are
typed as auth.tokens.CookieWriter (anything with set_cookie/delete_cookie)
so this module does not depend on FastAPI.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError

from auth.errors import InvalidCredentials, InvalidToken, NotFound, ValidationError
from auth.models import Permission, User
from auth.tokens import (
    CookieWriter,
    clear_session_cookie,
    create_session_token,
    decode_session_token,
    hash_password,
    set_session_cookie,
    verify_password,
)

if TYPE_CHECKING:
    from auth.store import UserStore
    from core.config import Settings

logger = logging.getLogger("shopkeep.auth.session")


class SessionManager:
    def __init__(self, store: UserStore, settings: Settings) -> None:
        self.store = store
        self.settings = settings

    def issue(self, response: CookieWriter, user: User) -> str:
        """Sign a session token for `user` and set it as the session cookie."""
        token = create_session_token(user.id, self.settings)
        set_session_cookie(response, token, self.settings)
        return token

    def signup(self, response: CookieWriter, email: str, password: str, name: str) -> User:
        """Create a USER-level account and sign it in.

        Raises ValidationError if the email is already registered.
        """
        email = email.strip().lower()
        if not email or not password:
            raise ValidationError("Email and password are required.")
        new_user = User(
            email=email,
            name=name,
            password_hash=hash_password(password, rounds=self.settings.bcrypt_rounds),
            permissions=[Permission.USER],
        )
        try:
            user_id = self.store.create_user(new_user)
        except IntegrityError as exc:
            raise ValidationError("An account with that email already exists.") from exc

        user = self.store.get_by_id(user_id)
        if user is None:
            raise NotFound("User not found after write.")
        self.issue(response, user)
        logger.info("Signed up user %s", user.id)
        return user

    def signin(self, response: CookieWriter, email: str, password: str) -> User:
        """Check credentials and set the session cookie.

        Raises NotFound for an unknown email and InvalidCredentials for a
        wrong password. The distinction is deliberate and user-visible.
        """
        email = email.strip().lower()
        user = self.store.get_by_email(email)
        if user is None:
            raise NotFound(f"No such user found for email {email}")
        if not verify_password(password, user.password_hash):
            logger.info("Failed signin for user %s", user.id)
            raise InvalidCredentials()
        self.issue(response, user)
        return user

    def signout(self, response: CookieWriter) -> None:
        """Instruct the client to drop the session cookie. Safe to call when anonymous."""
        clear_session_cookie(response)

    def current_user(self, token: str | None) -> User | None:
        """Resolve a session token to a user, or None when there is no valid session."""
        if not token:
            return None
        try:
            user_id = decode_session_token(token, self.settings)
        except InvalidToken:
            return None
        return self.store.get_by_id(user_id)
