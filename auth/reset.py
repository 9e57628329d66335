"""
auth/reset.py -- Two-phase password reset handshake.

Phase 1, request_reset(email):
  generate a reset token, store it (with expiry) on the user, mail a link
  carrying the raw token. The stored token stays valid for its whole window
  even if the mail cannot be delivered -- delivery is one best-effort attempt.

Phase 2, complete_reset(token, password, confirm):
  confirm the passwords match, then consume the token and set the new hash
  in one conditional UPDATE. On success the caller is signed in with a fresh
  session cookie.

Known weaknesses, kept on purpose:
  - request_reset raises NotFound for an unregistered email, so the endpoint
    reveals which emails have accounts.
  - A reset does not revoke session tokens issued before it. There is no
    revocation list; an old cookie keeps working until its exp claim.

Layer rule: no imports from api/ or shop/.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING
from urllib.parse import urlencode

from auth.errors import InvalidOrExpiredToken, NotFound, UpstreamError, ValidationError
from auth.mail import make_reset_email
from auth.models import User
from auth.tokens import CookieWriter, generate_reset_token, hash_password

if TYPE_CHECKING:
    from auth.mail import Mailer
    from auth.session import SessionManager
    from auth.store import UserStore
    from core.config import Settings

logger = logging.getLogger("shopkeep.auth.reset")

ACKNOWLEDGEMENT = "Thanks!"
RESET_SUBJECT = "Your Password Reset Token"


class PasswordResetFlow:
    def __init__(
        self,
        store: UserStore,
        settings: Settings,
        mailer: Mailer,
        sessions: SessionManager,
    ) -> None:
        self.store = store
        self.settings = settings
        self.mailer = mailer
        self.sessions = sessions

    def reset_url(self, token: str) -> str:
        base = self.settings.frontend_url.rstrip("/")
        return f"{base}/reset?{urlencode({'resetToken': token})}"

    def request_reset(self, email: str) -> str:
        """Issue a reset token for `email` and mail the link. Returns a generic acknowledgement."""
        email = email.strip().lower()
        user = self.store.get_by_email(email)
        if user is None:
            raise NotFound(f"No such user found for email {email}")

        token, expiry = generate_reset_token(self.settings)
        self.store.set_reset_token(user.id, token, expiry)

        try:
            self.mailer.send(user.email, RESET_SUBJECT, make_reset_email(self.reset_url(token)))
        except UpstreamError:
            # Token stays stored; the user can ask again.
            logger.warning("Reset mail for user %s could not be delivered", user.id)
        return ACKNOWLEDGEMENT

    def complete_reset(
        self, response: CookieWriter, reset_token: str, password: str, confirm_password: str
    ) -> User:
        """Set a new password using a live reset token, then sign the user in.

        Raises ValidationError when the passwords differ (nothing is written)
        and InvalidOrExpiredToken when the token is unknown, stale, or already used.
        """
        if password != confirm_password:
            raise ValidationError("Your passwords don't match")
        if not password:
            raise ValidationError("Password is required.")

        password_hash = hash_password(password, rounds=self.settings.bcrypt_rounds)
        user = self.store.consume_reset_token(reset_token, password_hash, now=time.time())
        if user is None:
            raise InvalidOrExpiredToken()

        self.sessions.issue(response, user)
        logger.info("Password reset completed for user %s", user.id)
        return user
