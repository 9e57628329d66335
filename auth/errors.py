"""
auth/errors.py -- Closed failure taxonomy for the auth core.

Every failure the auth layer can report is one of the classes below. Each
carries a stable machine-readable `code` and the HTTP status the API layer
renders it with, so api/main.py needs a single exception handler instead of
string-matching messages.

Messages are user-displayable. They must never contain a raw password, a
password hash, a reset token, or the signing secret.

Layer rule: stdlib only. api/ imports from here, not the other way around.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all auth-layer failures."""

    code: str = "auth_error"
    status_code: int = 400
    default_message: str = "Request failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(AuthError):
    code = "unauthenticated"
    status_code = 401
    default_message = "You must be logged in to do that!"


class Forbidden(AuthError):
    code = "forbidden"
    status_code = 403
    default_message = "You don't have permission to do that!"


class NotFound(AuthError):
    code = "not_found"
    status_code = 404
    default_message = "Not found."


class InvalidCredentials(AuthError):
    code = "invalid_credentials"
    status_code = 401
    default_message = "Invalid Password"


class ValidationError(AuthError):
    code = "validation_error"
    status_code = 400
    default_message = "Invalid input."


class InvalidOrExpiredToken(AuthError):
    code = "invalid_or_expired_token"
    status_code = 400
    default_message = "This token is either invalid or expired."


class InvalidToken(AuthError):
    code = "invalid_token"
    status_code = 401
    default_message = "Session token is invalid."


class UpstreamError(AuthError):
    """A collaborator (database, mail relay) failed. Never retried here."""

    code = "upstream_unavailable"
    status_code = 503
    default_message = "A backing service is unavailable. Try again later."
