"""Unit tests for auth/session.py -- SessionManager state transitions.

A starlette Response stands in for the outgoing HTTP response so the tests
can read back the Set-Cookie header each operation writes.
"""

from __future__ import annotations

import pytest
from starlette.responses import Response

from auth.errors import InvalidCredentials, NotFound, ValidationError
from auth.models import Permission
from auth.session import SessionManager
from auth.store import UserStore
from auth.tokens import SESSION_COOKIE, create_session_token, decode_session_token, verify_password


def _cookie_value(response: Response) -> str:
    header = response.headers["set-cookie"]
    assert header.startswith(f"{SESSION_COOKIE}=")
    return header.split(";", 1)[0].split("=", 1)[1]


class TestSignup:
    def test_creates_user_with_user_permission_and_sets_cookie(self, sessions: SessionManager, settings) -> None:
        response = Response()
        user = sessions.signup(response, "New@Example.com", "s3cret!", "New Person")
        assert user.email == "new@example.com"
        assert user.permissions == [Permission.USER]
        assert decode_session_token(_cookie_value(response), settings) == user.id

    def test_stores_hash_not_plaintext(self, sessions: SessionManager, user_store: UserStore) -> None:
        user = sessions.signup(Response(), "h@x.com", "plain-pw", "H")
        stored = user_store.get_by_id(user.id)
        assert stored.password_hash != "plain-pw"
        assert verify_password("plain-pw", stored.password_hash)

    def test_duplicate_email_is_validation_error(self, sessions: SessionManager) -> None:
        sessions.signup(Response(), "dup@x.com", "pw", "D")
        response = Response()
        with pytest.raises(ValidationError):
            sessions.signup(response, "DUP@x.com", "pw2", "D2")
        assert "set-cookie" not in response.headers

    def test_blank_password_is_validation_error(self, sessions: SessionManager) -> None:
        with pytest.raises(ValidationError):
            sessions.signup(Response(), "b@x.com", "", "B")

    def test_over_long_password_is_validation_error(self, sessions: SessionManager, user_store: UserStore) -> None:
        with pytest.raises(ValidationError):
            sessions.signup(Response(), "long@x.com", "\u00e9" * 72, "L")
        assert user_store.get_by_email("long@x.com") is None


class TestSignin:
    def test_unknown_email_is_not_found(self, sessions: SessionManager) -> None:
        with pytest.raises(NotFound) as excinfo:
            sessions.signin(Response(), "ghost@x.com", "pw")
        assert "No such user" in excinfo.value.message

    def test_wrong_password_is_invalid_credentials(self, sessions: SessionManager) -> None:
        sessions.signup(Response(), "w@x.com", "right-pw", "W")
        response = Response()
        with pytest.raises(InvalidCredentials):
            sessions.signin(response, "w@x.com", "wrong-pw")
        assert "set-cookie" not in response.headers

    def test_correct_password_returns_user_and_sets_cookie(self, sessions: SessionManager, settings) -> None:
        created = sessions.signup(Response(), "ok@x.com", "right-pw", "OK")
        response = Response()
        user = sessions.signin(response, "OK@X.com", "right-pw")
        assert user.id == created.id
        assert decode_session_token(_cookie_value(response), settings) == created.id

    def test_error_messages_do_not_echo_password(self, sessions: SessionManager) -> None:
        sessions.signup(Response(), "leak@x.com", "right-pw", "L")
        with pytest.raises(InvalidCredentials) as excinfo:
            sessions.signin(Response(), "leak@x.com", "guess-pw-123")
        assert "guess-pw-123" not in str(excinfo.value)


class TestSignoutAndCurrentUser:
    def test_signout_clears_cookie(self, sessions: SessionManager) -> None:
        response = Response()
        sessions.signout(response)
        assert "max-age=0" in response.headers["set-cookie"].lower()

    def test_signout_twice_is_a_noop(self, sessions: SessionManager) -> None:
        sessions.signout(Response())
        sessions.signout(Response())

    def test_current_user_none_without_token(self, sessions: SessionManager) -> None:
        assert sessions.current_user(None) is None
        assert sessions.current_user("") is None

    def test_current_user_none_for_garbage_token(self, sessions: SessionManager) -> None:
        assert sessions.current_user("not.a.jwt") is None

    def test_current_user_none_for_unknown_principal(self, sessions: SessionManager, settings) -> None:
        assert sessions.current_user(create_session_token("no-such-id", settings)) is None

    def test_current_user_resolves_issued_token(self, sessions: SessionManager) -> None:
        response = Response()
        user = sessions.signup(response, "me@x.com", "pw", "Me")
        assert sessions.current_user(_cookie_value(response)).id == user.id
