"""Unit tests for auth/store.py -- UserStore persistence and reset-token columns.

Covers:
- create_user lowercases email and enforces uniqueness
- permissions survive the JSON round trip, duplicates collapse
- set_reset_token overwrites (one active token per user)
- consume_reset_token: live token, expired token, reuse, unknown token
"""

from __future__ import annotations

import time

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import Permission, User
from auth.store import UserStore
from tests.helpers import make_user


class TestUsers:
    def test_email_is_lowercased_on_create(self, user_store: UserStore) -> None:
        user = make_user(user_store, email="Mixed@Case.COM")
        assert user.email == "mixed@case.com"
        assert user_store.get_by_email("MIXED@case.com").id == user.id

    def test_duplicate_email_raises_integrity_error(self, user_store: UserStore) -> None:
        make_user(user_store, email="dup@x.com")
        with pytest.raises(IntegrityError):
            make_user(user_store, email="DUP@x.com")

    def test_new_user_has_no_reset_token(self, user_store: UserStore) -> None:
        user = make_user(user_store)
        assert user.reset_token is None
        assert user.reset_token_expiry is None
        assert user.created_at

    def test_unknown_lookups_return_none(self, user_store: UserStore) -> None:
        assert user_store.get_by_email("nobody@x.com") is None
        assert user_store.get_by_id("deadbeef") is None

    def test_update_permissions_replaces_set(self, user_store: UserStore) -> None:
        user = make_user(user_store)
        assert user_store.update_permissions(user.id, [Permission.ADMIN, Permission.ADMIN, Permission.ITEMDELETE])
        assert user_store.get_by_id(user.id).permissions == [Permission.ADMIN, Permission.ITEMDELETE]

    def test_update_permissions_unknown_user(self, user_store: UserStore) -> None:
        assert user_store.update_permissions("missing", [Permission.USER]) is False

    def test_list_users_sorted_by_email(self, user_store: UserStore) -> None:
        make_user(user_store, email="b@x.com")
        make_user(user_store, email="a@x.com")
        assert [u.email for u in user_store.list_users()] == ["a@x.com", "b@x.com"]

    def test_create_user_keeps_given_permissions(self, user_store: UserStore) -> None:
        user_id = user_store.create_user(
            User(email="p@x.com", name="P", password_hash="h", permissions=[Permission.USER, Permission.ITEMCREATE])
        )
        assert user_store.get_by_id(user_id).permissions == [Permission.USER, Permission.ITEMCREATE]


class TestResetTokenColumns:
    def test_set_reset_token_writes_both_fields(self, user_store: UserStore) -> None:
        user = make_user(user_store)
        expiry = time.time() + 3600
        assert user_store.set_reset_token(user.id, "t" * 56, expiry)
        stored = user_store.get_by_id(user.id)
        assert stored.reset_token == "t" * 56
        assert stored.reset_token_expiry == pytest.approx(expiry)

    def test_new_token_replaces_old(self, user_store: UserStore) -> None:
        user = make_user(user_store)
        user_store.set_reset_token(user.id, "old", time.time() + 3600)
        user_store.set_reset_token(user.id, "new", time.time() + 3600)
        assert user_store.consume_reset_token("old", "h2", now=time.time()) is None
        assert user_store.consume_reset_token("new", "h2", now=time.time()) is not None

    def test_consume_sets_hash_and_clears_fields(self, user_store: UserStore) -> None:
        user = make_user(user_store)
        user_store.set_reset_token(user.id, "live", time.time() + 3600)
        updated = user_store.consume_reset_token("live", "new-hash", now=time.time())
        assert updated.id == user.id
        assert updated.password_hash == "new-hash"
        assert updated.reset_token is None
        assert updated.reset_token_expiry is None

    def test_consume_twice_fails_second_time(self, user_store: UserStore) -> None:
        user = make_user(user_store)
        user_store.set_reset_token(user.id, "once", time.time() + 3600)
        assert user_store.consume_reset_token("once", "h1", now=time.time()) is not None
        assert user_store.consume_reset_token("once", "h2", now=time.time()) is None
        assert user_store.get_by_id(user.id).password_hash == "h1"

    def test_expired_token_is_not_consumed(self, user_store: UserStore) -> None:
        user = make_user(user_store)
        original_hash = user.password_hash
        user_store.set_reset_token(user.id, "stale", time.time() - 1)
        assert user_store.consume_reset_token("stale", "h", now=time.time()) is None
        stored = user_store.get_by_id(user.id)
        assert stored.password_hash == original_hash
        assert stored.reset_token == "stale"

    def test_unknown_or_empty_token(self, user_store: UserStore) -> None:
        make_user(user_store)
        assert user_store.consume_reset_token("nope", "h", now=time.time()) is None
        assert user_store.consume_reset_token("", "h", now=time.time()) is None
