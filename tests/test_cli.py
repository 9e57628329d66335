"""
tests/test_cli.py -- Tests for the account bootstrap CLI in main.py.

getpass is patched so the prompts read from a canned list.
"""

from __future__ import annotations

import pytest

import main
from auth.models import Permission
from auth.store import UserStore
from auth.tokens import verify_password
from tests.helpers import make_user


@pytest.fixture
def answers(monkeypatch):
    queue: list[str] = []
    monkeypatch.setattr(main.getpass, "getpass", lambda prompt="": queue.pop(0))
    return queue


def test_create_admin(user_store: UserStore, answers, capsys) -> None:
    answers.extend(["root-pw-1", "root-pw-1"])
    assert main.create_user(user_store, "Root@Shop.test", "Root", admin=True, rounds=4) == 0
    user = user_store.get_by_email("root@shop.test")
    assert user.permissions == [Permission.USER, Permission.ADMIN, Permission.PERMISSIONUPDATE]
    assert verify_password("root-pw-1", user.password_hash)
    assert "Created root@shop.test" in capsys.readouterr().out


def test_create_rejects_mismatched_confirmation(user_store: UserStore, answers) -> None:
    answers.extend(["one", "two"])
    assert main.create_user(user_store, "x@shop.test", "X", admin=False, rounds=4) == 1
    assert user_store.get_by_email("x@shop.test") is None


def test_create_duplicate_fails_cleanly(user_store: UserStore, answers, capsys) -> None:
    make_user(user_store, email="x@shop.test")
    answers.extend(["pw", "pw"])
    assert main.create_user(user_store, "x@shop.test", "X", admin=False, rounds=4) == 1
    assert "already exists" in capsys.readouterr().out


def test_grant_adds_permissions(user_store: UserStore) -> None:
    make_user(user_store, email="x@shop.test")
    assert main.grant(user_store, "x@shop.test", ["itemdelete", "USER"]) == 0
    assert user_store.get_by_email("x@shop.test").permissions == [Permission.USER, Permission.ITEMDELETE]


def test_grant_unknown_permission(user_store: UserStore, capsys) -> None:
    make_user(user_store, email="x@shop.test")
    assert main.grant(user_store, "x@shop.test", ["SUPERUSER"]) == 1
    assert "Unknown permission" in capsys.readouterr().out


def test_grant_unknown_user(user_store: UserStore) -> None:
    assert main.grant(user_store, "ghost@shop.test", ["ADMIN"]) == 1


def test_list_users(user_store: UserStore, capsys) -> None:
    assert main.list_users(user_store) == 0
    assert "No users yet." in capsys.readouterr().out
    make_user(user_store, email="x@shop.test")
    main.list_users(user_store)
    assert "x@shop.test" in capsys.readouterr().out


def test_create_rejects_password_over_72_bytes(user_store: UserStore, answers, capsys) -> None:
    answers.extend(["é" * 72, "é" * 72])
    assert main.create_user(user_store, "x@shop.test", "X", admin=False, rounds=4) == 1
    assert "at most 72 bytes" in capsys.readouterr().out
    assert user_store.get_by_email("x@shop.test") is None
