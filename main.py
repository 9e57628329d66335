#!/usr/bin/env python3
"""
Shopkeep -- operator CLI for account bootstrap.

The API only creates USER-level accounts, so the first admin has to come
from somewhere. This tool talks to the same database as the API.

Usage:
  python main.py create-user --email admin@example.com --name Admin --admin
  python main.py grant --email someone@example.com ADMIN ITEMDELETE
  python main.py list-users

Environment variables:
  SECRET_KEY     Required unless DEBUG=true (see core/config.py).
  DATABASE_URL   SQLAlchemy URL. Defaults to sqlite:///shopkeep.db next to this file.
"""

import argparse
import getpass
import sys
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.models import Permission, User
from auth.store import UserStore
from auth.tokens import MAX_PASSWORD_BYTES, hash_password
from core.config import get_settings


def _read_password() -> Optional[str]:
    first = getpass.getpass("  Password: ")
    second = getpass.getpass("  Confirm:  ")
    if first != second:
        print("  [!] Passwords don't match.")
        return None
    if not first:
        print("  [!] Password must not be empty.")
        return None
    if len(first.encode("utf-8")) > MAX_PASSWORD_BYTES:
        print(f"  [!] Password must be at most {MAX_PASSWORD_BYTES} bytes.")
        return None
    return first


def _parse_permissions(values: list[str]) -> Optional[list[Permission]]:
    permissions: list[Permission] = []
    for value in values:
        try:
            permissions.append(Permission(value.upper()))
        except ValueError:
            choices = ", ".join(p.value for p in Permission)
            print(f"  [!] Unknown permission '{value}'. Choose from: {choices}")
            return None
    return permissions


def create_user(store: UserStore, email: str, name: str, admin: bool, rounds: int) -> int:
    password = _read_password()
    if password is None:
        return 1
    permissions = [Permission.USER]
    if admin:
        permissions += [Permission.ADMIN, Permission.PERMISSIONUPDATE]
    try:
        user_id = store.create_user(
            User(
                email=email,
                name=name,
                password_hash=hash_password(password, rounds=rounds),
                permissions=permissions,
            )
        )
    except IntegrityError:
        print(f"  [!] An account for {email.lower()} already exists.")
        return 1
    print(f"  Created {email.lower()} ({user_id}) with {', '.join(p.value for p in permissions)}")
    return 0


def grant(store: UserStore, email: str, values: list[str]) -> int:
    user = store.get_by_email(email)
    if user is None:
        print(f"  [!] No such user found for email {email}")
        return 1
    extra = _parse_permissions(values)
    if extra is None:
        return 1
    store.update_permissions(user.id, list(user.permissions) + extra)
    updated = store.get_by_email(email)
    print(f"  {updated.email}: {', '.join(p.value for p in updated.permissions)}")
    return 0


def list_users(store: UserStore) -> int:
    users = store.list_users()
    if not users:
        print("  No users yet.")
        return 0
    for u in users:
        print(f"  {u.email:<40} {', '.join(p.value for p in u.permissions)}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="shopkeep",
        description="Account bootstrap for the Shopkeep API.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_create = sub.add_parser("create-user", help="Create an account (prompts for password)")
    p_create.add_argument("--email", required=True)
    p_create.add_argument("--name", required=True)
    p_create.add_argument("--admin", action="store_true", help="Also grant ADMIN and PERMISSIONUPDATE")

    p_grant = sub.add_parser("grant", help="Add permissions to an existing account")
    p_grant.add_argument("--email", required=True)
    p_grant.add_argument("permissions", nargs="+", metavar="PERMISSION")

    sub.add_parser("list-users", help="Show every account and its permissions")

    args = parser.parse_args(argv)
    settings = get_settings()
    store = UserStore(db_url=settings.database_url)
    try:
        if args.command == "create-user":
            return create_user(store, args.email, args.name, args.admin, settings.bcrypt_rounds)
        if args.command == "grant":
            return grant(store, args.email, args.permissions)
        return list_users(store)
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
