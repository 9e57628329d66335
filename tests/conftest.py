"""
tests/conftest.py -- Shared test fixtures for Shopkeep.

This module provides:
  - mailer: a RecordingMailer (see tests/helpers.py)
  - settings / user_store / sessions / reset_flow: unit-level fixtures on a
    per-test SQLite file
  - api: TestClient wired to isolated in-memory stores through a patched
    lifespan, plus a pre-created admin account

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the TestClient because it runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread.

DEBUG must be set before any auth/core import so get_settings() can
auto-generate SECRET_KEY instead of raising. BCRYPT_ROUNDS is lowered to the
bcrypt minimum to keep the suite fast.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from auth.models import Permission, User
from auth.reset import PasswordResetFlow
from auth.session import SessionManager
from auth.store import UserStore
from auth.tokens import create_session_token
from core.config import Settings, get_settings
from shop.store import ShopStore
from tests.helpers import RecordingMailer, make_user


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def user_store(tmp_path) -> Generator[UserStore, None, None]:
    store = UserStore(db_url=f"sqlite:///{tmp_path / 'auth.db'}")
    yield store
    store.close()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def sessions(user_store: UserStore, settings: Settings) -> SessionManager:
    return SessionManager(user_store, settings)


@pytest.fixture
def reset_flow(
    user_store: UserStore, settings: Settings, mailer: RecordingMailer, sessions: SessionManager
) -> PasswordResetFlow:
    return PasswordResetFlow(user_store, settings, mailer, sessions)


# ---------------------------------------------------------------------------
# Integration fixture
# ---------------------------------------------------------------------------


@dataclass
class ApiContext:
    client: TestClient
    user_store: UserStore
    shop: ShopStore
    mailer: RecordingMailer
    settings: Settings
    admin: User
    admin_token: str

    def token_for(self, user: User) -> str:
        return create_session_token(user.id, self.settings)

    def bearer(self, user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token_for(user)}"}


def _patch_lifespan(user_store: UserStore, shop: ShopStore, mailer: RecordingMailer, settings: Settings):
    """Return a lifespan that wires test stores and the recording mailer into app.state."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = settings
        app.state.user_store = user_store
        app.state.shop = shop
        app.state.sessions = SessionManager(user_store, settings)
        app.state.reset_flow = PasswordResetFlow(user_store, settings, mailer, app.state.sessions)
        yield

    return test_lifespan


@pytest.fixture
def api() -> Generator[ApiContext, None, None]:
    """Yield an ApiContext backed by a fresh in-memory database.

    Function-scoped so the client's cookie jar and the database never leak
    between tests. Rate limiting is switched off; it is exercised separately.
    """
    db_url = f"sqlite:///file:test_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    settings = get_settings()
    user_store = UserStore(db_url=db_url)
    shop = ShopStore(db_url=db_url)
    mailer = RecordingMailer()

    admin = make_user(
        user_store,
        email="admin@shop.test",
        password="adminpass123",
        permissions=[Permission.USER, Permission.ADMIN],
        name="Admin",
    )

    app.router.lifespan_context = _patch_lifespan(user_store, shop, mailer, settings)
    limiter.enabled = False

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiContext(
            client=client,
            user_store=user_store,
            shop=shop,
            mailer=mailer,
            settings=settings,
            admin=admin,
            admin_token=create_session_token(admin.id, settings),
        )

    limiter.enabled = True
    shop.close()
    user_store.close()
