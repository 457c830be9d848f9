"""
tests/conftest.py -- Shared test fixtures for design portal integration tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for users + designs
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient plus the seeded admin's token and id
  - make_user: factory that creates an account and returns (id, token)

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

Environment variables must be set before any api/auth/core import because
get_settings() is cached on first call.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any auth/core import. DEBUG lets get_settings()
# auto-generate SECRET_KEY and makes /request-reset echo the OTP.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DEFAULT_ADMIN_PASSWORD", "Admin@123")

import pytest
from fastapi.testclient import TestClient

from api.main import app, init_state
from auth.models import ROLE_ADMIN, ROLE_USER, User
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password
from core.config import get_settings
from designs.store import DesignStore

STRONG_PASSWORD = "Str0ng!Pass"


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, DesignStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    url = f"sqlite:///file:test_portal_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(db_url=url), DesignStore(db_url=url)


def _patch_lifespan(user_store: UserStore, design_store: DesignStore):
    """Return an async context manager that replaces the real lifespan.

    Runs the same init_state() as production so the default admin is seeded
    into the test DB. The purge_task is a long-sleeping coroutine so the
    shutdown .cancel() has a real asyncio.Task to act on.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        init_state(app, user_store, design_store)
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, str, int], None, None]:
    """Yield (client, admin_token, admin_id) for API integration tests.

    The admin is the default account seeded by init_state() (password
    Admin@123). base_url uses localhost because TrustedHostMiddleware
    rejects TestClient's default 'testserver' host.
    """
    user_store, design_store = _make_test_stores(uuid.uuid4().hex[:8])
    app.router.lifespan_context = _patch_lifespan(user_store, design_store)

    with TestClient(app, base_url="http://localhost", raise_server_exceptions=True) as client:
        admin = user_store.get_by_email(get_settings().default_admin_email)
        token = create_access_token(admin.id, ROLE_ADMIN, expire_seconds=3600)
        yield client, token, admin.id

    design_store.close()
    user_store.close()


@pytest.fixture(scope="module")
def make_user(api_client) -> Callable[..., tuple[int, str]]:
    """Return a factory creating an account directly in the store.

    Usage: uid, token = make_user("jane@jewelers.io", role="USER")
    """
    client, _token, _uid = api_client

    def _make(email: str, name: str = "Test User", role: str = ROLE_USER, password: str = STRONG_PASSWORD):
        store: UserStore = client.app.state.user_store
        uid = store.create_user(User(email=email, name=name, role=role, hashed_password=hash_password(password)))
        return uid, create_access_token(uid, role, expire_seconds=3600)

    return _make