"""
tests/conftest.py -- Shared test fixtures for Users API tests.

This module provides:
  - _patch_lifespan(): wires a test store into app.state, bypassing real startup
  - client: TestClient backed by a fresh store holding the two seed users
  - empty_client: TestClient backed by a fresh, empty store
  - store / seeded_store: bare UserStore instances for unit tests

Each client fixture is function-scoped: the store is mutable shared state, so
every test starts from a known collection instead of whatever the previous
test left behind.

RATE_LIMIT_ENABLED must be set before any api/ import so the shared limiter
is built disabled; tests issue far more requests per minute than the default
limit allows.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any api/core import so get_settings() sees it.
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient

from api.main import app
from users.store import UserStore

# ---------------------------------------------------------------------------
# Lifespan helper
# ---------------------------------------------------------------------------


def _patch_lifespan(store: UserStore):
    """Return an async context manager that replaces the real lifespan.

    The real lifespan builds its own store from settings; tests need to hold
    a reference to the store they are asserting against.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = store
        yield

    return test_lifespan


def _client_for(store: UserStore) -> Generator[TestClient, None, None]:
    app.router.lifespan_context = _patch_lifespan(store)
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> UserStore:
    """Empty store. The first created user gets ID 1."""
    return UserStore()


@pytest.fixture
def seeded_store() -> UserStore:
    """Store holding the two default users (IDs 1 and 2)."""
    s = UserStore()
    s.seed_defaults()
    return s


# ---------------------------------------------------------------------------
# Client fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def client(seeded_store: UserStore) -> Generator[TestClient, None, None]:
    """TestClient over the seeded store -- mirrors a freshly started server."""
    yield from _client_for(seeded_store)


@pytest.fixture
def empty_client(store: UserStore) -> Generator[TestClient, None, None]:
    """TestClient over an empty store."""
    yield from _client_for(store)
