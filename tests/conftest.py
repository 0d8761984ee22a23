"""
tests/conftest.py -- Shared test fixtures for userhub.

This module provides:
  - engine / user_store / ledger / token_service: isolated in-memory
    collaborators for unit tests
  - make_user(): inserts a user with a known password
  - api_client: TestClient over the real app with test services on app.state

Design: the API fixture uses a named shared-memory SQLite URI (not plain
:memory:) because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. Unit fixtures run on one thread, so plain :memory: is fine.

SECRET_KEY and DEBUG must be set before any api/ import so get_settings()
validates at import time.
"""

from __future__ import annotations

import asyncio
import itertools
import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from types import SimpleNamespace

# CRITICAL: set before importing api.main, which reads settings at import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-at-least-32-chars")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.credentials import hash_password
from auth.gate import AuthGate
from auth.models import User
from auth.revocation import RevocationLedger
from auth.schema import make_engine
from auth.store import UserStore
from auth.tokens import TokenService

TEST_SECRET = "unit-test-secret-key-0123456789abcdef"

_db_counter = itertools.count()


def make_user(store: UserStore, username: str, password: str = "correct-horse", **fields) -> int:
    """Insert a user with a bcrypt-hashed password and return its id."""
    return store.create_user(
        User(
            username=username,
            email=fields.pop("email", f"{username}@example.com"),
            hashed_password=hash_password(password),
            **fields,
        )
    )


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def engine():
    eng = make_engine("sqlite:///:memory:")
    yield eng
    eng.dispose()


@pytest.fixture
def user_store(engine) -> UserStore:
    return UserStore(engine)


@pytest.fixture
def ledger(engine) -> RevocationLedger:
    return RevocationLedger(engine)


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(secret_key=TEST_SECRET)


@pytest.fixture
def gate(token_service: TokenService, ledger: RevocationLedger) -> AuthGate:
    return AuthGate(token_service, ledger)


# ---------------------------------------------------------------------------
# API fixture
# ---------------------------------------------------------------------------


def _patch_lifespan(services: SimpleNamespace):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-built test services into app.state so TestClient routes see an
    isolated test DB. The purge task is a long sleep so shutdown can cancel
    a real asyncio.Task.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.engine = services.engine
        app.state.user_store = services.user_store
        app.state.ledger = services.ledger
        app.state.token_service = services.token_service
        app.state.auth_gate = services.gate
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, SimpleNamespace], None, None]:
    """Yield (client, services) for API integration tests.

    services carries engine, user_store, ledger, token_service and gate, plus
    an admin user (admin_id / admin_token) created before the client starts.
    One database per test module keeps modules independent.
    """
    db_url = f"sqlite:///file:test_userhub_{next(_db_counter)}?mode=memory&cache=shared&uri=true"
    engine = make_engine(db_url)
    user_store = UserStore(engine)
    ledger = RevocationLedger(engine)
    token_service = TokenService(secret_key=TEST_SECRET)
    services = SimpleNamespace(
        engine=engine,
        user_store=user_store,
        ledger=ledger,
        token_service=token_service,
        gate=AuthGate(token_service, ledger),
    )
    services.admin_id = make_user(user_store, "testadmin", "testpass123", role_id=1)
    services.admin_token = token_service.issue(services.admin_id, "testadmin")

    app.router.lifespan_context = _patch_lifespan(services)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, services

    engine.dispose()
