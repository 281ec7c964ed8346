"""
tests/conftest.py -- Shared test fixtures for campusnav integration tests.

This module provides:
  - _make_test_services(): isolated stores + cheap hasher for one test module
  - _patch_lifespan(): wires test services into app.state, bypassing real startup
  - api_client: TestClient with an admin token and a student token
  - override_settings: swap app.state.settings for one test, restored afterwards

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process. Each test
module gets its own name, so rows never leak between modules.

The DEBUG env var must be set before any core/auth import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: Set DEBUG before any core/auth import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from asgi import app
from auth.models import ROLE_ADMIN, ROLE_STUDENT, User
from auth.store import UserStore
from auth.tokens import PasswordHasher, TokenService
from campus.store import CampusStore
from core.config import get_settings
from core.db import create_db_engine

ADMIN_EMAIL = "admin@campus.edu"
ADMIN_PASSWORD = "adminpass123"
STUDENT_EMAIL = "student@campus.edu"
STUDENT_PASSWORD = "studentpass123"

# bcrypt's minimum cost factor keeps the suite fast; production uses 10.
FAST_HASHER_ROUNDS = 4


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


@dataclass
class StackServices:
    engine: Engine
    user_store: UserStore
    campus: CampusStore
    hasher: PasswordHasher
    tokens: TokenService


def _make_test_services(db_suffix: str) -> StackServices:
    """Create isolated stores on one shared-memory engine.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state (the module name is used).
    """
    engine = create_db_engine(f"sqlite:///file:test_{db_suffix}?mode=memory&cache=shared&uri=true")
    return StackServices(
        engine=engine,
        user_store=UserStore(engine=engine),
        campus=CampusStore(engine=engine),
        hasher=PasswordHasher(rounds=FAST_HASHER_ROUNDS),
        tokens=TokenService(get_settings().secret_key),
    )


def _patch_lifespan(services: StackServices):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test services into app.state so TestClient routes see
    isolated test DBs rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = get_settings()
        app.state.engine = services.engine
        app.state.user_store = services.user_store
        app.state.campus = services.campus
        app.state.hasher = services.hasher
        app.state.tokens = services.tokens
        yield

    return test_lifespan


def _seed_user(services: StackServices, email: str, password: str, rol: str, cedula: str) -> User:
    return services.user_store.create_user(
        User(
            nombre=rol.capitalize(),
            apellido="Seed",
            email=email,
            cedula=cedula,
            rol=rol,
            hashed_password=services.hasher.hash(password),
        )
    )


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, str, str], None, None]:
    """Yield (client, admin_token, student_token) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers but use an isolated in-memory database.
    An admin and a student are created before the client starts; both tokens
    are ordinary login tokens ({id, email}).
    """
    services = _make_test_services(request.module.__name__.rsplit(".", 1)[-1])

    admin = _seed_user(services, ADMIN_EMAIL, ADMIN_PASSWORD, ROLE_ADMIN, "0000000001")
    student = _seed_user(services, STUDENT_EMAIL, STUDENT_PASSWORD, ROLE_STUDENT, "0000000002")
    admin_token = services.tokens.issue_login_token(admin.id, admin.email)
    student_token = services.tokens.issue_login_token(student.id, student.email)

    app.router.lifespan_context = _patch_lifespan(services)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, admin_token, student_token

    services.engine.dispose()


@pytest.fixture
def override_settings(api_client):
    """Replace app.state.settings with a modified copy for a single test.

    Usage:
        def test_x(api_client, override_settings):
            override_settings(require_admin_for_writes=False)
    """
    client = api_client[0]
    original = client.app.state.settings

    def _override(**changes):
        client.app.state.settings = original.model_copy(update=changes)
        return client.app.state.settings

    yield _override
    client.app.state.settings = original
