"""
tests/conftest.py -- Shared test fixtures for Alumnet.

This module provides:
  - store / hasher / issuer / service: unit-level components on a private
    in-memory DB, rebuilt for every test
  - _make_test_store(): isolated named shared-memory DB for integration tests
  - _patch_lifespan(): wires test components into app.state, bypassing real startup
  - api_client: TestClient plus a member account and its bearer token

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the TestClient fixtures because route handlers run in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread. StaticPool is passed explicitly so SQLAlchemy does not pick
a per-thread pool for the memory URI.

Environment must be set before any core/auth/api import:
  DEBUG=true          -- get_settings() auto-generates SECRET_KEY
  BCRYPT_ROUNDS=4     -- bcrypt's minimum cost keeps the suite fast
  *_RATE_LIMIT        -- high enough that the suite never trips the limiter
  ALLOWED_HOSTS       -- TestClient sends Host: testserver
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any auth/core import so get_settings() sees them.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
os.environ.setdefault("REGISTER_RATE_LIMIT", "1000/minute")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from api.main import app
from auth.guard import SessionGuard
from auth.passwords import CredentialHasher
from auth.service import AuthService
from auth.store import AccountStore
from auth.tokens import TokenIssuer
from core.config import get_settings

MEMBER_EMAIL = "member@example.com"
MEMBER_PASSWORD = "memberpass123"


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[AccountStore, None, None]:
    s = AccountStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture(scope="session")
def hasher() -> CredentialHasher:
    return CredentialHasher(rounds=4)


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer("k" * 32 + "-unit-test-signing-key", lifetime_seconds=3600)


@pytest.fixture
def service(store: AccountStore, hasher: CredentialHasher, issuer: TokenIssuer) -> AuthService:
    return AuthService(store, hasher, issuer)


# ---------------------------------------------------------------------------
# Integration helpers
# ---------------------------------------------------------------------------


def _make_test_store() -> AccountStore:
    """Create an isolated named shared-memory SQLite store.

    The random name keeps test modules from seeing each other's accounts.
    """
    return AccountStore(
        db_url=f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true",
        poolclass=StaticPool,
    )


def _patch_lifespan(service: AuthService, guard: SessionGuard):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.account_store = service.store
        app.state.auth_service = service
        app.state.session_guard = guard
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, str, int], None, None]:
    """Yield (client, token, account_id) for API integration tests.

    A member account is registered before the client starts and a token is
    issued for it with the same settings-derived key the app would use.
    """
    settings = get_settings()
    store = _make_test_store()
    issuer = TokenIssuer(settings.secret_key, lifetime_seconds=settings.token_expire_seconds)
    service = AuthService(store, CredentialHasher(rounds=settings.bcrypt_rounds), issuer)

    member = service.register(
        email=MEMBER_EMAIL,
        secret=MEMBER_PASSWORD,
        display_name="Member One",
        organization="Acme",
        graduation_year=2015,
    )
    token = issuer.issue(subject=member.id, email=member.email)

    app.router.lifespan_context = _patch_lifespan(service, SessionGuard(issuer))

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, member.id

    store.close()
