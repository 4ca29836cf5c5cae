"""
tests/conftest.py -- Shared test fixtures for Courier.

This module provides:
  - unit fixtures: an in-memory CredentialStore, a fast PasswordHasher,
    a TokenService with a fixed key, a controllable clock, and the services
    built from them (identity, guard, directory)
  - _patch_lifespan(): wires a test component graph into app.state,
    bypassing the real startup
  - api_client: TestClient with two registered users (alice, bob) and a
    token for each

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
for the api_client because TestClient runs sync route handlers in a thread
pool. Plain :memory: DBs are per-connection and would present a blank schema
to each worker thread. Unit fixtures run in one thread and use :memory:.

The DEBUG env var must be set before any api import so get_settings() can
auto-generate SECRET_KEY if anything reads it.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

# Set DEBUG before any core/api import so get_settings() can auto-generate
# SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app, wire_components
from auth.guard import AuthorizationGuard
from auth.identity import IdentityManager
from auth.passwords import PasswordHasher
from auth.store import CredentialStore
from auth.tokens import TokenService
from messages.directory import MessageDirectory

TEST_SECRET = "test-secret-key-0123456789abcdef-0123456789abcdef"

# bcrypt's minimum cost. Keeps the suite fast; the algorithm is unchanged.
TEST_WORK_FACTOR = 4


class FakeClock:
    """Callable clock for IdentityManager / MessageDirectory that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[CredentialStore, None, None]:
    s = CredentialStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    return PasswordHasher(work_factor=TEST_WORK_FACTOR)


@pytest.fixture
def token_secret() -> str:
    return TEST_SECRET


@pytest.fixture
def tokens(token_secret: str) -> TokenService:
    return TokenService(token_secret)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def identity(store: CredentialStore, hasher: PasswordHasher, clock: FakeClock) -> IdentityManager:
    return IdentityManager(store, hasher, clock=clock)


@pytest.fixture
def guard(tokens: TokenService, identity: IdentityManager) -> AuthorizationGuard:
    return AuthorizationGuard(tokens, identity)


@pytest.fixture
def directory(store: CredentialStore, clock: FakeClock) -> MessageDirectory:
    return MessageDirectory(store, clock=clock)


@pytest.fixture
def alice_and_bob(identity: IdentityManager) -> None:
    identity.register("alice", "pw1", "Alice", "Anders", "555-0100")
    identity.register("bob", "pw2", "Bob", "Berg", "555-0200")


# ---------------------------------------------------------------------------
# API integration fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(store: CredentialStore, hasher: PasswordHasher, tokens: TokenService):
    """Return an async context manager that replaces the real lifespan.

    Wires the pre-built test store, hasher and token service into app.state
    so TestClient routes see an isolated database and a known signing key.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        wire_components(app, store=store, hasher=hasher, tokens=tokens)
        yield

    return test_lifespan


@dataclass
class ApiContext:
    client: TestClient
    tokens: TokenService
    alice_token: str
    bob_token: str

    def auth(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="module")
def api_client(request, hasher: PasswordHasher) -> Generator[ApiContext, None, None]:
    """Yield an ApiContext for API integration tests.

    alice (password "pw1") and bob (password "pw2") are registered before the
    client starts. Each test module gets its own named in-memory database.
    """
    db_name = request.module.__name__.replace(".", "_")
    store = CredentialStore(f"sqlite:///file:{db_name}?mode=memory&cache=shared&uri=true")
    tokens = TokenService(TEST_SECRET)

    identity = IdentityManager(store, hasher)
    identity.register("alice", "pw1", "Alice", "Anders", "555-0100")
    identity.register("bob", "pw2", "Bob", "Berg", "555-0200")

    app.router.lifespan_context = _patch_lifespan(store, hasher, tokens)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiContext(
            client=client,
            tokens=tokens,
            alice_token=tokens.issue("alice"),
            bob_token=tokens.issue("bob"),
        )

    store.close()
