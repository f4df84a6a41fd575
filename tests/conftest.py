"""
tests/conftest.py -- Shared test fixtures for tenant-auth.

This module provides:
  - hasher: a CredentialHasher at bcrypt's minimum cost so tests stay fast
  - fixed_now / token_ttl / issuer: a TokenIssuer whose clock never moves
  - directory / apps: in-memory fakes, one per collaborator capability
  - app_one / app_two: the two provisioned tenant applications
  - broken: a collaborator whose every call fails like a dead database
  - service: an AuthService wired to the fakes
  - storage: a real SQLAlchemy Storage on a private SQLite file
  - api_client: TestClient over the real FastAPI app with a patched lifespan

Design: Storage fixtures use a throwaway SQLite file under pytest's tmp dir
(not :memory:) because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread.
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from auth.models import Application, User
from auth.passwords import CredentialHasher
from auth.ports import AlreadyExistsError, NotFoundError
from auth.service import AuthService
from auth.tokens import TokenIssuer
from storage.store import Storage

TOKEN_TTL = timedelta(minutes=30)
FIXED_NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
APP_ID = 1
APP_SECRET = "app-one-secret-0123456789abcdef0123456789"
OTHER_APP_ID = 2
OTHER_APP_SECRET = "app-two-secret-fedcba9876543210fedcba9876"


# ---------------------------------------------------------------------------
# Fakes -- one per capability
# ---------------------------------------------------------------------------


class FakeDirectory:
    """In-memory UserSaver + UserProvider. Records every timeout it receives."""

    def __init__(self) -> None:
        self._by_email: dict[str, User] = {}
        self._admins: set[int] = set()
        self._next_id = 1
        self.timeouts: list[float | None] = []

    def save_user(self, email: str, pass_hash: bytes, *, timeout: float | None = None) -> int:
        self.timeouts.append(timeout)
        if email in self._by_email:
            raise AlreadyExistsError(email)
        user = User(id=self._next_id, email=email, pass_hash=pass_hash)
        self._by_email[email] = user
        self._next_id += 1
        return user.id

    def user(self, email: str, *, timeout: float | None = None) -> User:
        self.timeouts.append(timeout)
        try:
            return self._by_email[email]
        except KeyError:
            raise NotFoundError(email) from None

    def is_admin(self, user_id: int, *, timeout: float | None = None) -> bool:
        self.timeouts.append(timeout)
        if not any(u.id == user_id for u in self._by_email.values()):
            raise NotFoundError(user_id)
        return user_id in self._admins

    # test helpers
    def grant_admin(self, user_id: int) -> None:
        self._admins.add(user_id)

    def stored_hash(self, email: str) -> bytes:
        return self._by_email[email].pass_hash

    def corrupt_hash(self, email: str) -> None:
        user = self._by_email[email]
        self._by_email[email] = User(id=user.id, email=user.email, pass_hash=b"$2b$10$truncated")


class FakeApps:
    """In-memory AppProvider."""

    def __init__(self, *apps: Application) -> None:
        self._apps = {a.id: a for a in apps}
        self.timeouts: list[float | None] = []

    def app(self, app_id: int, *, timeout: float | None = None) -> Application:
        self.timeouts.append(timeout)
        try:
            return self._apps[app_id]
        except KeyError:
            raise NotFoundError(app_id) from None


class BrokenCollaborator:
    """Every call fails the way a dead database would."""

    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc or ConnectionError("database is unreachable at 10.0.0.5:5432")

    def save_user(self, *args, **kwargs):
        raise self.exc

    def user(self, *args, **kwargs):
        raise self.exc

    def is_admin(self, *args, **kwargs):
        raise self.exc

    def app(self, *args, **kwargs):
        raise self.exc


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def hasher() -> CredentialHasher:
    return CredentialHasher(cost=4)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def token_ttl() -> timedelta:
    return TOKEN_TTL


@pytest.fixture
def issuer(fixed_now) -> TokenIssuer:
    return TokenIssuer(clock=lambda: fixed_now)


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory()


@pytest.fixture
def app_one() -> Application:
    return Application(id=APP_ID, name="app-one", secret=APP_SECRET)


@pytest.fixture
def app_two() -> Application:
    return Application(id=OTHER_APP_ID, name="app-two", secret=OTHER_APP_SECRET)


@pytest.fixture
def apps(app_one, app_two) -> FakeApps:
    return FakeApps(app_one, app_two)


@pytest.fixture
def broken() -> BrokenCollaborator:
    return BrokenCollaborator()


@pytest.fixture
def service(directory, apps, hasher, issuer, token_ttl) -> AuthService:
    return AuthService(
        user_saver=directory,
        user_provider=directory,
        app_provider=apps,
        token_ttl=token_ttl,
        hasher=hasher,
        issuer=issuer,
    )


@pytest.fixture
def storage(tmp_path) -> Generator[Storage, None, None]:
    """Storage on a private SQLite file, unique per test."""
    s = Storage(f"sqlite:///{tmp_path / 'auth.db'}")
    yield s
    s.close()


# ---------------------------------------------------------------------------
# API fixture
# ---------------------------------------------------------------------------


def _patch_lifespan(service: AuthService, storage: Storage):
    """Return a lifespan that wires pre-built test objects into app.state."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.auth_service = service
        app.state.storage = storage
        app.state.storage_timeout = 2.0
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(tmp_path_factory) -> Generator[tuple[TestClient, Storage], None, None]:
    """Yield (client, storage) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers against an isolated SQLite file. Two
    applications are provisioned (APP_ID, OTHER_APP_ID).
    """
    from api.main import app

    storage = Storage(f"sqlite:///{tmp_path_factory.mktemp('api') / 'auth.db'}")
    storage.create_app("app-one", APP_SECRET, app_id=APP_ID)
    storage.create_app("app-two", OTHER_APP_SECRET, app_id=OTHER_APP_ID)
    service = AuthService(
        user_saver=storage,
        user_provider=storage,
        app_provider=storage,
        token_ttl=TOKEN_TTL,
        hasher=CredentialHasher(cost=4),
    )

    original = app.router.lifespan_context
    app.router.lifespan_context = _patch_lifespan(service, storage)
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client, storage
    app.router.lifespan_context = original
    storage.close()
