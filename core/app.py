"""
core/app.py -- Composition root: Settings -> Storage -> AuthService.

The only module that knows how the pieces fit together. Construction
failures (unreachable database, bad URL, unwritable SQLite file) surface as
StartupError; the caller decides what to do with it. The CLI logs it and
exits non-zero; the API lifespan lets it propagate so the server refuses to
start. Nothing here terminates the process on its own.

Layer rule: core/app.py may import from auth/ and storage/ (it is the
wiring layer); auth/ and storage/ never import from it.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from auth.passwords import BoundedHasher, CredentialHasher, HashingError
from auth.service import AuthService
from core.config import Settings
from storage.store import Storage

logger = logging.getLogger("tenantauth.app")


class StartupError(Exception):
    """A component could not be constructed from the current settings."""


def build_storage(settings: Settings) -> Storage:
    """Open the database and create tables. Raises StartupError on failure."""
    try:
        return Storage(settings.database_url, default_timeout=settings.storage_timeout_seconds)
    except (SQLAlchemyError, OSError) as exc:
        raise StartupError(f"failed to initialise storage: {exc}") from exc


def build_hasher(settings: Settings) -> CredentialHasher | BoundedHasher:
    hasher = CredentialHasher(cost=settings.bcrypt_cost)
    if settings.hash_concurrency > 0:
        return BoundedHasher(hasher, settings.hash_concurrency)
    return hasher


def build_auth_service(settings: Settings, storage: Storage | None = None) -> tuple[AuthService, Storage]:
    """Return (service, storage). Builds storage from settings unless one is given.

    The caller owns the returned Storage and must close() it on shutdown.
    """
    owned = storage is None
    if storage is None:
        storage = build_storage(settings)
    try:
        service = AuthService(
            user_saver=storage,
            user_provider=storage,
            app_provider=storage,
            token_ttl=settings.token_ttl,
            hasher=build_hasher(settings),
        )
    except HashingError as exc:
        if owned:
            storage.close()
        raise StartupError(f"failed to initialise password hasher: {exc}") from exc
    logger.info(
        "Auth service initialized (token_ttl=%ss, bcrypt_cost=%d, hash_concurrency=%d)",
        settings.token_ttl_seconds,
        settings.bcrypt_cost,
        settings.hash_concurrency,
    )
    return service, storage
