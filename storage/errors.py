"""
storage/errors.py -- Exceptions raised by storage/store.py.

Each "expected outcome" error also inherits the matching category from
auth/ports.py, which is all AuthService looks at. Everything else the store
raises (SQLAlchemy OperationalError, timeouts, ...) is left as-is and the
service reports it as an internal failure.
"""

from __future__ import annotations

from auth.ports import AlreadyExistsError, NotFoundError


class StorageError(Exception):
    """Base for errors raised by the store itself."""


class UserExistsError(StorageError, AlreadyExistsError):
    pass


class UserNotFoundError(StorageError, NotFoundError):
    pass


class AppNotFoundError(StorageError, NotFoundError):
    pass


class AppExistsError(StorageError, AlreadyExistsError):
    pass
