"""
auth/ports.py -- Collaborator contracts the auth core depends on.

The user directory is split into two capabilities (UserSaver for writes,
UserProvider for reads) and the application registry is a third (AppProvider).
AuthService takes each one separately, so a test can hand it three unrelated
fakes and a deployment can back them with one object or three.

Implementations report outcomes the core cares about by raising one of the
two category exceptions below (or a subclass). Any other exception is treated
as a system failure.

Every method accepts a keyword-only `timeout` in seconds. Implementations
must apply it to their I/O so a slow backing store cannot block a caller
indefinitely; None means the implementation's own default.

Layer rule: stdlib only.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from auth.models import Application, User


class CollaboratorError(Exception):
    """Base for the outcome categories a collaborator may report."""


class NotFoundError(CollaboratorError):
    """The requested user or application does not exist."""


class AlreadyExistsError(CollaboratorError):
    """A record with the same unique key already exists."""


@runtime_checkable
class UserSaver(Protocol):
    def save_user(self, email: str, pass_hash: bytes, *, timeout: float | None = None) -> int:
        """Create a user and return its new id. Raises AlreadyExistsError on duplicate email."""
        ...


@runtime_checkable
class UserProvider(Protocol):
    def user(self, email: str, *, timeout: float | None = None) -> User:
        """Return the user with this email. Raises NotFoundError."""
        ...

    def is_admin(self, user_id: int, *, timeout: float | None = None) -> bool:
        """Return the stored admin flag. Raises NotFoundError."""
        ...


@runtime_checkable
class AppProvider(Protocol):
    def app(self, app_id: int, *, timeout: float | None = None) -> Application:
        """Return the application with this id. Raises NotFoundError."""
        ...


@runtime_checkable
class UserDirectory(UserSaver, UserProvider, Protocol):
    """Both user capabilities together."""
