"""
auth/errors.py -- Error taxonomy exposed by AuthService.

Five kinds, stable across operations. Callers (the HTTP layer, tests) match
on the class or on the `code` attribute; they never see a storage, bcrypt or
JOSE exception. InternalError's message is always generic -- the underlying
cause is chained (`raise ... from exc`) for server-side logs only.

Layer rule: stdlib only.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every error AuthService raises.

    Attributes:
        op:   Operation that produced the error, e.g. "auth.Login".
        code: Stable machine-readable kind.
    """

    code = "auth_error"
    default_message = "Authentication error."

    def __init__(self, op: str, message: str | None = None) -> None:
        self.op = op
        self.message = message or self.default_message
        super().__init__(f"{op}: {self.message}")


class InvalidCredentialsError(AuthError):
    """Unknown email or wrong password. Deliberately one kind for both."""

    code = "invalid_credentials"
    default_message = "Invalid email or password."


class InvalidAppIDError(AuthError):
    code = "invalid_app_id"
    default_message = "Invalid app id."


class UserExistsError(AuthError):
    code = "user_exists"
    default_message = "User already exists."


class UserNotFoundError(AuthError):
    code = "user_not_found"
    default_message = "User not found."


class InternalError(AuthError):
    code = "internal_error"
    default_message = "An unexpected error occurred."
