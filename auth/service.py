"""
auth/service.py -- AuthService: register, login, admin check.

Each operation is one linear pipeline with early exits. Collaborator
failures are recognised by category at the call site (NotFoundError,
AlreadyExistsError, anything else) and re-raised as one of the kinds in
auth/errors.py. No raw storage, bcrypt or JOSE exception leaves this module.

Audit trail: every operation logs through an OpLogger tagged with its name
-- on entry, on each expected error branch, on unexpected failures (with
traceback) and on success. Passwords, hashes and tokens are never logged.

Login order is fixed: user lookup, password check, application lookup,
signing. Unknown email and wrong password both raise InvalidCredentialsError
and both pay for one bcrypt verify: an unknown email is checked against a
dummy hash computed once at construction, so neither the error nor the
response time tells a caller which emails are registered.

Layer rule: no imports from api/, core/config.py or storage/. Collaborators
arrive through the constructor as the protocols in auth/ports.py.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from auth.errors import (
    InternalError,
    InvalidAppIDError,
    InvalidCredentialsError,
    UserExistsError,
    UserNotFoundError,
)
from auth.passwords import CredentialHasher, HashingError, MalformedHashError
from auth.ports import AlreadyExistsError, AppProvider, NotFoundError, UserProvider, UserSaver
from auth.tokens import SigningError, TokenIssuer
from core.log import OpLogger

logger = logging.getLogger("tenantauth.auth")

_TIMING_DUMMY = "tenantauth_timing_dummy"


class AuthService:
    """Orchestrates CredentialHasher, TokenIssuer and the three collaborators.

    Holds no mutable state; one instance is shared by every request thread.

    Args:
        user_saver:    Creates users.
        user_provider: Looks users up by email and reports the admin flag.
        app_provider:  Resolves tenant applications and their secrets.
        token_ttl:     Lifetime of every issued token.
        hasher:        Anything with hash()/verify() -- CredentialHasher or
                       BoundedHasher. Defaults to CredentialHasher().
        issuer:        TokenIssuer; override to inject a clock.

    Raises:
        ValueError:   token_ttl is not positive.
        HashingError: the hasher cannot produce the login timing dummy.
    """

    def __init__(
        self,
        user_saver: UserSaver,
        user_provider: UserProvider,
        app_provider: AppProvider,
        token_ttl: timedelta,
        hasher: CredentialHasher | None = None,
        issuer: TokenIssuer | None = None,
    ) -> None:
        if token_ttl <= timedelta(0):
            raise ValueError("token_ttl must be positive")
        self._usr_saver = user_saver
        self._usr_provider = user_provider
        self._app_provider = app_provider
        self._token_ttl = token_ttl
        self._hasher = hasher or CredentialHasher()
        self._issuer = issuer or TokenIssuer()
        # Same hasher and cost as real users so the unknown-email path costs the same.
        self._dummy_hash = self._hasher.hash(_TIMING_DUMMY)

    @property
    def token_ttl(self) -> timedelta:
        return self._token_ttl

    def register_new_user(self, email: str, password: str, *, timeout: float | None = None) -> int:
        """Create a user and return the id the directory assigned.

        Raises:
            UserExistsError: email is already registered.
            InternalError:   hashing or storage failed.
        """
        op = "auth.RegisterNewUser"
        log = OpLogger(logger, op)
        log.info("registering new user")

        try:
            pass_hash = self._hasher.hash(password)
        except HashingError as exc:
            log.error("failed to hash password", exc_info=exc)
            raise InternalError(op) from exc

        try:
            user_id = self._usr_saver.save_user(email, pass_hash, timeout=timeout)
        except AlreadyExistsError as exc:
            log.warning("user already exists")
            raise UserExistsError(op) from exc
        except Exception as exc:
            log.error("failed to save user", exc_info=exc)
            raise InternalError(op) from exc

        log.info("user registered (user_id=%d)", user_id)
        return user_id

    def login(self, email: str, password: str, app_id: int, *, timeout: float | None = None) -> str:
        """Check credentials and return a token signed for app_id.

        Raises:
            InvalidCredentialsError: unknown email or wrong password.
            InvalidAppIDError:       app_id is not a provisioned application.
            InternalError:           storage, hash, or signing failure.
        """
        op = "auth.Login"
        log = OpLogger(logger, op)
        log.info("logging in (app_id=%d)", app_id)

        try:
            user = self._usr_provider.user(email, timeout=timeout)
        except NotFoundError as exc:
            log.warning("user not found")
            self._verify_dummy(password, log, op)
            raise InvalidCredentialsError(op) from exc
        except Exception as exc:
            log.error("failed to get user", exc_info=exc)
            raise InternalError(op) from exc

        try:
            matched = self._hasher.verify(user.pass_hash, password)
        except (MalformedHashError, HashingError) as exc:
            log.error("failed to verify password (user_id=%d)", user.id, exc_info=exc)
            raise InternalError(op) from exc
        if not matched:
            log.warning("invalid credentials (user_id=%d)", user.id)
            raise InvalidCredentialsError(op)

        try:
            app = self._app_provider.app(app_id, timeout=timeout)
        except NotFoundError as exc:
            log.warning("app not found (app_id=%d)", app_id)
            raise InvalidAppIDError(op) from exc
        except Exception as exc:
            log.error("failed to get app (app_id=%d)", app_id, exc_info=exc)
            raise InternalError(op) from exc

        try:
            token = self._issuer.issue(user, app, self._token_ttl)
        except SigningError as exc:
            log.error("failed to create token (app_id=%d)", app_id, exc_info=exc)
            raise InternalError(op) from exc

        log.info("user logged in (user_id=%d, app_id=%d)", user.id, app.id)
        return token

    def _verify_dummy(self, password: str, log: OpLogger, op: str) -> None:
        try:
            self._hasher.verify(self._dummy_hash, password)
        except (MalformedHashError, HashingError) as exc:
            log.error("failed to verify password against dummy hash", exc_info=exc)
            raise InternalError(op) from exc

    def is_admin(self, user_id: int, *, timeout: float | None = None) -> bool:
        """Return the admin flag stored for user_id.

        Raises:
            UserNotFoundError: no such user.
            InternalError:     storage failure.
        """
        op = "auth.IsAdmin"
        log = OpLogger(logger, op)
        log.info("checking if user is admin (user_id=%d)", user_id)

        try:
            is_admin = self._usr_provider.is_admin(user_id, timeout=timeout)
        except NotFoundError as exc:
            log.warning("user not found (user_id=%d)", user_id)
            raise UserNotFoundError(op) from exc
        except Exception as exc:
            log.error("failed to check if user is admin", exc_info=exc)
            raise InternalError(op) from exc

        log.info("checked admin flag (user_id=%d, is_admin=%s)", user_id, is_admin)
        return bool(is_admin)
