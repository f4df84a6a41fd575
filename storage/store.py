"""
storage/store.py -- SQLAlchemy Core persistence for users and applications.

Pattern: Repository + Data Mapper. Storage is the repository; _row_to_user /
_row_to_app are the mappers. It satisfies all three collaborator contracts in
auth/ports.py (UserSaver, UserProvider, AppProvider); the composition root
hands the same instance to AuthService three times, once per capability.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Emails are compared exactly (case-sensitive); normalisation, if any, is the
  caller's decision.

Timeouts:
  Every public method takes a keyword-only `timeout` (seconds) and applies it
  to the connection before running its statement:
    SQLite      PRAGMA busy_timeout   -- bounds waits on a locked database
    PostgreSQL  statement_timeout     -- bounds the statement itself
  Other dialects ignore it. None falls back to default_timeout.

DB path: storage/tenantauth.db unless DATABASE_URL says otherwise.

Layer rule: no imports from api/ or auth/service.py.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import Column, Integer, LargeBinary, MetaData, String, Table, Text, create_engine, event, select, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError

from auth.models import Application, User
from storage.errors import AppExistsError, AppNotFoundError, UserExistsError, UserNotFoundError

logger = logging.getLogger("tenantauth.storage")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'tenantauth.db'}"
_DEFAULT_TIMEOUT = 5.0

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(320), nullable=False, unique=True),
    Column("pass_hash", LargeBinary, nullable=False),
    Column("is_admin", Integer, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
)

_apps = Table(
    "apps",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False, unique=True),
    Column("secret", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class Storage:
    """Repository for User and Application records.

    Usage:
        store = Storage("sqlite:///auth.db")
        app_id = store.create_app("billing", secret="...")
        uid = store.save_user("a@x.com", pass_hash)
        user = store.user("a@x.com")
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL, default_timeout: float = _DEFAULT_TIMEOUT) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.default_timeout = default_timeout
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    @contextmanager
    def _connect(self, timeout: float | None) -> Iterator[Connection]:
        """Open a connection with the per-call timeout already applied."""
        seconds = self.default_timeout if timeout is None else timeout
        with self.engine.connect() as conn:
            dialect = conn.dialect.name
            if dialect == "sqlite":
                conn.exec_driver_sql(f"PRAGMA busy_timeout = {int(seconds * 1000)}")
            elif dialect == "postgresql":
                conn.execute(
                    text("SELECT set_config('statement_timeout', :ms, true)"),
                    {"ms": str(int(seconds * 1000))},
                )
            yield conn

    # ------------------------------------------------------------------
    # UserSaver / UserProvider
    # ------------------------------------------------------------------

    def save_user(self, email: str, pass_hash: bytes, *, timeout: float | None = None) -> int:
        """Insert a user and return its id. Raises UserExistsError on duplicate email."""
        with self._connect(timeout) as conn:
            try:
                result = conn.execute(
                    _users.insert().values(
                        email=email,
                        pass_hash=pass_hash,
                        is_admin=0,
                        created_at=_now_iso(),
                    )
                )
                conn.commit()
            except IntegrityError as exc:
                conn.rollback()
                raise UserExistsError("user with this email already exists") from exc
            return result.inserted_primary_key[0]

    def user(self, email: str, *, timeout: float | None = None) -> User:
        """Look up a user by exact email. Raises UserNotFoundError."""
        with self._connect(timeout) as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        if row is None:
            raise UserNotFoundError("user not found")
        return _row_to_user(row)

    def is_admin(self, user_id: int, *, timeout: float | None = None) -> bool:
        """Return the admin flag for user_id. Raises UserNotFoundError."""
        with self._connect(timeout) as conn:
            row = conn.execute(select(_users.c.is_admin).where(_users.c.id == user_id)).fetchone()
        if row is None:
            raise UserNotFoundError(f"user {user_id} not found")
        return bool(row.is_admin)

    def set_admin(self, user_id: int, is_admin: bool = True, *, timeout: float | None = None) -> None:
        """Grant or revoke the admin flag. Provisioning only; the auth core never calls it."""
        with self._connect(timeout) as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == user_id).values(is_admin=1 if is_admin else 0)
            )
            conn.commit()
        if result.rowcount == 0:
            raise UserNotFoundError(f"user {user_id} not found")

    # ------------------------------------------------------------------
    # AppProvider
    # ------------------------------------------------------------------

    def app(self, app_id: int, *, timeout: float | None = None) -> Application:
        """Look up an application by id. Raises AppNotFoundError."""
        with self._connect(timeout) as conn:
            row = conn.execute(_apps.select().where(_apps.c.id == app_id)).fetchone()
        if row is None:
            raise AppNotFoundError(f"app {app_id} not found")
        return _row_to_app(row)

    def create_app(self, name: str, secret: str, app_id: int | None = None, *, timeout: float | None = None) -> int:
        """Provision an application and return its id.

        app_id may be given to pin a specific id (e.g. to match a relying
        party's configuration); otherwise the database assigns one.
        Raises AppExistsError if the name or id is taken.
        """
        if not secret:
            raise ValueError("app secret must not be empty")
        values = {"name": name, "secret": secret, "created_at": _now_iso()}
        if app_id is not None:
            values["id"] = app_id
        with self._connect(timeout) as conn:
            try:
                result = conn.execute(_apps.insert().values(**values))
                conn.commit()
            except IntegrityError as exc:
                conn.rollback()
                raise AppExistsError(f"app {name!r} already exists") from exc
            return result.inserted_primary_key[0]

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        try:
            with self._connect(None) as conn:
                conn.execute(text("SELECT 1"))
        except Exception:
            logger.exception("storage ping failed")
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(id=row.id, email=row.email, pass_hash=bytes(row.pass_hash))


def _row_to_app(row) -> Application:
    return Application(id=row.id, name=row.name, secret=row.secret)
