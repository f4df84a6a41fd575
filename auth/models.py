"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores build these
from rows; the service and token issuer only read them.

Layer rule: stdlib only. No imports from api/, core/, or storage/.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field


@dataclass(frozen=True)
class User:
    """A registered account.

    pass_hash is the bcrypt hash as stored by the directory. It is excluded
    from repr() so a User can be logged or put in an assertion message
    without leaking the hash.
    """

    id: int
    email: str
    pass_hash: bytes = field(repr=False)


@dataclass(frozen=True)
class Application:
    """A tenant application. Tokens are signed with its own secret.

    Provisioned outside the auth core (see `main.py create-app`); the core
    only reads it.
    """

    id: int
    name: str
    secret: str = field(repr=False)


@dataclass(frozen=True)
class TokenClaims:
    """The fixed claim set carried by every access token.

    iat and exp are integer UNIX seconds; exp is always iat + TTL.
    """

    uid: int
    email: str
    app_id: int
    iat: int
    exp: int

    def to_dict(self) -> dict:
        return asdict(self)
