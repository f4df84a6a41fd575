"""
auth/tokens.py -- Access token issuance (JWT, HS256, per-application secret).

Security design decisions:
  JWT: python-jose with HS256. Every token is signed with the secret of the
       application it was issued for, never a global key. Rotating or leaking
       one tenant's secret leaves every other tenant's tokens intact, and a
       relying party only needs its own secret to check tokens addressed to it.

  Claims: fixed set {uid, email, app_id, iat, exp}. iat and exp are integer
       seconds taken from one clock reading, so exp - iat is exactly the TTL.
       The password hash is never a claim.

  Issuance only: the auth core never verifies the tokens it mints.
       decode_token() is provided for relying parties and tests; it returns
       None on any failure, like the route-layer helpers that consume it.

Layer rule: stdlib + python-jose only. No imports from api/, core/, storage/.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from jose.exceptions import JOSEError

from auth.models import Application, TokenClaims, User

_ALGORITHM = "HS256"


class SigningError(Exception):
    """The token could not be serialized or signed."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """Builds and signs access tokens. Stateless apart from the clock.

    Args:
        clock: Zero-arg callable returning an aware datetime. Tests pass a
               fixed clock to assert exact iat/exp values.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock

    def claims_for(self, user: User, app: Application, ttl: timedelta) -> TokenClaims:
        issued_at = int(self._clock().timestamp())
        return TokenClaims(
            uid=user.id,
            email=user.email,
            app_id=app.id,
            iat=issued_at,
            exp=issued_at + int(ttl.total_seconds()),
        )

    def issue(self, user: User, app: Application, ttl: timedelta) -> str:
        """Return a signed token for user, scoped to app, valid for ttl."""
        if not app.secret:
            raise SigningError(f"app {app.id} has no signing secret")
        claims = self.claims_for(user, app, ttl)
        try:
            return jwt.encode(claims.to_dict(), app.secret, algorithm=_ALGORITHM)
        except (JOSEError, TypeError, ValueError) as exc:
            raise SigningError(f"failed to sign token for app {app.id}") from exc


def decode_token(token: str, secret: str) -> dict | None:
    """Verify signature and expiry with one application's secret.

    Returns the claims dict, or None if the token is malformed, expired,
    signed with a different secret, or missing a required claim.
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if not {"uid", "email", "app_id", "exp"} <= payload.keys():
        return None
    return payload
