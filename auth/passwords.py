"""
auth/passwords.py -- bcrypt password hashing.

Security design decisions:
  bcrypt directly (no passlib wrapper), same as the bcrypt 4.x+ guidance:
      passlib's wrap-bug check sends a >72-byte password that current bcrypt
      releases reject outright.

  72-byte limit: bcrypt only ever looked at the first 72 bytes of a secret,
      and bcrypt 5 raises ValueError for anything longer. Both hash() and
      verify() truncate to MAX_SECRET_BYTES so every input is accepted and a
      hash produced here always verifies against the same input. The HTTP
      layer rejects longer passwords outright (api/models.py), so only
      in-process callers ever reach the truncation.

  Encoding: str secrets are UTF-8 encoded with surrogatepass, so a lone
      surrogate is hashed like any other character instead of failing as a
      hashing error.

  Errors: verify() returns False for a wrong password and raises
      MalformedHashError for a hash that is not a bcrypt hash at all. The two
      must never be confused -- a corrupted row is a system failure, not a
      failed login.

CredentialHasher is stateless and thread-safe. BoundedHasher wraps it for
deployments that want to cap how many bcrypt computations run at once.

Layer rule: stdlib + bcrypt only.
"""

from __future__ import annotations

import threading

import bcrypt

DEFAULT_COST = 10
MAX_SECRET_BYTES = 72


class HashingError(Exception):
    """bcrypt could not produce a hash (e.g. no randomness available)."""


class MalformedHashError(Exception):
    """A stored hash is truncated, corrupted, or not a bcrypt hash."""


def secret_bytes(secret: str | bytes) -> bytes:
    """Return secret as the bytes bcrypt sees, before truncation."""
    return secret.encode("utf-8", "surrogatepass") if isinstance(secret, str) else bytes(secret)


def _to_bytes(secret: str | bytes) -> bytes:
    return secret_bytes(secret)[:MAX_SECRET_BYTES]


class CredentialHasher:
    """One-way hash and verify of plaintext secrets with a fixed bcrypt cost."""

    def __init__(self, cost: int = DEFAULT_COST) -> None:
        if not 4 <= cost <= 31:
            raise ValueError(f"bcrypt cost must be between 4 and 31, got {cost}")
        self.cost = cost

    def hash(self, secret: str | bytes) -> bytes:
        """Return a salted bcrypt hash of secret."""
        raw = _to_bytes(secret)
        try:
            return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=self.cost))
        except (ValueError, OSError) as exc:
            raise HashingError("failed to hash secret") from exc

    def verify(self, pass_hash: bytes | str, secret: str | bytes) -> bool:
        """Return True if secret matches pass_hash, False otherwise.

        Raises MalformedHashError if pass_hash cannot be parsed as bcrypt.
        """
        stored = pass_hash.encode("utf-8") if isinstance(pass_hash, str) else bytes(pass_hash)
        raw = _to_bytes(secret)
        try:
            return bcrypt.checkpw(raw, stored)
        except ValueError as exc:
            raise MalformedHashError("stored hash is not a valid bcrypt hash") from exc


class BoundedHasher:
    """Same interface as CredentialHasher; at most max_concurrent calls run at once.

    Extra callers block on a semaphore until a slot frees up, which keeps a
    burst of registrations or logins from saturating every CPU core.
    """

    def __init__(self, hasher: CredentialHasher, max_concurrent: int) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self._hasher = hasher
        self._slots = threading.BoundedSemaphore(max_concurrent)
        self.max_concurrent = max_concurrent

    def hash(self, secret: str | bytes) -> bytes:
        with self._slots:
            return self._hasher.hash(secret)

    def verify(self, pass_hash: bytes | str, secret: str | bytes) -> bool:
        with self._slots:
            return self._hasher.verify(pass_hash, secret)
