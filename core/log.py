"""
core/log.py -- Logging setup and operation-tagged loggers.

Every auth operation logs through an OpLogger so each line carries the
operation name that produced it, both in the rendered message ("[auth.Login]
...") and as a structured `op` attribute on the LogRecord for handlers that
ship records elsewhere.

Layer rule: stdlib only. Imported by auth/, storage/, api/ and main.py.
"""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)-5s %(name)s %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once. Safe to call repeatedly."""
    logging.basicConfig(level=level, format=_FORMAT, datefmt=_DATEFMT)
    logging.getLogger().setLevel(level)


class OpLogger(logging.LoggerAdapter):
    """LoggerAdapter that tags every record with the originating operation.

    Usage:
        log = OpLogger(logger, "auth.Login")
        log.warning("user not found")   # -> "[auth.Login] user not found"
    """

    def __init__(self, logger: logging.Logger, op: str) -> None:
        super().__init__(logger, {"op": op})

    def process(self, msg, kwargs):
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("op", self.extra["op"])
        kwargs["extra"] = extra
        return f"[{self.extra['op']}] {msg}", kwargs
