#!/usr/bin/env python3
"""
tenant-auth -- user registration, login and per-application token issuance.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 9000
  python main.py create-app billing --secret "$(openssl rand -hex 32)"
  python main.py create-app billing --secret s3cr3t --id 7
  python main.py set-admin 42
  python main.py set-admin 42 --revoke

Environment variables (see core/config.py for the full list):
  DATABASE_URL        SQLAlchemy URL. Default: sqlite file under storage/.
  TOKEN_TTL_SECONDS   Lifetime of issued tokens. Default: 3600.
  BCRYPT_COST         bcrypt work factor. Default: 10.
  HASH_CONCURRENCY    Max simultaneous bcrypt calls; 0 = unbounded.
"""

from __future__ import annotations

import argparse
import logging
import sys

from core.app import StartupError, build_storage
from core.config import get_settings
from core.log import setup_logging
from storage.errors import AppExistsError, UserNotFoundError

logger = logging.getLogger("tenantauth.cli")


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "asgi:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


def _create_app(args: argparse.Namespace) -> int:
    storage = build_storage(get_settings())
    try:
        app_id = storage.create_app(args.name, args.secret, app_id=args.id)
    except AppExistsError:
        logger.error("app %r (or id %s) already exists", args.name, args.id)
        return 1
    except ValueError as exc:
        logger.error("%s", exc)
        return 1
    finally:
        storage.close()
    print(app_id)
    return 0


def _set_admin(args: argparse.Namespace) -> int:
    storage = build_storage(get_settings())
    try:
        storage.set_admin(args.user_id, not args.revoke)
    except UserNotFoundError:
        logger.error("user %d not found", args.user_id)
        return 1
    finally:
        storage.close()
    logger.info("user %d is_admin=%s", args.user_id, not args.revoke)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tenant-auth",
        description="Multi-tenant credential and token issuance service.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST setting)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: PORT setting)")
    serve.set_defaults(func=_serve)

    create_app = sub.add_parser("create-app", help="Provision a tenant application and print its id")
    create_app.add_argument("name", help="Unique application name")
    create_app.add_argument("--secret", required=True, help="Signing secret for this application's tokens")
    create_app.add_argument("--id", type=int, default=None, help="Pin a specific application id")
    create_app.set_defaults(func=_create_app)

    set_admin = sub.add_parser("set-admin", help="Grant (or revoke) the admin flag on a user")
    set_admin.add_argument("user_id", type=int)
    set_admin.add_argument("--revoke", action="store_true", help="Clear the flag instead of setting it")
    set_admin.set_defaults(func=_set_admin)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(get_settings().log_level)
    try:
        return args.func(args)
    except StartupError as exc:
        logger.error("%s", exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
