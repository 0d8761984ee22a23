#!/usr/bin/env python3
"""
userhub -- user management API with bearer-token auth and token revocation.

Admin command line. Every route that creates users requires a token, so the
first account has to be created here.

Usage:
  python main.py serve [--host 127.0.0.1] [--port 8080] [--reload]
  python main.py create-user --username admin --email admin@example.com
  python main.py purge-revoked

Environment variables (see core/config.py for the full list):
  SECRET_KEY     Token signing key, at least 32 characters. Required unless DEBUG=true.
  DATABASE_URL   SQLAlchemy URL. Defaults to auth/userhub.db.
"""

import argparse
import getpass
import logging
import sys

from sqlalchemy.exc import IntegrityError

from auth.credentials import hash_password
from auth.errors import StoreError
from auth.models import User
from auth.revocation import RevocationLedger
from auth.schema import make_engine
from auth.store import UserStore
from core.config import get_settings

logger = logging.getLogger("userhub.cli")

# Same byte cap as api/models.py -- bcrypt's input limit.
_BCRYPT_MAX_BYTES = 72


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _read_password(args: argparse.Namespace) -> str:
    if args.password:
        return args.password
    first = getpass.getpass("Password: ")
    second = getpass.getpass("Repeat password: ")
    if first != second:
        print("  [!] Passwords do not match.")
        return ""
    return first


def _cmd_create_user(args: argparse.Namespace) -> int:
    password = _read_password(args)
    if not password:
        print("  [!] A non-empty password is required.")
        return 1
    if len(password.encode("utf-8")) > _BCRYPT_MAX_BYTES:
        print(f"  [!] Password must be at most {_BCRYPT_MAX_BYTES} bytes.")
        return 1

    engine = make_engine(get_settings().database_url)
    try:
        store = UserStore(engine)
        user_id = store.create_user(
            User(
                username=args.username,
                email=args.email,
                hashed_password=hash_password(password),
                role_id=args.role_id,
                client_id=args.client_id,
            )
        )
    except IntegrityError:
        print(f"  [!] A user named '{args.username}' or with email '{args.email}' already exists.")
        return 1
    except StoreError as e:
        print(f"  [!] Could not create user: {e}")
        return 1
    finally:
        engine.dispose()

    print(f"  Created user {args.username} (id={user_id}).")
    return 0


def _cmd_purge_revoked(args: argparse.Namespace) -> int:
    engine = make_engine(get_settings().database_url)
    try:
        ledger = RevocationLedger(engine)
        removed = ledger.purge_expired()
        remaining = ledger.count()
    except StoreError as e:
        print(f"  [!] Purge failed: {e}")
        return 1
    finally:
        engine.dispose()

    print(f"  Removed {removed} expired revocation entries; {remaining} remain.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="userhub",
        description="User management API with bearer-token auth.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8080)
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development).")
    serve.set_defaults(func=_cmd_serve)

    create = sub.add_parser("create-user", help="Create a user directly in the database.")
    create.add_argument("--username", required=True)
    create.add_argument("--email", required=True)
    create.add_argument("--password", help="Omit to be prompted (keeps it out of shell history).")
    create.add_argument("--role-id", type=int, default=0)
    create.add_argument("--client-id", type=int, default=0)
    create.set_defaults(func=_cmd_create_user)

    purge = sub.add_parser("purge-revoked", help="Delete revocation entries for already-expired tokens.")
    purge.set_defaults(func=_cmd_purge_revoked)

    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.WARNING, format="%(levelname)-5s %(name)s %(message)s")
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
