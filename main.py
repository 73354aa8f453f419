#!/usr/bin/env python3
"""
Alumnet -- alumni account service.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080 --reload
  python main.py create-account a@x.com --name "Ada Lovelace" --cohort 2015
  python main.py verify-token <token>

Environment variables (see core/config.py for the full list):
  SECRET_KEY      Token signing key, at least 32 characters. Required unless DEBUG=true.
  DATABASE_URL    SQLAlchemy URL of the account store. Default sqlite:///alumnet.db
  BCRYPT_ROUNDS   bcrypt work factor. Default 12.
"""

import argparse
import getpass
import sys

from auth.errors import DuplicateAccountError, TokenVerificationError
from auth.passwords import CredentialHasher
from auth.service import AuthService
from auth.store import AccountStore
from auth.tokens import TokenIssuer
from core.config import get_settings


def _build_service() -> AuthService:
    settings = get_settings()
    issuer = TokenIssuer(settings.secret_key, lifetime_seconds=settings.token_expire_seconds)
    return AuthService(
        AccountStore(db_url=settings.database_url),
        CredentialHasher(rounds=settings.bcrypt_rounds),
        issuer,
    )


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _cmd_create_account(args: argparse.Namespace) -> int:
    """Register an account from the terminal. The password is never echoed."""
    secret = getpass.getpass("Password: ")
    if not secret:
        print("  [!] Password must not be empty.")
        return 1
    if secret != getpass.getpass("Repeat password: "):
        print("  [!] Passwords do not match.")
        return 1

    service = _build_service()
    try:
        profile = service.register(
            email=args.email,
            secret=secret,
            display_name=args.name,
            organization=args.organization,
            title=args.title,
            graduation_year=args.cohort,
        )
    except DuplicateAccountError:
        print(f"  [!] An account for '{args.email}' already exists.")
        return 1
    finally:
        service.store.close()
    print(f"  Created account {profile.id} <{profile.email}> ({profile.role})")
    return 0


def _cmd_verify_token(args: argparse.Namespace) -> int:
    """Decode a session token with this deployment's key. Useful when debugging 401s."""
    settings = get_settings()
    issuer = TokenIssuer(settings.secret_key, lifetime_seconds=settings.token_expire_seconds)
    try:
        claim = issuer.verify(args.token)
    except TokenVerificationError as exc:
        print(f"  [!] Rejected ({exc.reason}): {exc}")
        return 1
    print(f"  account={claim.subject} email={claim.email} iat={claim.issued_at} exp={claim.expires_at}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="alumnet",
        description="Alumni account service: registration, login, bearer-token sessions.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true", help="Auto-reload on code changes (development)")
    serve.set_defaults(func=_cmd_serve)

    create = sub.add_parser("create-account", help="Register an account (prompts for the password)")
    create.add_argument("email")
    create.add_argument("--name", required=True, help="Display name")
    create.add_argument("--organization")
    create.add_argument("--title")
    create.add_argument("--cohort", type=int, help="Graduation year")
    create.set_defaults(func=_cmd_create_account)

    verify = sub.add_parser("verify-token", help="Check a session token's signature and expiry")
    verify.add_argument("token")
    verify.set_defaults(func=_cmd_verify_token)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
