"""
auth/errors.py -- Error taxonomy for the credential and session core.

Services raise these; api/ translates them to HTTP responses. Keeping the
taxonomy here (and free of FastAPI) lets the service layer stay transport
agnostic and lets tests assert on precise failure kinds.

External collapsing rules:
  InvalidCredentialsError covers both "unknown email" and "wrong password".
  TokenVerificationError subclasses all surface as one "unauthenticated" 401.
  CorruptCredentialError is an operator problem, never a credentials problem.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every failure raised by auth/."""


class DuplicateAccountError(AuthError):
    """An account with this email already exists (unique constraint hit)."""

    def __init__(self, email: str) -> None:
        super().__init__(f"Account already exists for email={email}")
        self.email = email


class InvalidCredentialsError(AuthError):
    """Login or credential check failed. Deliberately carries no detail."""

    def __init__(self) -> None:
        super().__init__("Invalid email or password.")


class CorruptCredentialError(AuthError):
    """A stored credential hash is malformed and cannot be verified against."""


class AccountNotFoundError(AuthError):
    def __init__(self, account_id: int) -> None:
        super().__init__(f"Account {account_id} not found")
        self.account_id = account_id


class TokenVerificationError(AuthError):
    """A presented session token cannot be trusted."""

    reason = "invalid_signature"


class InvalidSignatureError(TokenVerificationError):
    """Signature mismatch, structural tamper, or undecodable token."""


class TokenExpiredError(TokenVerificationError):
    reason = "expired"
