"""
auth/models.py -- Domain dataclasses for accounts and sessions.

Pattern: Data class (pure data container, zero logic beyond projections).
Stores and services do the work; these types own the domain shape.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_ROLE = "member"

# Profile attributes a member may edit. Never part of an auth decision.
PROFILE_FIELDS = ("organization", "title", "graduation_year", "phone")


@dataclass
class Account:
    """A registered alumni account.

    email is stored normalized (stripped, lowercased) by the store, which is
    what makes uniqueness case-insensitive.

    hashed_password is excluded from repr so an Account that ends up in a log
    line or traceback never carries the credential hash with it.
    """

    email: str
    display_name: str
    hashed_password: str = field(repr=False)
    role: str = DEFAULT_ROLE
    id: int | None = None
    organization: str | None = None
    title: str | None = None
    graduation_year: int | None = None  # cohort
    phone: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class PublicAccount:
    """The subset of an Account safe to return to any caller."""

    id: int
    email: str
    display_name: str

    @classmethod
    def from_account(cls, account: Account) -> PublicAccount:
        return cls(id=account.id, email=account.email, display_name=account.display_name)


@dataclass(frozen=True)
class AccountProfile:
    """Every Account field except the credential hash."""

    id: int
    email: str
    display_name: str
    role: str
    organization: str | None
    title: str | None
    graduation_year: int | None
    phone: str | None
    created_at: str | None

    @classmethod
    def from_account(cls, account: Account) -> AccountProfile:
        return cls(
            id=account.id,
            email=account.email,
            display_name=account.display_name,
            role=account.role,
            organization=account.organization,
            title=account.title,
            graduation_year=account.graduation_year,
            phone=account.phone,
            created_at=account.created_at,
        )


@dataclass(frozen=True)
class SessionClaim:
    """Identity and validity window carried inside a signed session token.

    Never persisted. issued_at and expires_at are UNIX seconds.
    """

    subject: int  # account id
    email: str
    issued_at: int
    expires_at: int


@dataclass(frozen=True)
class LoginResult:
    token: str
    account: PublicAccount
    expires_in: int
