"""
auth/service.py -- Registration, login, and account operations.

AuthService is the only component in auth/ with business logic. It
orchestrates the CredentialHasher, TokenIssuer and AccountStore and
translates their failures into the auth/errors.py taxonomy.

Security:
  [C1] login() always spends one bcrypt verification, even for an unknown
       email, and raises the same InvalidCredentialsError for "no such
       account" and "wrong secret". Do not split these cases.

  [R1] register() does not look the email up first. Uniqueness is decided by
       the store's single INSERT; a lost race surfaces as DuplicateAccountError.

  Secret policy is intentionally minimal: non-empty. No strength rules.

  Nothing here logs a secret, hash, or token.
"""

from __future__ import annotations

import logging

from auth.errors import AccountNotFoundError, CorruptCredentialError, InvalidCredentialsError
from auth.models import DEFAULT_ROLE, Account, AccountProfile, LoginResult, PublicAccount
from auth.passwords import CredentialHasher
from auth.store import AccountStore
from auth.tokens import TokenIssuer

logger = logging.getLogger("alumnet.auth")


class AuthService:
    def __init__(self, store: AccountStore, hasher: CredentialHasher, issuer: TokenIssuer) -> None:
        self.store = store
        self.hasher = hasher
        self.issuer = issuer

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def register(
        self,
        email: str,
        secret: str,
        display_name: str,
        organization: str | None = None,
        title: str | None = None,
        graduation_year: int | None = None,
        phone: str | None = None,
    ) -> AccountProfile:
        """Create an account and return its profile view (never the hash).

        Raises DuplicateAccountError if the email is already registered.
        """
        if not secret:
            raise ValueError("secret must not be empty")
        if not display_name or not display_name.strip():
            raise ValueError("display_name must not be empty")

        account = self.store.create(
            Account(
                email=email,
                display_name=display_name.strip(),
                hashed_password=self.hasher.hash(secret),
                role=DEFAULT_ROLE,
                organization=organization,
                title=title,
                graduation_year=graduation_year,
                phone=phone,
            )
        )
        logger.info("Registered account id=%s", account.id)
        return AccountProfile.from_account(account)

    def login(self, email: str, secret: str) -> LoginResult:
        """Verify email + secret and issue a session token.

        Raises InvalidCredentialsError for an unknown email or a wrong secret
        (the two are indistinguishable) and lets CorruptCredentialError through.
        """
        account = self.store.find_by_email(email)
        if account is None:
            self.hasher.equalize(secret)  # [C1]
            logger.info("Login failed: invalid credentials")
            raise InvalidCredentialsError()

        if not self._check_secret(account, secret):
            logger.info("Login failed: invalid credentials")
            raise InvalidCredentialsError()

        token = self.issuer.issue(subject=account.id, email=account.email)
        logger.info("Login succeeded for account id=%s", account.id)
        return LoginResult(
            token=token,
            account=PublicAccount.from_account(account),
            expires_in=self.issuer.lifetime_seconds,
        )

    def change_secret(self, account_id: int, current_secret: str, new_secret: str) -> None:
        """Replace an account's credential after re-verifying the current one.

        Sessions already issued stay valid until they expire; there is no
        server-side session table to revoke them from.
        """
        if not new_secret:
            raise ValueError("new secret must not be empty")
        account = self._require(account_id)
        if not self._check_secret(account, current_secret):
            logger.info("Credential change refused for account id=%s", account_id)
            raise InvalidCredentialsError()
        self.store.update_credential(account_id, self.hasher.hash(new_secret))
        logger.info("Credential changed for account id=%s", account_id)

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def get_profile(self, account_id: int) -> AccountProfile:
        return AccountProfile.from_account(self._require(account_id))

    def update_profile(self, account_id: int, **fields) -> AccountProfile:
        """Apply profile edits. Identity fields (id, email, role, hash) are not editable."""
        return AccountProfile.from_account(self.store.update_fields(account_id, **fields))

    def list_profiles(self) -> list[AccountProfile]:
        return [AccountProfile.from_account(a) for a in self.store.list_accounts()]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require(self, account_id: int) -> Account:
        account = self.store.get_by_id(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    def _check_secret(self, account: Account, secret: str) -> bool:
        try:
            return self.hasher.verify(secret, account.hashed_password)
        except CorruptCredentialError:
            logger.error("Stored credential for account id=%s is corrupt", account.id)
            raise
