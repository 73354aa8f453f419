"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts.

Pattern: Repository + Data Mapper.
AccountStore is the repository; _row_to_account is the mapper.
Service and route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  Email uniqueness is a UNIQUE constraint on the normalized (stripped,
  lowercased) email column. create() is a single INSERT; a concurrent
  registration for the same email loses at the database and surfaces as
  DuplicateAccountError. There is no "look up, then insert"
  sequence anywhere in this module [R1].

  The credential hash has its own write path (update_credential). The
  general update_fields() whitelist does not include it, so a profile edit
  can never overwrite a credential.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import Pool

from auth.errors import AccountNotFoundError, DuplicateAccountError
from auth.models import DEFAULT_ROLE, PROFILE_FIELDS, Account

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_accounts = Table(
    "accounts",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),  # normalized, see _normalize_email
    Column("display_name", String(255), nullable=False),
    Column("hashed_password", Text, nullable=False),
    Column("role", String(30), nullable=False, server_default=DEFAULT_ROLE),
    Column("organization", String(255)),
    Column("title", String(255)),
    Column("graduation_year", Integer),
    Column("phone", String(50)),
    Column("created_at", String(32), nullable=False),
)

# Columns update_fields() may touch. Keys are validated against this set
# before any SQL is built.
_MUTABLE_FIELDS: frozenset[str] = frozenset({"display_name", *PROFILE_FIELDS})


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _normalize_email(email: str) -> str:
    return email.strip().lower()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Account entities.

    Usage:
        store = AccountStore("sqlite:///alumnet.db")
        account = store.create(Account(email="a@x.com", display_name="A", hashed_password=h))
        store.find_by_email("A@X.com")   # same account
        store.close()

    poolclass overrides SQLAlchemy's pool choice. Shared-memory SQLite URIs
    (file:...?mode=memory) should pass StaticPool so every thread sees one
    connection and the database lives as long as the engine.
    """

    def __init__(self, db_url: str, poolclass: type[Pool] | None = None) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        engine_kwargs: dict = {"connect_args": connect_args}
        if poolclass is not None:
            engine_kwargs["poolclass"] = poolclass
        self.engine: Engine = create_engine(db_url, **engine_kwargs)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, account: Account) -> Account:
        """Insert a new account and return it as stored (id and created_at filled in).

        Raises DuplicateAccountError if the normalized email already exists.
        The UNIQUE constraint is the only duplicate check [R1].
        """
        email = _normalize_email(account.email)
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _accounts.insert().values(
                        email=email,
                        display_name=account.display_name,
                        hashed_password=account.hashed_password,
                        role=account.role or DEFAULT_ROLE,
                        organization=account.organization,
                        title=account.title,
                        graduation_year=account.graduation_year,
                        phone=account.phone,
                        created_at=_now_iso(),
                    )
                )
                conn.commit()
                account_id = result.inserted_primary_key[0]
        except IntegrityError as exc:
            raise DuplicateAccountError(email) from exc
        return self._require(account_id)

    def update_fields(self, account_id: int, **fields) -> Account:
        """Update profile fields on an existing account and return the new state.

        Accepted fields: display_name, organization, title, graduation_year, phone.
        Unknown keys raise ValueError rather than being silently ignored.
        Raises AccountNotFoundError if account_id does not exist.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown account fields: {sorted(unknown)!r}")
        if fields:
            with self.engine.connect() as conn:
                result = conn.execute(_accounts.update().where(_accounts.c.id == account_id).values(**fields))
                conn.commit()
            if result.rowcount == 0:
                raise AccountNotFoundError(account_id)
        return self._require(account_id)

    def update_credential(self, account_id: int, hashed_password: str) -> None:
        """Replace the stored credential hash. The only write path for that column."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _accounts.update().where(_accounts.c.id == account_id).values(hashed_password=hashed_password)
            )
            conn.commit()
        if result.rowcount == 0:
            raise AccountNotFoundError(account_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_by_email(self, email: str) -> Account | None:
        """Look up an account by email (case-insensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.email == _normalize_email(email))).fetchone()
        return _row_to_account(row) if row is not None else None

    def get_by_id(self, account_id: int) -> Account | None:
        """Look up an account by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.id == account_id)).fetchone()
        return _row_to_account(row) if row is not None else None

    def list_accounts(self) -> list[Account]:
        """Return all accounts, most recent cohort first, then by display name."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _accounts.select().order_by(
                    _accounts.c.graduation_year.is_(None),
                    _accounts.c.graduation_year.desc(),
                    _accounts.c.display_name,
                )
            ).fetchall()
        return [_row_to_account(r) for r in rows]

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def close(self) -> None:
        self.engine.dispose()

    def _require(self, account_id: int) -> Account:
        account = self.get_by_id(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        email=row.email,
        display_name=row.display_name,
        hashed_password=row.hashed_password,
        role=row.role,
        organization=row.organization,
        title=row.title,
        graduation_year=row.graduation_year,
        phone=row.phone,
        created_at=row.created_at,
    )
