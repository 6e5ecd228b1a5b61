"""Database repository for user account data."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from psycopg import errors as pg_errors
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool

from .domain.account import Account
from .domain.contracts import CreateAccountInput
from .domain.errors import AlreadyExistsError

_COLUMNS = "id, email, password, name, is_active, created_at, updated_at"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id UUID PRIMARY KEY,
    email TEXT NOT NULL,
    password TEXT NOT NULL,
    name TEXT NOT NULL,
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMPTZ NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL,
    CONSTRAINT users_email_key UNIQUE (email)
);
CREATE INDEX IF NOT EXISTS users_created_at_idx ON users (created_at DESC);
"""


class AccountRepository:
    """Postgres-backed credential store; the UNIQUE(email) constraint is authoritative."""

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    def ensure_schema(self) -> None:
        """Create the ``users`` table and its indexes when missing."""
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
            conn.commit()

    def create_account(self, payload: CreateAccountInput) -> Account:
        """Insert an account row and return the stored aggregate.

        Raises
        ------
        AlreadyExistsError
            When another row already owns ``payload.email``.
        """
        account_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                try:
                    cur.execute(
                        f"""
                        INSERT INTO users ({_COLUMNS})
                        VALUES (%s, %s, %s, %s, %s, %s, %s)
                        RETURNING {_COLUMNS}
                        """,
                        (
                            account_id,
                            payload.email,
                            payload.password_hash,
                            payload.name,
                            payload.is_active,
                            now,
                            now,
                        ),
                    )
                except pg_errors.UniqueViolation as exc:
                    raise AlreadyExistsError() from exc
                record = cur.fetchone()
            conn.commit()
        return self._map_record(record)

    def find_by_email(self, email: str) -> Account | None:
        """Fetch an account by its exact (case-sensitive) email."""
        return self._fetch_one(f"SELECT {_COLUMNS} FROM users WHERE email = %s", (email,))

    def find_by_id(self, account_id: str) -> Account | None:
        """Fetch an account by id; identifiers that are not UUIDs are a miss."""
        try:
            uuid.UUID(account_id)
        except ValueError:
            return None
        return self._fetch_one(f"SELECT {_COLUMNS} FROM users WHERE id = %s", (account_id,))

    def list_accounts(self) -> list[Account]:
        """Return every account, most recently created first."""
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(f"SELECT {_COLUMNS} FROM users ORDER BY created_at DESC")
                rows = cur.fetchall()
        return [self._map_record(row) for row in rows]

    def _fetch_one(self, query: str, params: tuple) -> Account | None:
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(query, params)
                row = cur.fetchone()
                if not row:
                    return None
        return self._map_record(row)

    def _map_record(self, row: tuple) -> Account:
        """Convert a raw database tuple into the domain ``Account`` dataclass."""
        return Account(
            id=str(row[0]),
            email=row[1],
            password_hash=row[2],
            name=row[3],
            is_active=row[4],
            created_at=row[5],
            updated_at=row[6],
        )
