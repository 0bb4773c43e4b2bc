"""Database repository for account data."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from psycopg.rows import tuple_row
from psycopg.types.json import Json
from psycopg_pool import ConnectionPool

from .domain.account import Account, Address, Avatar

_COLUMNS = "account_id, name, email, password_hash, phone_number, avatar, addresses, role, created_at"

# email is indexed but deliberately not UNIQUE: uniqueness is a read-then-write
# pre-check in the services and concurrent duplicates are an accepted race.
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS accounts (
    account_id    TEXT PRIMARY KEY,
    name          TEXT NOT NULL,
    email         TEXT NOT NULL,
    password_hash TEXT NOT NULL,
    phone_number  TEXT,
    avatar        JSONB,
    addresses     JSONB NOT NULL DEFAULT '[]'::jsonb,
    role          TEXT NOT NULL DEFAULT 'user',
    created_at    TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS accounts_email_idx ON accounts (email);
CREATE INDEX IF NOT EXISTS accounts_created_at_idx ON accounts (created_at DESC);
"""


class AccountRepository:
    """Postgres-backed account persistence; one row per account, addresses embedded as JSONB."""

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    def ensure_schema(self) -> None:
        with self._pool.connection() as conn:
            conn.execute(SCHEMA_SQL)
            conn.commit()

    def find_by_email(self, email: str) -> Account | None:
        return self._fetch_one(f"SELECT {_COLUMNS} FROM accounts WHERE email = %s LIMIT 1", (email,))

    def find_by_id(self, account_id: str) -> Account | None:
        return self._fetch_one(f"SELECT {_COLUMNS} FROM accounts WHERE account_id = %s", (account_id,))

    def create(self, account: Account) -> Account:
        """Insert a new account row and return it as stored."""
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO accounts ({_COLUMNS})
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING {_COLUMNS}
                    """,
                    (
                        account.account_id,
                        account.name,
                        account.email,
                        account.password_hash,
                        account.phone_number,
                        self._avatar_json(account.avatar),
                        self._addresses_json(account.addresses),
                        account.role,
                        account.created_at,
                    ),
                )
                row = cur.fetchone()
                conn.commit()
        return self._map_record(row)

    def update(self, account: Account) -> Account:
        """Rewrite every mutable column of an account in a single statement."""
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    f"""
                    UPDATE accounts
                    SET name = %s, email = %s, password_hash = %s, phone_number = %s,
                        avatar = %s, addresses = %s, role = %s
                    WHERE account_id = %s
                    RETURNING {_COLUMNS}
                    """,
                    (
                        account.name,
                        account.email,
                        account.password_hash,
                        account.phone_number,
                        self._avatar_json(account.avatar),
                        self._addresses_json(account.addresses),
                        account.role,
                        account.account_id,
                    ),
                )
                row = cur.fetchone()
                conn.commit()
        return self._map_record(row) if row else account

    def delete(self, account_id: str) -> bool:
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM accounts WHERE account_id = %s", (account_id,))
                deleted = cur.rowcount > 0
                conn.commit()
        return deleted

    def list_newest_first(self) -> list[Account]:
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(f"SELECT {_COLUMNS} FROM accounts ORDER BY created_at DESC, account_id")
                return [self._map_record(row) for row in cur.fetchall()]

    def pull_address(self, account_id: str, address_id: str) -> Account | None:
        """Atomically drop the address with ``address_id`` and return the updated account."""
        return self._fetch_one(
            f"""
            UPDATE accounts
            SET addresses = COALESCE(
                (
                    SELECT jsonb_agg(entry ORDER BY position)
                    FROM jsonb_array_elements(addresses) WITH ORDINALITY AS elems(entry, position)
                    WHERE entry->>'address_id' IS DISTINCT FROM %s
                ),
                '[]'::jsonb
            )
            WHERE account_id = %s
            RETURNING {_COLUMNS}
            """,
            (address_id, account_id),
            commit=True,
        )

    def _fetch_one(self, query: str, params: tuple[Any, ...], *, commit: bool = False) -> Account | None:
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(query, params)
                row = cur.fetchone()
                if commit:
                    conn.commit()
        if not row:
            return None
        return self._map_record(row)

    @staticmethod
    def _avatar_json(avatar: Avatar | None) -> Json | None:
        return Json(asdict(avatar)) if avatar else None

    @staticmethod
    def _addresses_json(addresses: list[Address]) -> Json:
        return Json([asdict(address) for address in addresses])

    def _map_record(self, row: tuple) -> Account:
        """Convert a raw database tuple into the domain ``Account`` dataclass."""
        avatar = row[5]
        return Account(
            account_id=row[0],
            name=row[1],
            email=row[2],
            password_hash=row[3],
            phone_number=row[4],
            avatar=Avatar(**avatar) if avatar else None,
            addresses=[Address(**entry) for entry in (row[6] or [])],
            role=row[7],
            created_at=row[8],
        )
