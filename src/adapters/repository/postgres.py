"""
PostgreSQL repository adapters - Implement the domain persistence ports.

This module provides the PostgreSQL implementations of the domain's
repository ports using psycopg3 with raw SQL.

Atomicity Design:
-----------------
Every write is a single statement scoped to one key, so no cross-row
locking is needed:

1. **OTP replacement**: INSERT ... ON CONFLICT (email, purpose) DO UPDATE
   overwrites the previous code and bumps a version column in one write.
   Two concurrent issuances for the same key end with exactly one live
   code (the last writer's), never a pair.

2. **OTP consumption**: UPDATE ... WHERE used = FALSE AND code = %s is the
   single idempotency guard. rowcount tells the caller whether it won.

3. **Account creation**: the UNIQUE constraint on email turns a concurrent
   duplicate activation into a ConflictError.

psycopg errors are translated into DownstreamError at this boundary.
"""

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

import psycopg
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from src.domain.exceptions import ConflictError, DownstreamError
from src.domain.ports import (
    Account,
    OtpPurpose,
    OTPRecord,
    PendingRegistration,
    ProfileDraft,
    Role,
)

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Translate driver and pool failures into DownstreamError."""
    try:
        yield
    except psycopg.errors.UniqueViolation:
        raise ConflictError() from None
    except psycopg.Error as e:
        logger.error("Store operation failed: %s - %s", operation, e)
        raise DownstreamError(f"Store operation failed: {operation}") from e


class PostgresOtpRepository:
    """
    Implements OtpRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    _COLUMNS = "email, code, purpose, created_at, expires_at, used, version"

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def replace(self, record: OTPRecord) -> OTPRecord:
        sql = """
            INSERT INTO email_otps (email, purpose, code, created_at, expires_at, used, version)
            VALUES (%s, %s, %s, %s, %s, FALSE, 1)
            ON CONFLICT (email, purpose) DO UPDATE
            SET code = EXCLUDED.code,
                created_at = EXCLUDED.created_at,
                expires_at = EXCLUDED.expires_at,
                used = FALSE,
                version = email_otps.version + 1
            RETURNING version
        """
        params = (
            record.email,
            record.purpose.value,
            record.code,
            record.created_at,
            record.expires_at,
        )
        with _store_errors("replace otp"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, params)
                row = cursor.fetchone()
                conn.commit()
        return OTPRecord(
            email=record.email,
            code=record.code,
            purpose=record.purpose,
            created_at=record.created_at,
            expires_at=record.expires_at,
            used=False,
            version=row[0],
        )

    def find(self, email: str, purpose: OtpPurpose) -> OTPRecord | None:
        sql = f"SELECT {self._COLUMNS} FROM email_otps WHERE email = %s AND purpose = %s"
        with _store_errors("find otp"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (email, purpose.value))
                row = cursor.fetchone()
        if row is None:
            return None
        return OTPRecord(
            email=row[0],
            code=row[1],
            purpose=OtpPurpose(row[2]),
            created_at=row[3],
            expires_at=row[4],
            used=row[5],
            version=row[6],
        )

    def mark_used(self, email: str, purpose: OtpPurpose, code: str) -> bool:
        sql = """
            UPDATE email_otps
            SET used = TRUE
            WHERE email = %s AND purpose = %s AND code = %s AND used = FALSE
        """
        with _store_errors("mark otp used"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (email, purpose.value, code))
                conn.commit()
                return cursor.rowcount == 1

    def delete_for_email(self, email: str) -> None:
        with _store_errors("delete otps"):
            with self._pool.connection() as conn:
                conn.execute("DELETE FROM email_otps WHERE email = %s", (email,))
                conn.commit()

    def delete_expired(self, now: datetime) -> int:
        with _store_errors("prune otps"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute("DELETE FROM email_otps WHERE expires_at < %s", (now,))
                conn.commit()
                return cursor.rowcount


class PostgresPendingRegistrationRepository:
    """Implements PendingRegistrationRepository protocol via psycopg3."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def put(self, email: str, draft: ProfileDraft, created_at: datetime) -> None:
        sql = """
            INSERT INTO pending_registrations (email, profile_draft, created_at)
            VALUES (%s, %s, %s)
            ON CONFLICT (email) DO UPDATE
            SET profile_draft = EXCLUDED.profile_draft,
                created_at = EXCLUDED.created_at
        """
        payload = {
            "username": draft.username,
            "password_hash": draft.password_hash,
            "role": draft.role.value,
        }
        with _store_errors("put pending registration"):
            with self._pool.connection() as conn:
                conn.execute(sql, (email, Jsonb(payload), created_at))
                conn.commit()

    def get(self, email: str) -> PendingRegistration | None:
        sql = "SELECT profile_draft, created_at FROM pending_registrations WHERE email = %s"
        with _store_errors("get pending registration"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (email,))
                row = cursor.fetchone()
        if row is None:
            return None
        payload = row[0]
        draft = ProfileDraft(
            username=payload["username"],
            password_hash=payload["password_hash"],
            role=Role(payload["role"]),
        )
        return PendingRegistration(email=email, draft=draft, created_at=row[1])

    def delete(self, email: str) -> None:
        with _store_errors("delete pending registration"):
            with self._pool.connection() as conn:
                conn.execute("DELETE FROM pending_registrations WHERE email = %s", (email,))
                conn.commit()


class PostgresAccountRepository:
    """Implements AccountRepository protocol via psycopg3."""

    _COLUMNS = "id, email, username, password_hash, role, email_verified, created_at, updated_at"

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def find_by_email(self, email: str) -> Account | None:
        return self._fetch_one(f"SELECT {self._COLUMNS} FROM accounts WHERE email = %s", email)

    def find_by_id(self, account_id: str) -> Account | None:
        # Non-UUID ids can never match; skip the round trip and the cast error
        try:
            account_uuid = str(uuid.UUID(account_id))
        except ValueError:
            return None
        return self._fetch_one(
            f"SELECT {self._COLUMNS} FROM accounts WHERE id = %s", account_uuid
        )

    def create(
        self, email: str, draft: ProfileDraft, email_verified: bool, now: datetime
    ) -> Account:
        sql = f"""
            INSERT INTO accounts (email, username, password_hash, role, email_verified,
                                  created_at, updated_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            RETURNING {self._COLUMNS}
        """
        params = (
            email,
            draft.username,
            draft.password_hash,
            draft.role.value,
            email_verified,
            now,
            now,
        )
        with _store_errors("create account"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, params)
                row = cursor.fetchone()
                conn.commit()
        return self._to_account(row)

    def update_password(self, account_id: str, password_hash: str, now: datetime) -> bool:
        sql = "UPDATE accounts SET password_hash = %s, updated_at = %s WHERE id = %s"
        with _store_errors("update password"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (password_hash, now, account_id))
                conn.commit()
                return cursor.rowcount == 1

    def delete(self, account_id: str) -> bool:
        with _store_errors("delete account"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute("DELETE FROM accounts WHERE id = %s", (account_id,))
                conn.commit()
                return cursor.rowcount == 1

    def _fetch_one(self, sql: str, value: str) -> Account | None:
        with _store_errors("find account"):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (value,))
                row = cursor.fetchone()
        return self._to_account(row) if row is not None else None

    @staticmethod
    def _to_account(row: tuple) -> Account:
        return Account(
            id=str(row[0]),
            email=row[1],
            username=row[2],
            password_hash=row[3],
            role=Role(row[4]),
            email_verified=row[5],
            created_at=row[6],
            updated_at=row[7],
        )


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %s migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info("Migration complete: %s", sql_file.name)
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
