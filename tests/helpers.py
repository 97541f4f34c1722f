"""Test helpers shared across the unit, integration and adversarial suites."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest
from psycopg_pool import ConnectionPool, PoolTimeout

from src.adapters.repository.postgres import run_migrations
from src.config.settings import get_settings
from src.domain.ports import (
    AccountRepository,
    OtpPurpose,
    OtpRepository,
    PendingRegistrationRepository,
)

TEST_SECRET = "test-secret-key-with-at-least-32-bytes"


@dataclass
class Store:
    """One backend's repository set."""

    otps: OtpRepository
    pending: PendingRegistrationRepository
    accounts: AccountRepository


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def last_code(sender: Mock, purpose: OtpPurpose | None = None) -> str:
    """Return the code of the most recent send_code call (optionally for one purpose)."""
    for call in reversed(sender.send_code.call_args_list):
        _, code, sent_purpose = call[0]
        if purpose is None or sent_purpose == purpose:
            return code
    raise AssertionError("No code was sent")


def open_test_pool() -> ConnectionPool:
    """
    Open a pool against DATABASE_URL with the schema migrated.

    Skips the calling test module when PostgreSQL is not reachable.
    """
    settings = get_settings()
    pool = ConnectionPool(conninfo=settings.database_url, min_size=1, max_size=10, open=True)
    try:
        pool.wait(timeout=5.0)
    except PoolTimeout:
        pool.close()
        pytest.skip("PostgreSQL is not reachable")
    run_migrations(pool)
    return pool


def clean_tables(pool: ConnectionPool) -> None:
    with pool.connection() as conn:
        conn.execute("DELETE FROM email_otps")
        conn.execute("DELETE FROM pending_registrations")
        conn.execute("DELETE FROM accounts")
