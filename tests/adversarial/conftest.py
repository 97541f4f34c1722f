"""
Shared fixtures for adversarial tests.

Concurrency tests run against both the in-memory and the PostgreSQL
adapters; the PostgreSQL variants skip when DATABASE_URL is unreachable.
"""

from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.memory import (
    InMemoryAccountRepository,
    InMemoryOtpRepository,
    InMemoryPendingRegistrationRepository,
)
from src.adapters.repository.postgres import (
    PostgresAccountRepository,
    PostgresOtpRepository,
    PostgresPendingRegistrationRepository,
)
from tests.helpers import Store, clean_tables, open_test_pool


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for adversarial tests."""
    pool = open_test_pool()
    yield pool
    pool.close()


@pytest.fixture(params=["memory", pytest.param("postgres", marks=pytest.mark.integration)])
def store(request: pytest.FixtureRequest) -> Store:
    """Repository set for one backend, empty at the start of each test."""
    if request.param == "memory":
        return Store(
            otps=InMemoryOtpRepository(),
            pending=InMemoryPendingRegistrationRepository(),
            accounts=InMemoryAccountRepository(),
        )
    pool = request.getfixturevalue("pool")
    clean_tables(pool)
    return Store(
        otps=PostgresOtpRepository(pool),
        pending=PostgresPendingRegistrationRepository(pool),
        accounts=PostgresAccountRepository(pool),
    )
