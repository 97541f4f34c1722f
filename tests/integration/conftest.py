"""
Shared fixtures for integration tests.

PostgreSQL-backed tests use DATABASE_URL and skip when it is unreachable.
"""

from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool

from tests.helpers import clean_tables, open_test_pool


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for integration tests."""
    pool = open_test_pool()
    yield pool
    pool.close()


@pytest.fixture
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Empty the identity tables before each test."""
    clean_tables(pool)
    yield
