"""Repository adapters - Database and in-memory implementations."""

from .memory import (
    InMemoryAccountRepository,
    InMemoryOtpRepository,
    InMemoryPendingRegistrationRepository,
)
from .postgres import (
    PostgresAccountRepository,
    PostgresOtpRepository,
    PostgresPendingRegistrationRepository,
    run_migrations,
)

__all__ = [
    "InMemoryAccountRepository",
    "InMemoryOtpRepository",
    "InMemoryPendingRegistrationRepository",
    "PostgresAccountRepository",
    "PostgresOtpRepository",
    "PostgresPendingRegistrationRepository",
    "run_migrations",
]
