"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock for expiry tests
- In-memory repositories and fully wired domain services
- A recording email sender for reading issued codes
"""

from unittest.mock import Mock

import pytest

from src.adapters.repository.memory import (
    InMemoryAccountRepository,
    InMemoryOtpRepository,
    InMemoryPendingRegistrationRepository,
)
from src.adapters.signing.jose_signer import JoseSigner
from src.adapters.smtp.console import ConsoleEmailSender
from src.domain.credentials import CredentialService
from src.domain.otp import CodeDelivery, OtpIssuer, VerificationEngine
from src.domain.registration import RegistrationService
from src.domain.tokens import TokenIssuer
from tests.helpers import TEST_SECRET, FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def otp_repository() -> InMemoryOtpRepository:
    return InMemoryOtpRepository()


@pytest.fixture
def pending_repository() -> InMemoryPendingRegistrationRepository:
    return InMemoryPendingRegistrationRepository()


@pytest.fixture
def account_repository() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def email_sender() -> Mock:
    return Mock(spec=ConsoleEmailSender)


@pytest.fixture
def issuer(otp_repository: InMemoryOtpRepository, clock: FakeClock) -> OtpIssuer:
    return OtpIssuer(repository=otp_repository, clock=clock, diagnostics_enabled=True)


@pytest.fixture
def engine(otp_repository: InMemoryOtpRepository, clock: FakeClock) -> VerificationEngine:
    return VerificationEngine(repository=otp_repository, clock=clock)


@pytest.fixture
def tokens() -> TokenIssuer:
    return TokenIssuer(signer=JoseSigner(TEST_SECRET))


@pytest.fixture
def registration_service(
    account_repository: InMemoryAccountRepository,
    pending_repository: InMemoryPendingRegistrationRepository,
    issuer: OtpIssuer,
    engine: VerificationEngine,
    email_sender: Mock,
    tokens: TokenIssuer,
    clock: FakeClock,
) -> RegistrationService:
    return RegistrationService(
        accounts=account_repository,
        pending=pending_repository,
        issuer=issuer,
        engine=engine,
        delivery=CodeDelivery(email_sender=email_sender),
        tokens=tokens,
        clock=clock,
    )


@pytest.fixture
def credential_service(
    account_repository: InMemoryAccountRepository,
    issuer: OtpIssuer,
    engine: VerificationEngine,
    email_sender: Mock,
    tokens: TokenIssuer,
    clock: FakeClock,
) -> CredentialService:
    return CredentialService(
        accounts=account_repository,
        issuer=issuer,
        engine=engine,
        delivery=CodeDelivery(email_sender=email_sender),
        tokens=tokens,
        clock=clock,
    )
