"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
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
from src.adapters.signing.jose_signer import JoseSigner
from src.adapters.smtp.console import ConsoleEmailSender
from src.adapters.smtp.resend import ResendEmailSender
from src.config.settings import Settings, get_settings
from src.domain.credentials import CredentialService
from src.domain.otp import CodeDelivery, OtpIssuer, VerificationEngine
from src.domain.ports import (
    AccountRepository,
    EmailSender,
    OtpRepository,
    PendingRegistrationRepository,
)
from src.domain.registration import RegistrationService
from src.domain.tokens import TokenIssuer

# Module-level singleton - ConsoleEmailSender is stateless
_console_sender = ConsoleEmailSender()


@dataclass
class Repositories:
    """Persistence adapters shared by every request of an application."""

    otps: OtpRepository
    pending: PendingRegistrationRepository
    accounts: AccountRepository


def build_repositories(settings: Settings, pool: ConnectionPool | None) -> Repositories:
    """Create the repository set selected by settings.storage_backend."""
    if settings.storage_backend == "memory":
        return Repositories(
            otps=InMemoryOtpRepository(),
            pending=InMemoryPendingRegistrationRepository(),
            accounts=InMemoryAccountRepository(),
        )
    if pool is None:
        raise RuntimeError("PostgreSQL storage requires a connection pool")
    return Repositories(
        otps=PostgresOtpRepository(pool),
        pending=PostgresPendingRegistrationRepository(pool),
        accounts=PostgresAccountRepository(pool),
    )


def build_email_sender(settings: Settings) -> EmailSender:
    """Create the email sender selected by settings.email_backend."""
    if settings.email_backend == "resend":
        return ResendEmailSender(
            api_key=settings.resend_api_key,
            sender=settings.mail_from,
            api_url=settings.resend_api_url,
            ttl_minutes=settings.otp_ttl_seconds // 60,
            timeout=settings.mail_timeout_seconds,
        )
    return _console_sender


def get_repositories(request: Request) -> Repositories:
    """
    Get repositories from app state.

    The set is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.repositories


def get_email_sender(request: Request) -> EmailSender:
    """Get the configured email sender, defaulting to the console sender."""
    return getattr(request.app.state, "email_sender", _console_sender)


def get_otp_issuer(
    repositories: Repositories = Depends(get_repositories),
    settings: Settings = Depends(get_settings),
) -> OtpIssuer:
    return OtpIssuer(
        repository=repositories.otps,
        ttl_seconds=settings.otp_ttl_seconds,
        code_length=settings.otp_length,
        diagnostics_enabled=not settings.is_production,
    )


def get_verification_engine(
    repositories: Repositories = Depends(get_repositories),
) -> VerificationEngine:
    return VerificationEngine(repository=repositories.otps)


def get_code_delivery(
    email_sender: EmailSender = Depends(get_email_sender),
    settings: Settings = Depends(get_settings),
) -> CodeDelivery:
    return CodeDelivery(email_sender=email_sender, strict=settings.is_production)


def get_token_issuer(settings: Settings = Depends(get_settings)) -> TokenIssuer:
    signer = JoseSigner(settings.jwt_secret, settings.jwt_algorithm)
    return TokenIssuer(
        signer=signer,
        session_ttl_seconds=settings.session_ttl_seconds,
    )


def get_registration_service(
    repositories: Repositories = Depends(get_repositories),
    issuer: OtpIssuer = Depends(get_otp_issuer),
    engine: VerificationEngine = Depends(get_verification_engine),
    delivery: CodeDelivery = Depends(get_code_delivery),
    tokens: TokenIssuer = Depends(get_token_issuer),
    settings: Settings = Depends(get_settings),
) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires together the repositories, code issuance and token issuance.
    """
    return RegistrationService(
        accounts=repositories.accounts,
        pending=repositories.pending,
        issuer=issuer,
        engine=engine,
        delivery=delivery,
        tokens=tokens,
        bcrypt_cost=settings.bcrypt_cost,
    )


def get_credential_service(
    repositories: Repositories = Depends(get_repositories),
    issuer: OtpIssuer = Depends(get_otp_issuer),
    engine: VerificationEngine = Depends(get_verification_engine),
    delivery: CodeDelivery = Depends(get_code_delivery),
    tokens: TokenIssuer = Depends(get_token_issuer),
    settings: Settings = Depends(get_settings),
) -> CredentialService:
    """Create credential service with injected dependencies."""
    return CredentialService(
        accounts=repositories.accounts,
        issuer=issuer,
        engine=engine,
        delivery=delivery,
        tokens=tokens,
        bcrypt_cost=settings.bcrypt_cost,
    )


# Bearer scheme for OpenAPI documentation; missing headers are rejected below
http_bearer = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
) -> str:
    """
    Extract the session token from an `Authorization: Bearer` header.

    Returns 401 when the header is missing or uses another scheme.
    Token validity is checked by the domain service.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized - No token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials
