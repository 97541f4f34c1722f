"""
Domain layer - Pure business logic with zero framework imports.

This package contains the core logic for OTP-gated registration, password
reset and token issuance. It defines its own port interfaces for
infrastructure abstraction, ensuring true hexagonal architecture decoupling.
"""

from .credentials import CredentialService
from .exceptions import (
    AlreadyUsedError,
    ConflictError,
    DiagnosticsDisabled,
    DownstreamError,
    ErrorKind,
    ExpiredError,
    ExpiredTokenError,
    IdentityError,
    InvalidCodeError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    StateError,
    UnverifiedError,
    ValidationError,
    WrongPasswordError,
)
from .otp import CodeDelivery, OtpIssuer, VerificationEngine
from .ports import (
    Account,
    AccountRepository,
    EmailSender,
    OtpPurpose,
    OtpRepository,
    OTPRecord,
    PendingRegistration,
    PendingRegistrationRepository,
    ProfileDraft,
    RegistrationState,
    Role,
    Signer,
    VerifyResult,
)
from .registration import RegistrationService
from .tokens import SessionClaims, TokenIssuer

__all__ = [
    "Account",
    "AccountRepository",
    "AlreadyUsedError",
    "CodeDelivery",
    "ConflictError",
    "CredentialService",
    "DiagnosticsDisabled",
    "DownstreamError",
    "EmailSender",
    "ErrorKind",
    "ExpiredError",
    "ExpiredTokenError",
    "IdentityError",
    "InvalidCodeError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "NotFoundError",
    "OTPRecord",
    "OtpIssuer",
    "OtpPurpose",
    "OtpRepository",
    "PendingRegistration",
    "PendingRegistrationRepository",
    "ProfileDraft",
    "RegistrationService",
    "RegistrationState",
    "Role",
    "SessionClaims",
    "Signer",
    "StateError",
    "TokenIssuer",
    "UnverifiedError",
    "ValidationError",
    "VerificationEngine",
    "VerifyResult",
    "WrongPasswordError",
]
