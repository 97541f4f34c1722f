"""
Registration domain service - OTP-gated account creation.

Registration State Machine
==========================

States:
- UNREGISTERED: No account and no pending draft for the email
- AWAITING_VERIFICATION: A draft is held and a REGISTRATION code is live
- ACTIVE: Account materialized with email_verified = True (terminal)

Transitions:
    UNREGISTERED          -> AWAITING_VERIFICATION  (register)
    AWAITING_VERIFICATION -> AWAITING_VERIFICATION  (register again: draft
                                                     overwritten, code re-issued;
                                                     resend: code re-issued)
    AWAITING_VERIFICATION -> ACTIVE                 (verify_otp success)

Rejected:
    register on ACTIVE              -> ConflictError
    resend_otp without a draft      -> StateError
    verify_otp Invalid/Expired/Used -> state unchanged

Multi-step sequences are not transactional. A code consumed by a verify
whose account write then fails stays consumed; the client recovers with
resend_otp, which is why verification is the single consuming step.
"""

import logging
from dataclasses import dataclass, field

from .exceptions import ConflictError, StateError, ValidationError
from .otp import CodeDelivery, OtpIssuer, VerificationEngine, raise_for_result
from .passwords import hash_password
from .ports import (
    Account,
    AccountRepository,
    Clock,
    OtpPurpose,
    PendingRegistrationRepository,
    ProfileDraft,
    RegistrationState,
    Role,
    utcnow,
)
from .tokens import TokenIssuer

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """
    Normalize email address for consistent storage and lookup.

    Applies: strip whitespace + lowercase
    """
    return email.strip().lower()


@dataclass
class RegistrationService:
    """
    Domain service for user registration.

    Orchestrates the registration flow: email normalization,
    password hashing, draft persistence, code issuance and activation.
    """

    accounts: AccountRepository
    pending: PendingRegistrationRepository
    issuer: OtpIssuer
    engine: VerificationEngine
    delivery: CodeDelivery
    tokens: TokenIssuer
    clock: Clock = field(default=utcnow)
    bcrypt_cost: int = 10

    def register(
        self, email: str, username: str, password: str, role: Role = Role.DEVELOPER
    ) -> str:
        """
        Hold a profile draft and send a REGISTRATION code.

        Re-registering while awaiting verification overwrites the draft
        and invalidates the previous code.

        Returns:
            Normalized email address

        Raises:
            ValidationError: Malformed input (nothing is written)
            ConflictError: An account already owns the email
        """
        normalized_email = normalize_email(email)
        if "@" not in normalized_email or not username.strip():
            raise ValidationError()

        if self.accounts.find_by_email(normalized_email) is not None:
            raise ConflictError()

        draft = ProfileDraft(
            username=username.strip(),
            password_hash=hash_password(password, self.bcrypt_cost),
            role=role,
        )
        self.pending.put(normalized_email, draft, self.clock())

        record = self.issuer.issue(normalized_email, OtpPurpose.REGISTRATION)
        self.delivery.send(record)
        return normalized_email

    def resend_otp(self, email: str) -> str:
        """
        Issue a fresh REGISTRATION code; the draft is left untouched.

        Raises:
            StateError: No registration is awaiting verification
        """
        normalized_email = normalize_email(email)
        if self.pending.get(normalized_email) is None:
            raise StateError("No pending registration found")

        record = self.issuer.issue(normalized_email, OtpPurpose.REGISTRATION)
        self.delivery.send(record)
        return normalized_email

    def verify_otp(self, email: str, code: str) -> tuple[Account, str]:
        """
        Consume the REGISTRATION code and activate the account.

        Returns:
            The materialized account and a fresh session token

        Raises:
            InvalidCodeError, ExpiredError, AlreadyUsedError: Code rejected
            StateError: Code valid but the draft is gone
            ConflictError: Account appeared concurrently for the email
        """
        normalized_email = normalize_email(email)
        raise_for_result(
            self.engine.verify(normalized_email, code, OtpPurpose.REGISTRATION)
        )

        registration = self.pending.get(normalized_email)
        if registration is None:
            raise StateError("No pending registration found")

        account = self.accounts.create(
            normalized_email, registration.draft, email_verified=True, now=self.clock()
        )
        self.pending.delete(normalized_email)
        logger.info("Account activated for %s", normalized_email)
        return account, self.tokens.mint_session(account)

    def registration_state(self, email: str) -> RegistrationState:
        normalized_email = normalize_email(email)
        if self.accounts.find_by_email(normalized_email) is not None:
            return RegistrationState.ACTIVE
        if self.pending.get(normalized_email) is not None:
            return RegistrationState.AWAITING_VERIFICATION
        return RegistrationState.UNREGISTERED
