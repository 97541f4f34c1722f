"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the records the domain exchanges with infrastructure
and the interfaces (ports) adapters implement.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Protocol

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class OtpPurpose(str, Enum):
    """Purpose tag preventing a code issued for one flow from being used in another."""

    REGISTRATION = "REGISTRATION"
    PASSWORD_RESET = "PASSWORD_RESET"
    ACCOUNT_DELETION = "ACCOUNT_DELETION"


class Role(str, Enum):
    """Role claim carried on accounts and session tokens."""

    DEVELOPER = "DEVELOPER"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


class RegistrationState(str, Enum):
    """
    Registration lifecycle for a single email.

    Transitions:
    - UNREGISTERED -> AWAITING_VERIFICATION (register)
    - AWAITING_VERIFICATION -> AWAITING_VERIFICATION (register again, resend)
    - AWAITING_VERIFICATION -> ACTIVE (successful verify, terminal)
    """

    UNREGISTERED = "UNREGISTERED"
    AWAITING_VERIFICATION = "AWAITING_VERIFICATION"
    ACTIVE = "ACTIVE"


class VerifyResult(Enum):
    """
    Result of a code verification attempt.

    Only SUCCESS mutates the stored record (used flips to true).
    """

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    INVALID_CODE = "invalid_code"
    EXPIRED = "expired"
    ALREADY_USED = "already_used"


@dataclass(frozen=True)
class OTPRecord:
    email: str
    code: str
    purpose: OtpPurpose
    created_at: datetime
    expires_at: datetime
    used: bool = False
    version: int = 1

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class ProfileDraft:
    """Unactivated profile held until the registration code is verified."""

    username: str
    password_hash: str
    role: Role = Role.DEVELOPER


@dataclass(frozen=True)
class PendingRegistration:
    email: str
    draft: ProfileDraft
    created_at: datetime


@dataclass(frozen=True)
class Account:
    id: str
    email: str
    username: str
    password_hash: str
    role: Role
    email_verified: bool
    created_at: datetime
    updated_at: datetime


class OtpRepository(Protocol):
    """Port interface for one-time code persistence."""

    def replace(self, record: OTPRecord) -> OTPRecord:
        """
        Store a record as the only one for its (email, purpose) key.

        Any prior record for the key is overwritten in a single write and
        the stored version is bumped.

        Returns:
            The record as stored (with its final version)
        """
        ...

    def find(self, email: str, purpose: OtpPurpose) -> OTPRecord | None:
        """Return the current record for the key, used or not."""
        ...

    def mark_used(self, email: str, purpose: OtpPurpose, code: str) -> bool:
        """
        Flip used from false to true for the matching record.

        Returns:
            True if this call performed the flip, False if the record was
            already used, replaced or missing
        """
        ...

    def delete_for_email(self, email: str) -> None:
        """Delete every record for the email, regardless of purpose."""
        ...

    def delete_expired(self, now: datetime) -> int:
        """Delete records whose expiry is before now; return how many."""
        ...


class PendingRegistrationRepository(Protocol):
    """Port interface for registration drafts."""

    def put(self, email: str, draft: ProfileDraft, created_at: datetime) -> None:
        """Upsert the draft for the email (full overwrite)."""
        ...

    def get(self, email: str) -> PendingRegistration | None: ...

    def delete(self, email: str) -> None: ...


class AccountRepository(Protocol):
    """Port interface for durable accounts."""

    def find_by_email(self, email: str) -> Account | None: ...

    def find_by_id(self, account_id: str) -> Account | None: ...

    def create(
        self, email: str, draft: ProfileDraft, email_verified: bool, now: datetime
    ) -> Account:
        """
        Materialize an account.

        Raises:
            ConflictError: If an account already owns the email
        """
        ...

    def update_password(self, account_id: str, password_hash: str, now: datetime) -> bool:
        """Replace the stored hash; return False if the account is gone."""
        ...

    def delete(self, account_id: str) -> bool: ...


class EmailSender(Protocol):
    """Port interface for code delivery."""

    def send_code(self, email: str, code: str, purpose: OtpPurpose) -> None:
        """
        Deliver a one-time code.

        Raises:
            DownstreamError: If the provider rejected or could not be reached
        """
        ...


class Signer(Protocol):
    """Port interface for signed, expiring claims."""

    def sign(self, claims: dict[str, Any], ttl_seconds: int) -> str: ...

    def verify(self, token: str) -> dict[str, Any]:
        """
        Return the claims of a valid token.

        Raises:
            ExpiredTokenError: Signature valid but token expired
            InvalidTokenError: Malformed token or bad signature
        """
        ...
