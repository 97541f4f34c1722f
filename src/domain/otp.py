"""
One-time code issuance and verification.

OtpIssuer creates codes tagged with a purpose and a 10-minute expiry;
VerificationEngine redeems them. The stored `used` flag is the single
idempotency guard: a code can produce SUCCESS at most once, and every
non-SUCCESS path leaves the record untouched so a late-but-correct code
stays distinguishable from a wrong one.
"""

import logging
import secrets
from dataclasses import dataclass, field
from datetime import timedelta

from .exceptions import (
    AlreadyUsedError,
    DiagnosticsDisabled,
    DownstreamError,
    ExpiredError,
    IdentityError,
    InvalidCodeError,
)
from .ports import (
    Clock,
    EmailSender,
    OtpPurpose,
    OtpRepository,
    OTPRecord,
    VerifyResult,
    utcnow,
)

logger = logging.getLogger(__name__)

OTP_TTL_SECONDS = 600
OTP_LENGTH = 6


@dataclass
class OtpIssuer:
    """Generates and persists one-time codes."""

    repository: OtpRepository
    clock: Clock = field(default=utcnow)
    ttl_seconds: int = OTP_TTL_SECONDS
    code_length: int = OTP_LENGTH
    diagnostics_enabled: bool = False

    def issue(self, email: str, purpose: OtpPurpose) -> OTPRecord:
        """
        Issue a fresh code for (email, purpose), replacing any prior one.

        Sending the code is left to the caller; a delivery failure does
        not undo the issuance.

        Raises:
            DownstreamError: If the store write fails
        """
        now = self.clock()
        record = OTPRecord(
            email=email,
            code=self._generate_code(),
            purpose=purpose,
            created_at=now,
            expires_at=now + timedelta(seconds=self.ttl_seconds),
        )
        stored = self.repository.replace(record)
        logger.info("Issued %s code for %s (version %s)", purpose.value, email, stored.version)
        return stored

    def current(self, email: str, purpose: OtpPurpose) -> OTPRecord | None:
        """Return the unused, unexpired record for the key, if any."""
        record = self.repository.find(email, purpose)
        if record is None or record.used or record.is_expired(self.clock()):
            return None
        return record

    def peek(self, email: str, purpose: OtpPurpose) -> OTPRecord | None:
        """
        Diagnostic read of the live code for a key.

        Raises:
            DiagnosticsDisabled: Outside non-production configurations
        """
        if not self.diagnostics_enabled:
            raise DiagnosticsDisabled()
        return self.current(email, purpose)

    def prune_expired(self) -> int:
        """Delete expired records; intended for a periodic maintenance job."""
        removed = self.repository.delete_expired(self.clock())
        if removed:
            logger.info("Pruned %s expired code(s)", removed)
        return removed

    def _generate_code(self) -> str:
        """
        Generate a cryptographically secure numeric code.

        Returns string to preserve leading zeros.
        """
        return "".join(secrets.choice("0123456789") for _ in range(self.code_length))


@dataclass
class VerificationEngine:
    """Validates and single-use-consumes codes."""

    repository: OtpRepository
    clock: Clock = field(default=utcnow)

    def verify(self, email: str, code: str, purpose: OtpPurpose) -> VerifyResult:
        """
        Redeem a code for (email, purpose).

        Returns:
            NOT_FOUND if no code was ever issued for the key,
            INVALID_CODE on mismatch, ALREADY_USED on replay,
            EXPIRED past the window (record left unused), SUCCESS otherwise
        """
        record = self.repository.find(email, purpose)
        if record is None:
            return VerifyResult.NOT_FOUND

        if not secrets.compare_digest(record.code.encode(), code.encode()):
            return VerifyResult.INVALID_CODE

        if record.used:
            return VerifyResult.ALREADY_USED

        if record.is_expired(self.clock()):
            return VerifyResult.EXPIRED

        # Conditional flip: a concurrent redemption of the same code loses here
        if not self.repository.mark_used(email, purpose, code):
            return VerifyResult.ALREADY_USED

        logger.info("Consumed %s code for %s", purpose.value, email)
        return VerifyResult.SUCCESS


@dataclass
class CodeDelivery:
    """
    Sends issued codes through the EmailSender port.

    With strict=True (production) a delivery failure fails the request;
    otherwise it is logged and the code stays readable through the
    diagnostic path.
    """

    email_sender: EmailSender
    strict: bool = False

    def send(self, record: OTPRecord) -> bool:
        try:
            self.email_sender.send_code(record.email, record.code, record.purpose)
        except DownstreamError:
            if self.strict:
                raise
            logger.warning(
                "Delivery of %s code to %s failed; code remains issued",
                record.purpose.value,
                record.email,
            )
            return False
        return True


_FAILURES: dict[VerifyResult, type[IdentityError]] = {
    VerifyResult.NOT_FOUND: InvalidCodeError,
    VerifyResult.INVALID_CODE: InvalidCodeError,
    VerifyResult.EXPIRED: ExpiredError,
    VerifyResult.ALREADY_USED: AlreadyUsedError,
}


def raise_for_result(
    result: VerifyResult, not_found: type[IdentityError] = InvalidCodeError
) -> None:
    """Translate a non-SUCCESS verification result into its domain error."""
    if result is VerifyResult.SUCCESS:
        return
    if result is VerifyResult.NOT_FOUND:
        raise not_found()
    raise _FAILURES[result]()
