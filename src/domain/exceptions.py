"""
Domain exceptions - Semantic error types for the identity lifecycle.

Every error carries an ErrorKind tag so the API layer can map failures
to responses through a single table instead of per-route except blocks.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Tag identifying the category of an identity failure."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    STATE = "state"
    INVALID_CODE = "invalid_code"
    EXPIRED = "expired"
    ALREADY_USED = "already_used"
    INVALID_CREDENTIALS = "invalid_credentials"
    UNVERIFIED = "unverified"
    INVALID_TOKEN = "invalid_token"
    EXPIRED_TOKEN = "expired_token"
    WRONG_PASSWORD = "wrong_password"
    DOWNSTREAM = "downstream"
    DIAGNOSTICS_DISABLED = "diagnostics_disabled"


class IdentityError(Exception):
    """Base class for identity domain errors."""

    kind: ErrorKind = ErrorKind.VALIDATION
    message: str = "Request failed"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.message)
        self.detail = detail or self.message


class ValidationError(IdentityError):
    """Malformed or missing input."""

    kind = ErrorKind.VALIDATION
    message = "Invalid input"


class NotFoundError(IdentityError):
    """No account exists for the email."""

    kind = ErrorKind.NOT_FOUND
    message = "Account not found"


class ConflictError(IdentityError):
    """An active account already owns the email."""

    kind = ErrorKind.CONFLICT
    message = "Email already in use"


class StateError(IdentityError):
    """Operation is not a valid transition from the current state."""

    kind = ErrorKind.STATE
    message = "Operation not allowed in current state"


class InvalidCodeError(IdentityError):
    """Code is absent or does not match."""

    kind = ErrorKind.INVALID_CODE
    message = "Invalid OTP"


class ExpiredError(IdentityError):
    """Code matched but its validity window has passed."""

    kind = ErrorKind.EXPIRED
    message = "OTP has expired"


class AlreadyUsedError(IdentityError):
    """Code was already redeemed."""

    kind = ErrorKind.ALREADY_USED
    message = "OTP has already been used"


class InvalidCredentialsError(IdentityError):
    """Unknown email or wrong password at login."""

    kind = ErrorKind.INVALID_CREDENTIALS
    message = "Invalid credentials"


class UnverifiedError(IdentityError):
    """Account exists but its email was never verified."""

    kind = ErrorKind.UNVERIFIED
    message = "Email not verified"


class InvalidTokenError(IdentityError):
    """Token signature, structure or purpose is wrong."""

    kind = ErrorKind.INVALID_TOKEN
    message = "Invalid token"


class ExpiredTokenError(IdentityError):
    """Token signature is valid but it has expired."""

    kind = ErrorKind.EXPIRED_TOKEN
    message = "Token has expired"


class WrongPasswordError(IdentityError):
    """Current password does not match the stored hash."""

    kind = ErrorKind.WRONG_PASSWORD
    message = "Current password is incorrect"


class DownstreamError(IdentityError):
    """Store or mail collaborator failed."""

    kind = ErrorKind.DOWNSTREAM
    message = "Downstream service unavailable"


class DiagnosticsDisabled(IdentityError):
    """Diagnostic read path requested in production."""

    kind = ErrorKind.DIAGNOSTICS_DISABLED
    message = "Not available in production"
