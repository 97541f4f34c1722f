"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Payloads are bound to these before any state transition is attempted.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from src.domain.ports import Account, OtpPurpose, Role

_CODE_FIELD = Field(
    ...,
    min_length=4,
    max_length=12,
    pattern=r"^\d+$",
    description="Numeric one-time code received by email",
)
_PASSWORD_FIELD = Field(..., min_length=6, max_length=72, description="Password (6-72 characters)")


class RegisterRequest(BaseModel):
    """Request model for user registration."""

    email: EmailStr
    username: str = Field(..., min_length=1, max_length=64)
    password: str = _PASSWORD_FIELD
    role: Role = Role.DEVELOPER


class RegisterResponse(BaseModel):
    """Response model for successful registration."""

    message: str
    email: str
    pending: bool = True
    expires_in_seconds: int


class EmailRequest(BaseModel):
    """Request model carrying only an email."""

    email: EmailStr


class SentResponse(BaseModel):
    """Response model for operations that (re)send a code."""

    message: str
    email: str
    sent: bool = True


class VerifyOtpRequest(BaseModel):
    """Request model for code verification."""

    email: EmailStr
    otp: str = _CODE_FIELD


class AccountResponse(BaseModel):
    """Public view of an account."""

    id: str
    username: str
    email: str
    role: Role
    email_verified: bool

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        return cls(
            id=account.id,
            username=account.username,
            email=account.email,
            role=account.role,
            email_verified=account.email_verified,
        )


class AuthResponse(BaseModel):
    """Response model carrying an account and its session token."""

    account: AccountResponse
    session_token: str


class LoginRequest(BaseModel):
    """Request model for login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)


class ResetTokenResponse(BaseModel):
    """Response model for a verified reset code."""

    message: str
    reset_token: str
    expires_in_seconds: int


class ResetPasswordRequest(BaseModel):
    """Request model for redeeming a reset token."""

    reset_token: str = Field(..., min_length=1)
    new_password: str = _PASSWORD_FIELD


class ChangePasswordRequest(BaseModel):
    """Request model for an authenticated password change."""

    current_password: str = Field(..., min_length=1, max_length=72)
    new_password: str = _PASSWORD_FIELD


class SessionTokenResponse(BaseModel):
    """Response model carrying a fresh session token."""

    message: str
    session_token: str


class ConfirmDeletionRequest(BaseModel):
    """Request model for confirming account deletion."""

    otp: str = _CODE_FIELD


class MessageResponse(BaseModel):
    message: str


class LastOtpResponse(BaseModel):
    """Diagnostic view of the live code for an (email, purpose) key."""

    email: str
    otp: str
    purpose: OtpPurpose
    generated_at: datetime
    expires_at: datetime
    valid_for_seconds: int


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
