"""
API v1 routes.

Defines REST endpoints for the email OTP identity API:
registration, login, password reset, password change and account deletion.
"""

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    get_bearer_token,
    get_credential_service,
    get_otp_issuer,
    get_registration_service,
)
from src.api.errors import to_http_exception
from src.api.models import (
    AccountResponse,
    AuthResponse,
    ChangePasswordRequest,
    ConfirmDeletionRequest,
    EmailRequest,
    ErrorResponse,
    LastOtpResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    ResetTokenResponse,
    SentResponse,
    SessionTokenResponse,
    VerifyOtpRequest,
)
from src.config.settings import Settings, get_settings
from src.domain.credentials import CredentialService
from src.domain.exceptions import ErrorKind, IdentityError, NotFoundError
from src.domain.otp import OtpIssuer
from src.domain.ports import OtpPurpose, utcnow
from src.domain.registration import RegistrationService, normalize_email
from src.domain.tokens import RESET_TOKEN_TTL_SECONDS

router = APIRouter(prefix="/auth", tags=["auth"])

_CODE_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid code"},
    409: {"model": ErrorResponse, "description": "Code already used"},
    410: {"model": ErrorResponse, "description": "Code expired"},
    422: {"description": "Validation error"},
}
_BEARER_ERRORS = {
    401: {"model": ErrorResponse, "description": "Missing, invalid or expired session token"},
}


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"model": ErrorResponse, "description": "Email already in use"},
        422: {"description": "Validation error"},
    },
    summary="Register a new user",
    description="Hold the profile and send a verification code to the email. "
    "Registering again before verifying replaces the profile and the code.",
)
def register(
    request_data: RegisterRequest,
    service: RegistrationService = Depends(get_registration_service),
    settings: Settings = Depends(get_settings),
) -> RegisterResponse:
    try:
        email = service.register(
            request_data.email,
            request_data.username,
            request_data.password,
            request_data.role,
        )
    except IdentityError as e:
        raise to_http_exception(e) from None
    return RegisterResponse(
        message="Verification code sent",
        email=email,
        expires_in_seconds=settings.otp_ttl_seconds,
    )


@router.post(
    "/resend-otp",
    response_model=SentResponse,
    responses={400: {"model": ErrorResponse, "description": "No pending registration"}},
    summary="Resend the registration code",
)
def resend_otp(
    request_data: EmailRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> SentResponse:
    try:
        email = service.resend_otp(request_data.email)
    except IdentityError as e:
        raise to_http_exception(e) from None
    return SentResponse(message="New verification code sent", email=email)


@router.post(
    "/verify-otp",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_CODE_ERRORS,
    summary="Verify the registration code and activate the account",
)
def verify_otp(
    request_data: VerifyOtpRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> AuthResponse:
    try:
        account, session_token = service.verify_otp(request_data.email, request_data.otp)
    except IdentityError as e:
        raise to_http_exception(e) from None
    return AuthResponse(
        account=AccountResponse.from_account(account), session_token=session_token
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        403: {"model": ErrorResponse, "description": "Email not verified"},
    },
    summary="Login with email and password",
)
def login(
    request_data: LoginRequest,
    service: CredentialService = Depends(get_credential_service),
) -> AuthResponse:
    try:
        account, session_token = service.login(request_data.email, request_data.password)
    except IdentityError as e:
        raise to_http_exception(e) from None
    return AuthResponse(
        account=AccountResponse.from_account(account), session_token=session_token
    )


@router.post(
    "/forgot-password",
    response_model=SentResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Email not verified"},
        404: {"model": ErrorResponse, "description": "Account not found"},
    },
    summary="Request a password reset code",
)
def forgot_password(
    request_data: EmailRequest,
    service: CredentialService = Depends(get_credential_service),
    settings: Settings = Depends(get_settings),
) -> SentResponse:
    """
    Send a password reset code to a verified account.

    With UNIFY_RESET_ERRORS enabled, unknown and unverified emails get the
    same response as a successful request.
    """
    try:
        email = service.forgot_password(request_data.email)
    except IdentityError as e:
        if settings.unify_reset_errors and e.kind in (ErrorKind.NOT_FOUND, ErrorKind.UNVERIFIED):
            return SentResponse(
                message="Password reset code sent", email=normalize_email(request_data.email)
            )
        raise to_http_exception(e) from None
    return SentResponse(message="Password reset code sent", email=email)


@router.post(
    "/verify-reset-otp",
    response_model=ResetTokenResponse,
    responses=_CODE_ERRORS,
    summary="Verify the password reset code",
    description="Returns a reset token valid for 15 minutes.",
)
def verify_reset_otp(
    request_data: VerifyOtpRequest,
    service: CredentialService = Depends(get_credential_service),
) -> ResetTokenResponse:
    try:
        reset_token = service.verify_reset_otp(request_data.email, request_data.otp)
    except IdentityError as e:
        raise to_http_exception(e) from None
    return ResetTokenResponse(
        message="Reset code verified",
        reset_token=reset_token,
        expires_in_seconds=RESET_TOKEN_TTL_SECONDS,
    )


@router.post(
    "/reset-password",
    response_model=SessionTokenResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid or expired reset token"}},
    summary="Set a new password with a reset token",
)
def reset_password(
    request_data: ResetPasswordRequest,
    service: CredentialService = Depends(get_credential_service),
) -> SessionTokenResponse:
    try:
        session_token = service.reset_password(
            request_data.reset_token, request_data.new_password
        )
    except IdentityError as e:
        raise to_http_exception(e) from None
    return SessionTokenResponse(message="Password reset successful", session_token=session_token)


@router.post(
    "/change-password",
    response_model=SessionTokenResponse,
    responses={
        **_BEARER_ERRORS,
        400: {"model": ErrorResponse, "description": "Current password is incorrect"},
    },
    summary="Change the password of the authenticated user",
)
def change_password(
    request_data: ChangePasswordRequest,
    session_token: str = Depends(get_bearer_token),
    service: CredentialService = Depends(get_credential_service),
) -> SessionTokenResponse:
    try:
        new_token = service.change_password(
            session_token, request_data.current_password, request_data.new_password
        )
    except IdentityError as e:
        raise to_http_exception(e) from None
    return SessionTokenResponse(message="Password changed successfully", session_token=new_token)


@router.post(
    "/logout",
    response_model=MessageResponse,
    responses=_BEARER_ERRORS,
    summary="Logout",
    description="Tokens are stateless; the client discards its token.",
)
def logout(
    session_token: str = Depends(get_bearer_token),
    service: CredentialService = Depends(get_credential_service),
) -> MessageResponse:
    try:
        service.logout(session_token)
    except IdentityError as e:
        raise to_http_exception(e) from None
    return MessageResponse(message="Logout successful")


@router.post(
    "/delete-account/request",
    response_model=SentResponse,
    responses=_BEARER_ERRORS,
    summary="Request account deletion (sends a code)",
)
def request_account_deletion(
    session_token: str = Depends(get_bearer_token),
    service: CredentialService = Depends(get_credential_service),
) -> SentResponse:
    try:
        email = service.request_account_deletion(session_token)
    except IdentityError as e:
        raise to_http_exception(e) from None
    return SentResponse(message="Account deletion code sent", email=email)


@router.post(
    "/delete-account/resend",
    response_model=SentResponse,
    responses=_BEARER_ERRORS,
    summary="Resend the account deletion code",
)
def resend_account_deletion(
    session_token: str = Depends(get_bearer_token),
    service: CredentialService = Depends(get_credential_service),
) -> SentResponse:
    try:
        email = service.resend_account_deletion_otp(session_token)
    except IdentityError as e:
        raise to_http_exception(e) from None
    return SentResponse(message="Account deletion code sent", email=email)


@router.post(
    "/delete-account/confirm",
    response_model=MessageResponse,
    responses={**_BEARER_ERRORS, **_CODE_ERRORS},
    summary="Confirm account deletion with the code",
)
def confirm_account_deletion(
    request_data: ConfirmDeletionRequest,
    session_token: str = Depends(get_bearer_token),
    service: CredentialService = Depends(get_credential_service),
) -> MessageResponse:
    try:
        service.confirm_account_deletion(session_token, request_data.otp)
    except IdentityError as e:
        raise to_http_exception(e) from None
    return MessageResponse(message="Account deleted successfully")


@router.get(
    "/test/last-otp",
    response_model=LastOtpResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Not available in production"},
        404: {"model": ErrorResponse, "description": "No live code"},
    },
    tags=["auth - testing"],
    summary="Get the live code for an email (non-production only)",
)
def last_otp(
    email: str = Query(..., min_length=3),
    purpose: OtpPurpose = Query(OtpPurpose.REGISTRATION),
    issuer: OtpIssuer = Depends(get_otp_issuer),
) -> LastOtpResponse:
    try:
        record = issuer.peek(normalize_email(email), purpose)
        if record is None:
            raise NotFoundError("No live code found")
    except IdentityError as e:
        raise to_http_exception(e) from None
    remaining = int((record.expires_at - utcnow()).total_seconds())
    return LastOtpResponse(
        email=record.email,
        otp=record.code,
        purpose=record.purpose,
        generated_at=record.created_at,
        expires_at=record.expires_at,
        valid_for_seconds=max(remaining, 0),
    )
