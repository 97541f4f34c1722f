"""
Credential domain service - login, password reset and account deletion.

Password Reset State Machine
============================

Precondition: the account exists and its email is verified.

    ACTIVE -> RESET_REQUESTED   (forgot_password: PASSWORD_RESET code issued)
    RESET_REQUESTED -> RESET_VERIFIED
                                (verify_reset_otp: code consumed, reset token minted)
    RESET_VERIFIED -> ACTIVE    (reset_password: password replaced, session minted)

change_password is the authenticated shortcut from ACTIVE to ACTIVE that
skips the code. Neither path revokes previously issued tokens.
"""

import logging
from dataclasses import dataclass, field

from .exceptions import (
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    StateError,
    UnverifiedError,
    WrongPasswordError,
)
from .otp import CodeDelivery, OtpIssuer, VerificationEngine, raise_for_result
from .passwords import check_password, hash_password
from .ports import Account, AccountRepository, Clock, OtpPurpose, utcnow
from .registration import normalize_email
from .tokens import TokenIssuer

logger = logging.getLogger(__name__)


@dataclass
class CredentialService:
    """Domain service for authenticated credential operations."""

    accounts: AccountRepository
    issuer: OtpIssuer
    engine: VerificationEngine
    delivery: CodeDelivery
    tokens: TokenIssuer
    clock: Clock = field(default=utcnow)
    bcrypt_cost: int = 10

    def login(self, email: str, password: str) -> tuple[Account, str]:
        """
        Authenticate with email and password.

        Unknown emails still pay the bcrypt cost against a dummy hash.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
            UnverifiedError: Password correct but email never verified
        """
        account = self.accounts.find_by_email(normalize_email(email))
        password_valid = check_password(
            password, account.password_hash if account is not None else None
        )
        if account is None or not password_valid:
            raise InvalidCredentialsError()
        if not account.email_verified:
            raise UnverifiedError()
        return account, self.tokens.mint_session(account)

    def authenticate(self, session_token: str) -> Account:
        """
        Resolve a session token to its account.

        Raises:
            InvalidTokenError: Bad token, reset token, or account gone
            ExpiredTokenError: Session expired
        """
        claims = self.tokens.verify_session(session_token)
        account = self.accounts.find_by_id(claims.account_id)
        if account is None:
            raise InvalidTokenError()
        return account

    def forgot_password(self, email: str) -> str:
        """
        Send a PASSWORD_RESET code to a verified account.

        Raises:
            NotFoundError: No account for the email
            UnverifiedError: Account email was never verified
        """
        normalized_email = normalize_email(email)
        account = self.accounts.find_by_email(normalized_email)
        if account is None:
            raise NotFoundError()
        if not account.email_verified:
            raise UnverifiedError()

        record = self.issuer.issue(normalized_email, OtpPurpose.PASSWORD_RESET)
        self.delivery.send(record)
        return normalized_email

    def verify_reset_otp(self, email: str, code: str) -> str:
        """
        Consume a PASSWORD_RESET code and mint a 15-minute reset token.

        Raises:
            StateError: No reset was ever requested for the email
            InvalidCodeError, ExpiredError, AlreadyUsedError: Code rejected
        """
        normalized_email = normalize_email(email)
        raise_for_result(
            self.engine.verify(normalized_email, code, OtpPurpose.PASSWORD_RESET),
            not_found=StateError,
        )
        return self.tokens.mint_reset(normalized_email)

    def reset_password(self, reset_token: str, new_password: str) -> str:
        """
        Redeem a reset token for a new password.

        Returns:
            A fresh session token

        Raises:
            InvalidTokenError: Bad signature or purpose other than password_reset
            ExpiredTokenError: Reset window passed
            NotFoundError: Account no longer exists
        """
        email = self.tokens.verify_reset(reset_token)
        account = self.accounts.find_by_email(email)
        if account is None:
            raise NotFoundError()

        self._update_password(account, new_password)
        logger.info("Password reset for %s", email)
        return self.tokens.mint_session(account)

    def change_password(
        self, session_token: str, current_password: str, new_password: str
    ) -> str:
        """
        Replace the password of an authenticated account.

        Raises:
            WrongPasswordError: current_password mismatch (no mutation)
        """
        account = self.authenticate(session_token)
        if not check_password(current_password, account.password_hash):
            raise WrongPasswordError()

        self._update_password(account, new_password)
        logger.info("Password changed for %s", account.email)
        return self.tokens.mint_session(account)

    def logout(self, session_token: str) -> Account:
        # Tokens are stateless; logging out only confirms the token was valid.
        return self.authenticate(session_token)

    def request_account_deletion(self, session_token: str) -> str:
        account = self.authenticate(session_token)
        record = self.issuer.issue(account.email, OtpPurpose.ACCOUNT_DELETION)
        self.delivery.send(record)
        return account.email

    def resend_account_deletion_otp(self, session_token: str) -> str:
        """Re-send the live deletion code, or issue a new one if none is live."""
        account = self.authenticate(session_token)
        record = self.issuer.current(account.email, OtpPurpose.ACCOUNT_DELETION)
        if record is None:
            record = self.issuer.issue(account.email, OtpPurpose.ACCOUNT_DELETION)
        self.delivery.send(record)
        return account.email

    def confirm_account_deletion(self, session_token: str, code: str) -> str:
        """
        Consume an ACCOUNT_DELETION code and delete the account.

        Raises:
            StateError: Deletion was never requested
            InvalidCodeError, ExpiredError, AlreadyUsedError: Code rejected
        """
        account = self.authenticate(session_token)
        raise_for_result(
            self.engine.verify(account.email, code, OtpPurpose.ACCOUNT_DELETION),
            not_found=StateError,
        )
        if not self.accounts.delete(account.id):
            raise NotFoundError()
        self.issuer.repository.delete_for_email(account.email)
        logger.info("Account deleted for %s", account.email)
        return account.email

    def _update_password(self, account: Account, new_password: str) -> None:
        password_hash = hash_password(new_password, self.bcrypt_cost)
        if not self.accounts.update_password(account.id, password_hash, self.clock()):
            raise NotFoundError()
