"""
Token issuance - session and password-reset tokens.

Both kinds are signed with the same secret. Only reset tokens carry a
`purpose` claim, and that claim is what keeps one kind from being
accepted as the other.
"""

from dataclasses import dataclass

from .exceptions import InvalidTokenError
from .ports import Account, Role, Signer

RESET_PURPOSE = "password_reset"
RESET_TOKEN_TTL_SECONDS = 15 * 60
SESSION_TOKEN_TTL_SECONDS = 7 * 24 * 60 * 60


@dataclass(frozen=True)
class SessionClaims:
    account_id: str
    email: str
    role: Role


@dataclass
class TokenIssuer:
    """Mints and verifies signed tokens."""

    signer: Signer
    session_ttl_seconds: int = SESSION_TOKEN_TTL_SECONDS

    def mint_session(self, account: Account) -> str:
        claims = {"sub": account.id, "email": account.email, "role": account.role.value}
        return self.signer.sign(claims, self.session_ttl_seconds)

    def mint_reset(self, email: str) -> str:
        claims = {"sub": email, "email": email, "purpose": RESET_PURPOSE}
        return self.signer.sign(claims, RESET_TOKEN_TTL_SECONDS)

    def verify_session(self, token: str) -> SessionClaims:
        """
        Verify a session token.

        Raises:
            ExpiredTokenError: Token past its expiry
            InvalidTokenError: Bad signature, missing claims, or a
                purpose-scoped token presented as a session
        """
        claims = self.signer.verify(token)
        if "purpose" in claims:
            raise InvalidTokenError()
        try:
            return SessionClaims(
                account_id=str(claims["sub"]),
                email=str(claims["email"]),
                role=Role(claims["role"]),
            )
        except (KeyError, ValueError):
            raise InvalidTokenError() from None

    def verify_reset(self, token: str) -> str:
        """
        Verify a reset token and return the email it was issued for.

        Raises:
            ExpiredTokenError: Token past its 15-minute window
            InvalidTokenError: Bad signature or purpose other than password_reset
        """
        claims = self.signer.verify(token)
        if claims.get("purpose") != RESET_PURPOSE:
            raise InvalidTokenError()
        email = claims.get("email")
        if not isinstance(email, str) or not email:
            raise InvalidTokenError()
        return email
