"""
JWT signer adapter - Implements Signer protocol with python-jose.

One shared HMAC secret signs both session and reset tokens; callers pick
the ttl per token kind.
"""

from datetime import timedelta
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from src.domain.exceptions import ExpiredTokenError, InvalidTokenError
from src.domain.ports import Clock, utcnow


class JoseSigner:
    """
    Implements Signer protocol via python-jose.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", clock: Clock = utcnow) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._clock = clock

    def sign(self, claims: dict[str, Any], ttl_seconds: int) -> str:
        issued_at = self._clock()
        to_encode = dict(claims)
        to_encode.update(
            {"iat": issued_at, "exp": issued_at + timedelta(seconds=ttl_seconds)}
        )
        return jwt.encode(to_encode, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> dict[str, Any]:
        try:
            return jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError:
            raise ExpiredTokenError() from None
        except JWTError:
            raise InvalidTokenError() from None
