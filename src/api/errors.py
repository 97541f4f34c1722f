"""
Error mapping - Domain error kinds to HTTP responses.

Routes catch IdentityError once and translate it here, so every failure
of the taxonomy has exactly one status code. The kind is also exposed in
the X-Error-Kind header so clients can tell an expired code from a wrong
one without parsing messages.
"""

from fastapi import HTTPException, status

from src.domain.exceptions import ErrorKind, IdentityError

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 422,  # Unprocessable Content
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.STATE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_CODE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.EXPIRED: status.HTTP_410_GONE,
    ErrorKind.ALREADY_USED: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.UNVERIFIED: status.HTTP_403_FORBIDDEN,
    ErrorKind.INVALID_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.EXPIRED_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.WRONG_PASSWORD: status.HTTP_400_BAD_REQUEST,
    ErrorKind.DOWNSTREAM: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.DIAGNOSTICS_DISABLED: status.HTTP_403_FORBIDDEN,
}


def to_http_exception(error: IdentityError) -> HTTPException:
    """Build the HTTP response for a domain error."""
    return HTTPException(
        status_code=STATUS_BY_KIND[error.kind],
        detail=error.message if error.kind is ErrorKind.DOWNSTREAM else error.detail,
        headers={"X-Error-Kind": error.kind.value},
    )
