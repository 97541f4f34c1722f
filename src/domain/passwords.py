"""
Password hashing helpers (bcrypt).

Hashing and comparison live here so registration, login and the password
mutators share one cost factor and one timing-safe comparison path.
"""

import bcrypt

from .exceptions import ValidationError

# bcrypt only looks at the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72

# Compared against when no account exists so the bcrypt cost is always paid.
_DUMMY_BCRYPT_HASH = bcrypt.hashpw(b"dummy_password_for_timing_safety", bcrypt.gensalt(10)).decode()


def hash_password(password: str, rounds: int = 10) -> str:
    """
    Hash a password using bcrypt with cost factor >= 10.

    Raises:
        ValidationError: If the password does not fit bcrypt's input limit
    """
    encoded = password.encode()
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValidationError("Password is too long")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=max(rounds, 10))).decode()


def check_password(password: str, password_hash: str | None) -> bool:
    """
    Constant-time comparison of a password against a stored hash.

    A missing hash is compared against a dummy hash so that unknown
    accounts cost the same as known ones.
    """
    encoded = password.encode()
    if len(encoded) > MAX_PASSWORD_BYTES:
        encoded = encoded[:MAX_PASSWORD_BYTES]
        password_hash = None
    stored = password_hash if password_hash is not None else _DUMMY_BCRYPT_HASH
    matched = bcrypt.checkpw(encoded, stored.encode())
    return matched and password_hash is not None
