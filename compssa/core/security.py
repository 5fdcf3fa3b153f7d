"""Password hashing and JWT creation/decoding for authentication."""

from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from compssa.core.config import settings

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"

# Input validation limits for account creation.
USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 50
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128
FULL_NAME_MIN_LEN = 2
FULL_NAME_MAX_LEN = 100

# bcrypt only looks at the first 72 bytes of input.
BCRYPT_MAX_BYTES = 72


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash (constant-time compare)."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _encode(payload: dict[str, Any], secret: str, minutes: int) -> str:
    now = datetime.now(UTC)
    payload = {**payload, "iat": now, "exp": now + timedelta(minutes=minutes)}
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def create_access_token(
    account_id: int,
    username: str,
    role: str,
    expire_minutes: int | None = None,
) -> str:
    """Create a signed access token carrying the account id, username and role.

    expire_minutes defaults to JWT_EXPIRE_MINUTES.
    """
    return _encode(
        {
            "sub": str(account_id),
            "username": username,
            "role": role,
            "type": TOKEN_TYPE_ACCESS,
        },
        settings.JWT_SECRET.get_secret_value(),
        expire_minutes or settings.JWT_EXPIRE_MINUTES,
    )


def create_refresh_token(account_id: int, expire_minutes: int | None = None) -> str:
    """Create a long-lived refresh token, signed with the refresh secret."""
    return _encode(
        {"sub": str(account_id), "type": TOKEN_TYPE_REFRESH},
        settings.JWT_REFRESH_SECRET.get_secret_value(),
        expire_minutes or settings.JWT_REFRESH_EXPIRE_MINUTES,
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate an access token; return its payload.
    Raises jwt.ExpiredSignatureError when expired, jwt.PyJWTError otherwise.
    """
    return jwt.decode(
        token,
        settings.JWT_SECRET.get_secret_value(),
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["sub", "exp", "iat"]},
    )


def decode_refresh_token(token: str) -> dict[str, Any]:
    """Decode and validate a refresh token; same error contract as decode_access_token."""
    return jwt.decode(
        token,
        settings.JWT_REFRESH_SECRET.get_secret_value(),
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["sub", "exp", "iat"]},
    )
