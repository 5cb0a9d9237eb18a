"""Password hashing and JWT creation/verification for access and refresh tokens."""

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from app.core.config import settings

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# Min/max lengths for credential validation.
EMAIL_MAX_LEN = 255
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def access_token_lifetime() -> timedelta:
    return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def refresh_token_lifetime() -> timedelta:
    return timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)


def _issue(
    sub: str | int,
    token_type: str,
    secret: str,
    lifetime: timedelta,
    issued_at: datetime | None,
    extra: dict[str, Any] | None = None,
) -> str:
    # Whole seconds: the encoded exp claim is truncated to seconds anyway.
    now = (issued_at or datetime.now(UTC)).replace(microsecond=0)
    payload: dict[str, Any] = {
        "sub": str(sub),
        "type": token_type,
        "iat": now,
        "exp": now + lifetime,
    }
    if extra:
        payload.update(extra)
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def create_access_token(sub: str | int, issued_at: datetime | None = None) -> str:
    """Create a short-lived JWT access token carrying only the user id."""
    return _issue(
        sub,
        ACCESS_TOKEN_TYPE,
        settings.JWT_SECRET.get_secret_value(),
        access_token_lifetime(),
        issued_at,
    )


def create_refresh_token(sub: str | int, issued_at: datetime | None = None) -> str:
    """
    Create a long-lived JWT refresh token for the user id.

    A random jti keeps tokens issued in the same second distinct. The caller must
    persist the token; an unpersisted refresh token is never accepted.
    """
    return _issue(
        sub,
        REFRESH_TOKEN_TYPE,
        settings.JWT_REFRESH_SECRET.get_secret_value(),
        refresh_token_lifetime(),
        issued_at,
        extra={"jti": uuid.uuid4().hex},
    )


def _decode(token: str, secret: str, token_type: str) -> dict[str, Any]:
    payload = jwt.decode(
        token,
        secret,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["exp", "sub"]},
    )
    if payload.get("type") != token_type:
        raise jwt.InvalidTokenError(f"Expected a {token_type} token")
    return payload


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate an access token; return payload (sub, type, exp, iat).
    Raises jwt.ExpiredSignatureError when expired, jwt.PyJWTError on any other failure.
    """
    return _decode(token, settings.JWT_SECRET.get_secret_value(), ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str) -> dict[str, Any]:
    """Decode and validate a refresh token. Raises jwt.PyJWTError on failure."""
    return _decode(
        token, settings.JWT_REFRESH_SECRET.get_secret_value(), REFRESH_TOKEN_TYPE
    )


def token_expiry(payload: dict[str, Any]) -> datetime:
    """Return the exp claim of a decoded payload as an aware datetime."""
    return datetime.fromtimestamp(int(payload["exp"]), tz=UTC)
