"""Authentication service: signup, login, access-token verification, refresh and logout."""

import logging
from datetime import UTC, datetime

import jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    AccountNotActive,
    Conflict,
    ExpiredToken,
    Forbidden,
    InvalidOrExpiredToken,
    InvalidToken,
    MissingToken,
    RevokedToken,
    Unauthenticated,
    UserNotFound,
    ValidationFailed,
)
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    refresh_token_lifetime,
    verify_password,
)
from app.models import RefreshToken, User
from app.models.user import ADMIN_ROLE
from app.schemas.auth import (
    AuthResponse,
    PendingSignupResponse,
    SignupRequest,
    UserProfile,
)
from app.services import settings_store

logger = logging.getLogger(__name__)

INACTIVE_STATUS_MESSAGES = {
    "pending": "Your account is pending admin approval.",
    "rejected": "Your account registration was rejected.",
    "suspended": "Your account has been suspended.",
}


def _user_id_from_payload(payload: dict, error: type[Exception]) -> int:
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise error("Invalid token payload")


def issue_session(db: Session, user: User) -> AuthResponse:
    """Issue an access token and a persisted refresh token for the user."""
    now = datetime.now(UTC).replace(microsecond=0)
    access_token = create_access_token(user.id, issued_at=now)
    refresh_token = create_refresh_token(user.id, issued_at=now)
    db.add(
        RefreshToken(
            user_id=user.id,
            token=refresh_token,
            created_at=now,
            expires_at=now + refresh_token_lifetime(),
        )
    )
    db.commit()
    profile = UserProfile.model_validate(user)
    return AuthResponse(
        **profile.model_dump(),
        access_token=access_token,
        refresh_token=refresh_token,
    )


def signup(db: Session, body: SignupRequest) -> AuthResponse | PendingSignupResponse:
    """
    Register a staff user under the current signup policy.

    With the manual_approval flag the account starts pending and no tokens are issued.
    The admin role may only be chosen while the admin_signup flag is set.
    """
    email = body.email.strip().lower()
    if db.query(User).filter(User.email == email).first() is not None:
        raise Conflict("User already exists")

    if not settings_store.is_known_role(db, body.role):
        raise ValidationFailed(f"Unknown role '{body.role}'")
    flags = settings_store.signup_flags(db)
    if body.role == ADMIN_ROLE and settings_store.ADMIN_SIGNUP not in flags:
        raise Forbidden("Admin signup is disabled")

    pending = settings_store.MANUAL_APPROVAL in flags
    user = User(
        name=body.name.strip(),
        email=email,
        password_hash=hash_password(body.password),
        role=body.role,
        phone_number=body.phone_number,
        department=body.department,
        status="pending" if pending else "active",
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("User already exists")
    db.refresh(user)
    logger.info(
        "User signed up",
        extra={"user_id": user.id, "role": user.role, "status": user.status},
    )

    if pending:
        return PendingSignupResponse()
    return issue_session(db, user)


def login(db: Session, email: str, password: str) -> AuthResponse:
    """Verify credentials and issue a new session. Raises Unauthenticated or AccountNotActive."""
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Login failed: bad credentials")
        raise Unauthenticated("Invalid email or password")
    if user.status != "active":
        logger.info(
            "Login refused for inactive account",
            extra={"user_id": user.id, "status": user.status},
        )
        raise AccountNotActive(
            INACTIVE_STATUS_MESSAGES.get(user.status, "Your account is not active.")
        )
    return issue_session(db, user)


def authenticate_access_token(db: Session, token: str | None) -> User:
    """
    Resolve the user behind a bearer access token. Performs no writes.

    Raises Unauthenticated (absent), ExpiredToken, InvalidToken or UserNotFound.
    """
    if not token:
        raise Unauthenticated()
    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise ExpiredToken()
    except jwt.PyJWTError:
        raise InvalidToken("Invalid or expired token")
    user_id = _user_id_from_payload(payload, InvalidToken)
    user = db.get(User, user_id)
    if user is None:
        raise UserNotFound()
    return user


def refresh_access_token(db: Session, token: str | None) -> str:
    """
    Exchange a stored refresh token for a new access token.

    The refresh token is not rotated; it stays valid until it expires or is revoked.
    """
    if not token:
        raise MissingToken()
    try:
        payload = decode_refresh_token(token)
    except jwt.PyJWTError:
        logger.info("Refresh refused: token failed verification")
        raise InvalidOrExpiredToken()
    user_id = _user_id_from_payload(payload, InvalidOrExpiredToken)

    user = db.get(User, user_id)
    stored = None
    if user is not None:
        stored = (
            db.query(RefreshToken)
            .filter(RefreshToken.user_id == user.id, RefreshToken.token == token)
            .first()
        )
    if stored is None:
        logger.info("Refresh refused: token revoked or owner missing", extra={"user_id": user_id})
        raise RevokedToken()
    return create_access_token(user.id)


def logout(db: Session, user_id: int, token: str | None) -> int:
    """
    Revoke one refresh token of the user. Idempotent; returns the number of rows removed.

    A single DELETE per token, so concurrent logouts of different tokens never drop
    each other's removal.
    """
    if not token:
        return 0
    removed = (
        db.query(RefreshToken)
        .filter(RefreshToken.user_id == user_id, RefreshToken.token == token)
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info("User logged out", extra={"user_id": user_id, "tokens_removed": removed})
    return removed
