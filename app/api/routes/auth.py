"""Auth endpoints and dependencies (get_current_user, require_admin)."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import Forbidden
from app.models.user import ADMIN_ROLE
from app.schemas.auth import (
    AccessTokenResponse,
    AuthResponse,
    CurrentUser,
    LoginRequest,
    MessageResponse,
    PendingSignupResponse,
    RefreshRequest,
    SignupRequest,
    UserProfile,
)
from app.services import auth as auth_service

router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser:
    """Dependency: require a valid Bearer access token and return the current user. Raises 401."""
    token = credentials.credentials if credentials is not None else None
    user = auth_service.authenticate_access_token(db, token)
    return CurrentUser.model_validate(user)


def require_admin(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Dependency: require authenticated user with role 'admin'. Raises 403 for non-admin."""
    if current_user.role != ADMIN_ROLE:
        raise Forbidden("Admin access required")
    return current_user


@router.post(
    "/signup",
    response_model=AuthResponse | PendingSignupResponse,
    status_code=status.HTTP_201_CREATED,
)
def signup(
    body: SignupRequest,
    db: Annotated[Session, Depends(get_db)],
) -> AuthResponse | PendingSignupResponse:
    """
    Register a staff account. Returns the profile with an access/refresh token pair,
    or {"pending": true} when signups require admin approval.
    """
    return auth_service.signup(db, body)


@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> AuthResponse:
    """
    Authenticate with email and password; returns the profile and a token pair.
    Include the access token in the Authorization header as: Bearer <accessToken>
    """
    return auth_service.login(db, body.email, body.password)


@router.post("/refresh", response_model=AccessTokenResponse)
def refresh(
    body: RefreshRequest,
    db: Annotated[Session, Depends(get_db)],
) -> AccessTokenResponse:
    """Exchange a refresh token for a new access token. 401 if missing, 403 if invalid or revoked."""
    access_token = auth_service.refresh_access_token(db, body.refresh_token)
    return AccessTokenResponse(access_token=access_token)


@router.post("/logout", response_model=MessageResponse)
def logout(
    body: RefreshRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Revoke the given refresh token for the caller. Succeeds even if it was already gone."""
    auth_service.logout(db, current_user.id, body.refresh_token)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserProfile)
def me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> UserProfile:
    """Return the authenticated user's profile."""
    return current_user
