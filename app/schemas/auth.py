"""Request/response schemas for auth endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import EmailStr, Field

from app.schemas.base import CamelModel

UserStatus = Literal["active", "pending", "rejected", "suspended"]


class SignupRequest(CamelModel):
    """Self-service staff registration."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: str = Field(..., min_length=1, max_length=64)
    phone_number: str | None = Field(default=None, max_length=32)
    department: str | None = Field(default=None, max_length=255)


class LoginRequest(CamelModel):
    """Credentials for login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class RefreshRequest(CamelModel):
    """Refresh token presented to /refresh or /logout. Absent is handled by the service."""

    refresh_token: str | None = None


class UserProfile(CamelModel):
    """User fields safe to return to clients (no password hash, no tokens)."""

    id: int
    name: str
    email: str
    role: str
    phone_number: str | None = None
    department: str | None = None
    status: UserStatus
    created_at: datetime | None = None


class CurrentUser(UserProfile):
    """Authenticated user resolved from the access token, for dependency injection."""


class AuthResponse(UserProfile):
    """User profile plus the token pair issued at signup or login."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class PendingSignupResponse(CamelModel):
    """Signup accepted but waiting for admin approval; no tokens are issued."""

    pending: Literal[True] = True
    message: str = "Registration received. An administrator must approve your account."


class AccessTokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"


class MessageResponse(CamelModel):
    message: str
