"""Pydantic request/response schemas."""

from app.schemas.admin import (
    DashboardStats,
    SettingsResponse,
    SettingValueRequest,
    UserStats,
    UserStatusUpdate,
)
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
from app.schemas.health import HealthResponse
from app.schemas.patient import (
    PatientCreate,
    PatientFilters,
    PatientListResponse,
    PatientOut,
    PatientResponse,
    PatientUpdate,
)

__all__ = [
    "AccessTokenResponse",
    "AuthResponse",
    "CurrentUser",
    "DashboardStats",
    "HealthResponse",
    "LoginRequest",
    "MessageResponse",
    "PatientCreate",
    "PatientFilters",
    "PatientListResponse",
    "PatientOut",
    "PatientResponse",
    "PatientUpdate",
    "PendingSignupResponse",
    "RefreshRequest",
    "SettingValueRequest",
    "SettingsResponse",
    "SignupRequest",
    "UserProfile",
    "UserStats",
    "UserStatusUpdate",
]
