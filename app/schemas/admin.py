"""Schemas for admin endpoints: statistics, user management and settings."""

from pydantic import Field

from app.schemas.auth import UserStatus
from app.schemas.base import CamelModel


class DepartmentCount(CamelModel):
    name: str
    value: int


class MonthCount(CamelModel):
    date: str = Field(..., description="Month as YYYY-MM")
    count: int


class DashboardStats(CamelModel):
    total_patients: int
    new_patients_today: int
    patients_by_department: list[DepartmentCount]
    registration_history: list[MonthCount]


class RoleCount(CamelModel):
    role: str
    count: int


class UserStats(CamelModel):
    total_users: int
    role_stats: list[RoleCount]


class UserStatusUpdate(CamelModel):
    status: UserStatus


class SettingsResponse(CamelModel):
    roles: list[str]
    departments: list[str]
    places: list[str]
    signup_flags: list[str]


class SettingValueRequest(CamelModel):
    """Body for POST /admin/settings. Empty values are rejected by the service."""

    key: str | None = None
    value: str | None = None
