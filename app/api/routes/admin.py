"""Admin endpoints: statistics, user management and settings lists."""

import datetime as dt
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.routes.auth import require_admin
from app.core.database import get_db
from app.schemas.admin import (
    DashboardStats,
    SettingsResponse,
    SettingValueRequest,
    UserStats,
    UserStatusUpdate,
)
from app.schemas.auth import CurrentUser, MessageResponse, UserProfile
from app.services import admin as admin_service
from app.services import settings_store

router = APIRouter()

AdminUser = Annotated[CurrentUser, Depends(require_admin)]


@router.get("/stats", response_model=DashboardStats)
def get_dashboard_stats(
    _admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
    from_date: Annotated[dt.date | None, Query(alias="fromDate")] = None,
    to_date: Annotated[dt.date | None, Query(alias="toDate")] = None,
) -> DashboardStats:
    """Patient totals, per-department counts and monthly registrations."""
    return admin_service.dashboard_stats(db, from_date=from_date, to_date=to_date)


@router.get("/users/stats", response_model=UserStats)
def get_user_stats(
    _admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
) -> UserStats:
    return admin_service.user_stats(db)


@router.get("/users", response_model=list[UserProfile])
def list_users(
    _admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
) -> list[UserProfile]:
    return [UserProfile.model_validate(u) for u in admin_service.list_users(db)]


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    _admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Delete a user. Refuses to delete the last remaining admin."""
    admin_service.delete_user(db, user_id)
    return MessageResponse(message="User removed")


@router.patch("/users/{user_id}/status", response_model=UserProfile)
def update_user_status(
    user_id: int,
    body: UserStatusUpdate,
    _admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
) -> UserProfile:
    """Approve, reject or suspend a user."""
    user = admin_service.update_user_status(db, user_id, body.status)
    return UserProfile.model_validate(user)


@router.get("/settings", response_model=SettingsResponse)
def get_settings_lists(db: Annotated[Session, Depends(get_db)]) -> SettingsResponse:
    """Public: the signup form needs roles, departments and signup flags."""
    return SettingsResponse(**settings_store.get_all(db))


@router.post("/settings", response_model=list[str])
def add_setting_value(
    body: SettingValueRequest,
    _admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
) -> list[str]:
    return settings_store.add_value(db, body.key, body.value)


@router.delete("/settings/{key}/{value}", response_model=list[str])
def delete_setting_value(
    key: str,
    value: str,
    _admin: AdminUser,
    db: Annotated[Session, Depends(get_db)],
) -> list[str]:
    return settings_store.remove_value(db, key, value)
