"""Admin operations: dashboard statistics and user management."""

import logging
from collections import Counter
from datetime import UTC, date, datetime, time, timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.exceptions import Conflict, NotFound
from app.models import Patient, User
from app.models.user import ADMIN_ROLE
from app.schemas.admin import (
    DashboardStats,
    DepartmentCount,
    MonthCount,
    RoleCount,
    UserStats,
)

logger = logging.getLogger(__name__)

# Default registration history window when no date range is given.
HISTORY_MONTHS = 6


def _as_utc(value: datetime) -> datetime:
    # SQLite returns naive datetimes; everything is stored in UTC.
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def _start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


def _end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max, tzinfo=UTC)


def _first_of_month_back(today: date, months: int) -> date:
    """First day of the month `months - 1` months before today's month."""
    index = today.year * 12 + (today.month - 1) - (months - 1)
    return date(index // 12, index % 12 + 1, 1)


def dashboard_stats(
    db: Session,
    from_date: date | None = None,
    to_date: date | None = None,
    today: date | None = None,
) -> DashboardStats:
    """
    Patient totals, per-department breakdown and monthly registration history.

    from_date/to_date bound the totals, breakdown and history (to_date inclusive
    through end of day). Without a range the history covers the last six months.
    """
    today = today or datetime.now(UTC).date()

    filters = []
    if from_date:
        filters.append(Patient.created_at >= _start_of_day(from_date))
    if to_date:
        filters.append(Patient.created_at <= _end_of_day(to_date))

    total_patients = db.query(func.count(Patient.id)).filter(*filters).scalar() or 0
    new_patients_today = (
        db.query(func.count(Patient.id))
        .filter(Patient.created_at >= _start_of_day(today))
        .scalar()
        or 0
    )

    by_department = (
        db.query(Patient.department, func.count(Patient.id))
        .filter(*filters)
        .group_by(Patient.department)
        .order_by(Patient.department)
        .all()
    )

    if from_date or to_date:
        history_filters = filters
    else:
        history_filters = [
            Patient.created_at >= _start_of_day(_first_of_month_back(today, HISTORY_MONTHS))
        ]
    # Bucketed in Python so the query stays portable across Postgres and SQLite.
    months = Counter(
        _as_utc(created_at).strftime("%Y-%m")
        for (created_at,) in db.query(Patient.created_at).filter(*history_filters)
    )

    return DashboardStats(
        total_patients=total_patients,
        new_patients_today=new_patients_today,
        patients_by_department=[
            DepartmentCount(name=name, value=count) for name, count in by_department
        ],
        registration_history=[
            MonthCount(date=month, count=months[month]) for month in sorted(months)
        ],
    )


def user_stats(db: Session) -> UserStats:
    rows = (
        db.query(User.role, func.count(User.id))
        .group_by(User.role)
        .order_by(User.role)
        .all()
    )
    return UserStats(
        total_users=sum(count for _, count in rows),
        role_stats=[RoleCount(role=role, count=count) for role, count in rows],
    )


def list_users(db: Session) -> list[User]:
    """All users, newest first."""
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def delete_user(db: Session, user_id: int) -> None:
    """Delete a user and their refresh tokens. The last admin cannot be deleted."""
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")

    if user.role == ADMIN_ROLE:
        admin_count = (
            db.query(func.count(User.id)).filter(User.role == ADMIN_ROLE).scalar() or 0
        )
        if admin_count <= 1:
            logger.warning("Refused to delete the last admin", extra={"user_id": user_id})
            raise Conflict("Cannot delete the last admin")

    db.delete(user)
    db.commit()
    logger.info("User deleted", extra={"user_id": user_id})


def update_user_status(db: Session, user_id: int, status: str) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    user.status = status
    db.commit()
    db.refresh(user)
    logger.info("User status updated", extra={"user_id": user_id, "status": status})
    return user
