"""Admin-editable setting lists: roles, departments, places and signup flags."""

import logging

from sqlalchemy.orm import Session

from app.core.exceptions import Conflict, NotFound, ValidationFailed
from app.models import Setting
from app.models.user import ADMIN_ROLE

logger = logging.getLogger(__name__)

ROLES = "roles"
DEPARTMENTS = "departments"
PLACES = "places"
SIGNUP_FLAGS = "signup_flags"

# Signup flags
MANUAL_APPROVAL = "manual_approval"
ADMIN_SIGNUP = "admin_signup"

# Created on first read when the key is missing; order is preserved for clients.
DEFAULT_VALUES: dict[str, list[str]] = {
    ROLES: [ADMIN_ROLE, "doctor", "nurse"],
    DEPARTMENTS: ["General", "Cardiology", "Pediatrics", "Dental"],
    PLACES: ["Kasaragod", "Kanhangad", "Payyanur"],
    SIGNUP_FLAGS: [ADMIN_SIGNUP],
}


def _get_or_create(db: Session, key: str) -> Setting:
    setting = db.query(Setting).filter(Setting.key == key).first()
    if setting is None:
        setting = Setting(key=key, values=list(DEFAULT_VALUES[key]))
        db.add(setting)
        db.commit()
        db.refresh(setting)
        logger.info("Initialised default setting", extra={"setting_key": key})
    return setting


def get_values(db: Session, key: str) -> list[str]:
    """Return the values for a known setting key, creating its defaults if needed."""
    if key not in DEFAULT_VALUES:
        raise NotFound("Setting category not found")
    return list(_get_or_create(db, key).values)


def get_all(db: Session) -> dict[str, list[str]]:
    return {key: get_values(db, key) for key in DEFAULT_VALUES}


def signup_flags(db: Session) -> set[str]:
    return set(get_values(db, SIGNUP_FLAGS))


def is_known_role(db: Session, role: str) -> bool:
    """Roles are an open set: anything currently listed in the 'roles' setting."""
    return role == ADMIN_ROLE or role in get_values(db, ROLES)


def add_value(db: Session, key: str | None, value: str | None) -> list[str]:
    """Append a value to a setting list. Raises NotFound or Conflict."""
    key = (key or "").strip()
    value = (value or "").strip()
    if not key or not value:
        raise ValidationFailed("Key and value are required")
    if key not in DEFAULT_VALUES:
        raise NotFound("Setting category not found")

    setting = _get_or_create(db, key)
    if value in setting.values:
        raise Conflict("Value already exists")
    # Reassign so SQLAlchemy sees the JSON column change.
    setting.values = [*setting.values, value]
    db.commit()
    logger.info("Setting value added", extra={"setting_key": key, "value": value})
    return list(setting.values)


def remove_value(db: Session, key: str, value: str) -> list[str]:
    """Remove a value from a setting list; removing an absent value is a no-op."""
    if key not in DEFAULT_VALUES:
        raise NotFound("Setting category not found")
    if key == ROLES and value == ADMIN_ROLE:
        raise Conflict("Cannot delete 'admin' role")

    setting = _get_or_create(db, key)
    setting.values = [v for v in setting.values if v != value]
    db.commit()
    logger.info("Setting value removed", extra={"setting_key": key, "value": value})
    return list(setting.values)
