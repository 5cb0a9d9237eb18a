"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.patient import Patient
from app.models.refresh_token import RefreshToken
from app.models.setting import Setting
from app.models.user import User

__all__ = ["Base", "Patient", "RefreshToken", "Setting", "User"]
