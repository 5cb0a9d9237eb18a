"""ORM model for admin-editable lists (roles, departments, places, signup flags)."""

from sqlalchemy import JSON, Column, DateTime, Integer, String, func

from app.models.base import Base, utcnow


class Setting(Base):
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(64), nullable=False, unique=True, index=True)
    values = Column(JSON, nullable=False, default=list)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )
