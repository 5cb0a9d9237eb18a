"""ORM model for staff accounts (auth, role and approval status)."""

from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from app.models.base import Base, utcnow

USER_STATUSES = ("active", "pending", "rejected", "suspended")
ADMIN_ROLE = "admin"


class User(Base):
    """
    Staff account for JWT authentication and role-based access control.

    role: any value from the 'roles' setting; 'admin' is privileged.
    status: one of USER_STATUSES; only 'active' users may log in.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(64), nullable=False, default="doctor", index=True)
    phone_number = Column(String(32), nullable=True)
    department = Column(String(255), nullable=True)
    status = Column(String(16), nullable=False, default="active")
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
