"""ORM model for registered patients."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from app.models.base import Base, utcnow


class Patient(Base):
    """
    Patient registered at the front desk.

    registered_by_id is the staff user who created the record; created_by_role
    snapshots that user's role at registration time.
    """

    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    age = Column(Integer, nullable=False)
    sex = Column(String(16), nullable=False)
    phone_number = Column(String(32), nullable=False)
    whatsapp_number = Column(String(32), nullable=True)
    place = Column(String(255), nullable=False)
    department = Column(String(255), nullable=False, index=True)
    doctor = Column(String(255), nullable=False)
    registered_by_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_by_role = Column(String(64), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        index=True,
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    registered_by = relationship("User")
