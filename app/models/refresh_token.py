"""ORM model for issued refresh tokens (one row per live session)."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text, func
from sqlalchemy.orm import relationship

from app.models.base import Base, utcnow


class RefreshToken(Base):
    """
    A refresh token currently held by a user.

    A token verifies only while its row exists; deleting the row revokes it.
    expires_at mirrors the signed exp claim so the retention job can purge it.
    """

    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token = Column(Text, nullable=False, unique=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    user = relationship("User", back_populates="refresh_tokens")
