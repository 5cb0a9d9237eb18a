"""Data retention: delete stored refresh tokens past their signed expiry."""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.models import RefreshToken

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def run_retention(
    session: Session,
    settings: "Settings",
    now: datetime | None = None,
) -> int:
    """
    Delete refresh-token rows whose expiry has passed; returns the number deleted.

    Expired tokens are already refused by signature checks; this only keeps the
    table from growing. Idempotent: safe to run repeatedly.
    """
    if not settings.RETENTION_ENABLED:
        logger.info("Retention is disabled (RETENTION_ENABLED=false); skipping.")
        return 0

    cutoff = now or datetime.now(timezone.utc)
    deleted_count = (
        session.query(RefreshToken)
        .filter(RefreshToken.expires_at <= cutoff)
        .delete(synchronize_session=False)
    )
    session.commit()

    if deleted_count > 0:
        logger.info(
            "Retention run: cutoff=%s, refresh_tokens_deleted=%s",
            cutoff.isoformat(),
            deleted_count,
        )
    return deleted_count
