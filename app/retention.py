"""
Purge expired refresh-token rows. Meant for cron:

  python -m app.retention            # delete rows whose expiry has passed
  python -m app.retention --dry-run  # only report how many would go

Exit status is 0 on success and 1 if the run failed.
"""

import argparse
import logging
import sys
from datetime import datetime, timezone

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.models import RefreshToken
from app.services.retention import run_retention

logger = logging.getLogger("app.retention")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Delete expired refresh tokens.")
    parser.add_argument("--dry-run", action="store_true", help="Count expired rows without deleting")
    args = parser.parse_args(argv)

    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )

    db = SessionLocal()
    try:
        if args.dry_run:
            expired = (
                db.query(RefreshToken)
                .filter(RefreshToken.expires_at <= datetime.now(timezone.utc))
                .count()
            )
            logger.info("Dry run: %s expired refresh tokens", expired)
            return 0
        deleted = run_retention(db, settings)
        logger.info("Retention finished: refresh_tokens_deleted=%s", deleted)
        return 0
    except Exception:
        logger.exception("Retention run failed")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
