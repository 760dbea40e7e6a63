"""
CLI entrypoint for the expired-session cleanup job. Run from cron, e.g.:

  python -m formula_access.session_cleanup

Or hourly: 0 * * * * cd /path/to/formula-access && .venv/bin/python -m formula_access.session_cleanup
"""

import logging
import sys

from formula_access.core.config import get_settings
from formula_access.core.database import SessionLocal
from formula_access.core.errors import DatabaseError
from formula_access.services.sessions import purge_expired_sessions

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Delete refresh-token sessions whose expiry has passed."""
    settings = get_settings()
    db = SessionLocal()
    try:
        deleted = purge_expired_sessions(db, settings)
        logger.info("Session cleanup completed: sessions_deleted=%s", deleted)
        return 0
    except DatabaseError as e:
        logger.error("Session cleanup failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
