"""
CLI entrypoint for pruning expired refresh tokens. Run from cron, e.g.:

  python -m webadmin.purge_tokens

Or hourly: 0 * * * * cd /path/to/webadmin && .venv/bin/python -m webadmin.purge_tokens

The server never runs this itself; while serving, expired tokens are only
removed when someone tries to use them.
"""

import logging
import sys

from webadmin.core.config import get_settings
from webadmin.core.database import build_engine, build_session_factory, init_db
from webadmin.core.logging_config import setup_logging
from webadmin.services.refresh_tokens import RefreshTokenStore

logger = logging.getLogger(__name__)


def main() -> int:
    """Delete every refresh token whose expiry has passed."""
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    engine = build_engine(settings.DATABASE_URL)
    init_db(engine)
    db = build_session_factory(engine)()
    try:
        tokens_deleted = RefreshTokenStore(db).purge_expired()
        logger.info("Refresh token purge completed: tokens_deleted=%s", tokens_deleted)
        return 0
    except Exception as e:
        logger.exception("Refresh token purge failed: %s", e)
        return 1
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
