#!/usr/bin/env python3
"""Database bootstrap: wait for the database, then run Alembic migrations.

- Waits up to MIGRATION_WAIT_SECONDS (default 30) for the configured
  DATABASE_URL / POSTGRES_* database to accept connections.
- Always runs `alembic upgrade head`.
- If migrations fail, fail fast (don't start with an unknown schema).
"""

import logging
import os
import sys
import time

from sqlalchemy.exc import OperationalError

from core.config import settings
from core.database import check_db_connection
from core.logging import setup_logging

logger = logging.getLogger("run_migrations")


def wait_for_database(max_retries: int, delay: float = 1.0) -> bool:
    for attempt in range(1, max_retries + 1):
        if check_db_connection():
            return True
        logger.info(f"Database is unavailable - sleeping (attempt {attempt}/{max_retries})")
        time.sleep(delay)
    return False


def _get_alembic_config():
    """Load Alembic config for programmatic migrations."""
    from alembic.config import Config

    here = os.path.dirname(os.path.abspath(__file__))
    cfg = Config(os.path.join(here, "alembic.ini"))
    cfg.set_main_option("script_location", os.path.join(here, "alembic"))
    return cfg


def alembic_upgrade_head() -> None:
    """Apply all pending migrations."""
    from alembic import command

    command.upgrade(_get_alembic_config(), "head")


def main() -> int:
    setup_logging()
    max_retries = int(os.getenv("MIGRATION_WAIT_SECONDS", "30"))

    logger.info(f"Waiting for database ({settings.ENVIRONMENT})...")
    if not wait_for_database(max_retries):
        logger.error("Database is not ready after maximum retries")
        return 1

    try:
        alembic_upgrade_head()
    except OperationalError as e:
        logger.error(f"Alembic upgrade failed, database error: {e}")
        return 1
    except Exception as e:
        logger.error(f"Alembic upgrade failed: {e}", exc_info=True)
        return 1

    logger.info("Migrations completed successfully")
    return 0


if __name__ == '__main__':
    sys.exit(main())
