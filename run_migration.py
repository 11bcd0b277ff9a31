#!/usr/bin/env python3
"""
Migration runner for deployment.
Upgrades the database schema to the latest Alembic revision before the
server starts.
"""
import logging
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

from app.config import settings
from app.core.logging_config import setup_logging

logger = logging.getLogger("run_migration")


def run_migrations() -> int:
    """Run alembic upgrade head. Returns a process exit code."""
    config = Config(str(Path(__file__).parent / "alembic.ini"))

    logger.info("Running database migrations")
    try:
        command.upgrade(config, "head")
    except Exception:
        logger.exception("Migration failed")
        return 1

    logger.info("Migrations completed successfully")
    return 0


if __name__ == "__main__":
    setup_logging(settings.log_level, settings.log_format)
    sys.exit(run_migrations())
