"""Logging configuration for the application"""
import logging
from typing import Optional

from app.core.config import settings

# Loggers the app writes to by name rather than by module
APP_LOGGERS = ("security", "api_access", "profiles")

NOISY_LOGGERS = ("urllib3", "urllib3.connectionpool", "httpx", "google.auth", "sqlalchemy.engine", "alembic")


def setup_logging(level: Optional[str] = None):
    """Configure root logging once per process; ``level`` defaults to LOG_LEVEL"""
    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        force=True
    )

    for name in APP_LOGGERS:
        logging.getLogger(name).setLevel(log_level)

    # Silence noisy third-party libraries
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
