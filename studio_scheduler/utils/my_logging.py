# studio_scheduler/utils/my_logging.py
"""Logging configuration"""
import logging
import sys

from studio_scheduler.config.settings import get_settings
from studio_scheduler.core.middleware import correlation_id_var

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"

NOISY_LOGGERS = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "sqlalchemy.orm",
    "alembic",
    "httpx",
    "uvicorn.access",
)


class CorrelationIdFilter(logging.Filter):
    """Stamp every record with the id of the request being served"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get()
        return True


def setup_logging(verbose=None):
    """Configure application logging; verbose defaults to settings.DEBUG"""
    settings = get_settings()
    if verbose is None:
        verbose = settings.DEBUG

    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logging.basicConfig(level=level, handlers=[handler], force=True)

    if not verbose:
        # Silence noisy loggers
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
