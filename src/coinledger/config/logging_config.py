"""Logging configuration for the API process and its background sync thread."""

import logging
import sys
from typing import Optional

from coinledger.config.settings import get_settings

LOG_FORMAT = "%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s"

# Library loggers that are chatty at INFO
LIBRARY_LEVELS = {
    "sqlalchemy.engine": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "apscheduler": logging.WARNING,
    "uvicorn": logging.INFO,
}


def resolve_level(name: str) -> int:
    """Map a level name from settings to a logging level, defaulting to INFO."""
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure application logging.

    The thread name is part of every record so price sync passes can be told
    apart from request handling.
    """
    settings = get_settings()
    level_name = level or settings.log_level

    logging.basicConfig(
        level=resolve_level(level_name),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for logger_name, logger_level in LIBRARY_LEVELS.items():
        logging.getLogger(logger_name).setLevel(logger_level)

    if resolve_level(level_name) == logging.INFO and level_name.strip().upper() != "INFO":
        logging.getLogger(__name__).warning("Unknown log level %r, using INFO", level_name)
