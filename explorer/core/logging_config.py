"""Logging configuration with rotating file handlers."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from explorer.config import Settings, get_settings

# Components with a log file of their own, in addition to app.log
COMPONENT_LOGS = {
    "explorer.cache": "cache.log",
    "source_adapters": "adapters.log",
}

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"

_installed: List[logging.Handler] = []


def _rotating_handler(path: Path, settings: Settings) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def _attach(logger: logging.Logger, handler: logging.Handler) -> None:
    logger.addHandler(handler)
    _installed.append(handler)


def reset_logging() -> None:
    """Detach and close every handler installed by setup_logging."""
    while _installed:
        handler = _installed.pop()
        for name in [None, *COMPONENT_LOGS]:
            logging.getLogger(name).removeHandler(handler)
        handler.close()


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Route application logs to stdout and LOG_DIR/app.log, and each component
    in COMPONENT_LOGS to its own file as well.

    Safe to call more than once: handlers from a previous call are replaced,
    handlers installed by anyone else are left alone.
    """
    settings = settings or get_settings()
    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    level = logging.getLevelName(settings.LOG_LEVEL.upper())

    reset_logging()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    _attach(root_logger, console_handler)

    _attach(root_logger, _rotating_handler(log_dir / "app.log", settings))

    for name, filename in COMPONENT_LOGS.items():
        _attach(logging.getLogger(name), _rotating_handler(log_dir / filename, settings))

    # SQL echo is controlled by DEBUG on the engine, not by LOG_LEVEL
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
