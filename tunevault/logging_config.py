"""Logging setup shared by the CLI, the watcher process and Celery workers."""
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, Union

from tunevault.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5

# Watchdog logs every inotify event and the engine logger echoes SQL
QUIET_LOGGERS = ("watchdog", "celery", "kombu", "sqlalchemy.engine")


def _resolve_level(level: Union[str, int, None]) -> int:
    if isinstance(level, int):
        return level
    name = (level or settings.log_level or "info").upper()
    return getattr(logging, name, logging.INFO)


def _build_handlers(level: int, log_path: str) -> List[logging.Handler]:
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    handlers: List[logging.Handler] = [console]

    if log_path:
        log_file = Path(log_path)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            log_file,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        ))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def setup_logging(level: Union[str, int, None] = None, log_path: Optional[str] = None):
    """Route tunevault logs to stdout and, when configured, a rotating file.

    Explicit arguments win over LOG_PATH and the settings. Calling it again
    replaces the handlers installed by an earlier call.
    """
    log_level = _resolve_level(level)
    if log_path is None:
        log_path = os.getenv("LOG_PATH", settings.log_path)

    logging.basicConfig(
        level=log_level,
        handlers=_build_handlers(log_level, log_path),
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        f"Logging at {logging.getLevelName(log_level)}"
        + (f", file {log_path}" if log_path else "")
    )
