"""
Logging setup for HydroLog: rotating file under <root>/logs plus console.
- Max disk use: 1 MB × 4 files. When the current file hits 1 MB it rotates
  and the oldest backup (.log.3) is removed.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from hydrolog.config import log_dir

LOG_FILE_NAME = "hydrolog.log"
LOG_MAX_BYTES = 1 * 1024 * 1024
LOG_BACKUP_COUNT = 3
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(root: Path | None = None, level: str = "INFO", console: bool = True) -> Path:
    """Attach rotating file (and console) handlers to the root logger.

    Call once at app startup. Safe to call again: handlers are not duplicated.
    Returns the log file path.
    """
    directory = log_dir(root)
    directory.mkdir(parents=True, exist_ok=True)
    log_file = directory / LOG_FILE_NAME

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    if not any(isinstance(h, RotatingFileHandler) for h in root_logger.handlers):
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(file_handler)

    # RotatingFileHandler is itself a StreamHandler, so compare exact types
    if console and not any(type(h) is logging.StreamHandler for h in root_logger.handlers):
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
        root_logger.addHandler(console_handler)

    logging.getLogger(__name__).info("Logging to %s (rotating, 1 MB × %d backups)", log_file, LOG_BACKUP_COUNT)
    return log_file
