"""File logging for Beacon.

Every module logs through logging.getLogger(__name__), so records land under
the "beacon" logger hierarchy. setup_logging() attaches one rotating file
handler there; calling it again only adjusts the level.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FILE_NAME = "beacon.log"
LOG_MAX_BYTES = 2_000_000
LOG_BACKUP_COUNT = 3
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(log_dir: Path, level: int | str = logging.INFO) -> tuple[logging.Logger, Path]:
    """Send beacon.* records to <log_dir>/beacon.log.

    Args:
        log_dir: Directory for the log file (created if missing)
        level: Logging level as a number or a name such as "DEBUG"

    Returns:
        Tuple of (beacon logger, log file path)
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILE_NAME

    logger = logging.getLogger("beacon")
    logger.setLevel(level.upper() if isinstance(level, str) else level)

    has_file_handler = any(
        isinstance(h, RotatingFileHandler) and h.baseFilename == os.path.abspath(log_path)
        for h in logger.handlers
    )
    if not has_file_handler:
        handler = RotatingFileHandler(
            log_path,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)

    return logger, log_path
