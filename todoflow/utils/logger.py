"""
Logging configuration
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from todoflow.config.settings import settings
from todoflow.config.constants import LOG_FORMAT, LOG_DATE_FORMAT

LOG_FILE_NAME = "todoflow.log"


def setup_logger(
    name: str = "todoflow",
    level: Optional[str] = None,
    log_dir: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the application logger

    Console output follows the configured level. When a log directory is
    set, a file in it receives everything down to DEBUG.

    Args:
        name: Logger name
        level: Level name (defaults to LOG_LEVEL)
        log_dir: Directory for the log file (defaults to LOG_DIR, empty disables)

    Returns:
        Configured logger instance
    """
    level = level or settings.LOG_LEVEL
    log_dir = settings.LOG_DIR if log_dir is None else log_dir
    console_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)

    logger = logging.getLogger(name)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path / LOG_FILE_NAME, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(console_level)

    return logger


logger = setup_logger()
