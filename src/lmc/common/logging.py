"""Logging utilities for lmc."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

CONSOLE_FORMAT = "%(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    name: str,
    level: str | int = "WARNING",
    log_file: Path | None = None,
    console: bool = True,
) -> logging.Logger:
    """Configure the lmc logger.

    Console records go to stderr, keeping stdout for search results. The
    optional log file gets timestamped records at the same level.

    Args:
        name: Logger name (usually "lmc")
        level: Level name or logging constant. Per-item crawl notices are
            INFO, so anything above INFO hides them.
        log_file: Optional file that also receives records (``LMC_LOG_FILE``)
        console: Whether to log to stderr

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logging("lmc", level="DEBUG")
        >>> logger.debug("using module root /opt/modules")
    """
    logger = logging.getLogger(name)
    logger.setLevel(level.upper() if isinstance(level, str) else level)

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

    return logger
