"""Centralized logging configuration for the TaskTree application.

This module provides a standardized logging setup with:
- File-based logging with rotation
- Configurable log levels via environment variable
- Structured log format with timestamps
- Automatic log directory creation
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


# Log file configuration
LOG_DIR = Path.home() / ".tasktree" / "logs"
LOG_FILE = LOG_DIR / "tasktree.log"

# Log format configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Rotation configuration
MAX_BYTES = 10 * 1024 * 1024  # 10MB
BACKUP_COUNT = 5


def _resolve_level(log_level: Optional[str]) -> tuple[str, int]:
    """Resolve a level name to (name, numeric level), defaulting to INFO."""
    if log_level is None:
        log_level = os.getenv("TASKTREE_LOG_LEVEL", "INFO")
    log_level = log_level.upper()

    numeric_level = getattr(logging, log_level, None)
    if not isinstance(numeric_level, int):
        return "INFO", logging.INFO
    return log_level, numeric_level


def setup_logging(
    log_level: Optional[str] = None,
    use_textual_handler: bool = False,
    log_file: Optional[Path] = None,
) -> None:
    """Initialize application logging with file rotation.

    Creates the log directory if it doesn't exist and configures a rotating
    file handler for all application logs.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
                  If None, reads from TASKTREE_LOG_LEVEL environment variable.
                  Defaults to INFO if not specified or invalid.
        use_textual_handler: If True, also send records to Textual's devtools
                            console. Falls back to the file handler alone
                            when textual.logging is unavailable.
        log_file: Override the log file location (mainly for tests).

    Example:
        >>> setup_logging()  # Uses default INFO level
        >>> setup_logging(log_level="DEBUG")  # Override to DEBUG
    """
    log_level, numeric_level = _resolve_level(log_level)
    target = log_file or LOG_FILE

    # Create log directory if it doesn't exist
    target.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    file_handler = RotatingFileHandler(
        target,
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8"
    )
    file_handler.setLevel(numeric_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    textual_enabled = False
    if use_textual_handler:
        try:
            from textual.logging import TextualHandler
        except ImportError:
            TextualHandler = None

        if TextualHandler is not None:
            textual_handler = TextualHandler()
            textual_handler.setLevel(numeric_level)
            textual_handler.setFormatter(formatter)
            root_logger.addHandler(textual_handler)
            textual_enabled = True

    logger = logging.getLogger(__name__)
    logger.info(
        f"Logging initialized: level={log_level}, "
        f"file={target}, "
        f"textual_handler={textual_enabled}"
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the specified module.

    Args:
        name: Module name, typically __name__

    Returns:
        Logger instance configured with the module name

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Application started")
    """
    return logging.getLogger(name)
