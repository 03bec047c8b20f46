"""Logging configuration with file and console output."""

import logging
import os
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Optional

# Message prefixes that belong to an update run
RUN_TAGS = ("UPDATE", "SCHEDULER", "LLM", "PROMPT", "CACHE")

_TAG_PATTERN = re.compile(r"^\[([A-Z]+)\]\s*")


class RunTagFilter(logging.Filter):
    """Admit only records tagged with one of the update-run prefixes.

    The tag is split off onto ``record.run_tag`` and ``record.run_message``
    so the updates log can show it as its own column.
    """

    def __init__(self, tags: Iterable[str] = RUN_TAGS):
        super().__init__()
        self.tags = frozenset(tags)

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        match = _TAG_PATTERN.match(message)
        if match is None or match.group(1) not in self.tags:
            return False
        record.run_tag = match.group(1)
        record.run_message = message[match.end():]
        return True


UPDATE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(run_tag)-9s | %(run_message)s"

def setup_logging(level: str = "INFO", log_dir: Optional[str] = None) -> None:
    """
    Configure application logging with both console and file output.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for log files (defaults to ./logs)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_dir is None:
        log_dir = os.environ.get("LOG_DIR", "logs")

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    log_format = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(log_format, datefmt=date_format)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    # Console handler (stdout)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Main application log file (rotating, 10MB max, keep 5 backups)
    app_file_handler = RotatingFileHandler(
        log_path / "app.log",
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    app_file_handler.setLevel(log_level)
    app_file_handler.setFormatter(formatter)
    root_logger.addHandler(app_file_handler)

    # Error log file (errors and above only)
    error_file_handler = RotatingFileHandler(
        log_path / "error.log",
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    error_file_handler.setLevel(logging.ERROR)
    error_file_handler.setFormatter(formatter)
    root_logger.addHandler(error_file_handler)

    # Update runs get their own log: attempts, escalations, outcomes
    update_handler = RotatingFileHandler(
        log_path / "updates.log",
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    update_handler.setLevel(log_level)
    update_handler.setFormatter(logging.Formatter(UPDATE_LOG_FORMAT, datefmt=date_format))
    update_handler.addFilter(RunTagFilter())
    root_logger.addHandler(update_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("watchfiles").setLevel(logging.WARNING)

    root_logger.info(f"Logging initialized - Level: {level}, Log directory: {log_path.absolute()}")
