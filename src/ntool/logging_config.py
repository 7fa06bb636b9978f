"""
Logging configuration for ntool.

Console logging goes to stderr through rich so stdout carries only the
ping/traceroute report. File logging is optional and rotated.
"""

import logging
from pathlib import Path
from logging.handlers import RotatingFileHandler

from rich.console import Console
from rich.logging import RichHandler

from ntool.config import get_config


class StructuredFormatter(logging.Formatter):
    """Structured formatter for easier log parsing."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, 'module_name'):
            record.module_name = record.module
        if not hasattr(record, 'function_name'):
            record.function_name = record.funcName

        return super().format(record)


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    max_bytes: int = 10485760,  # 10MB
    backup_count: int = 5,
    enable_console: bool = True,
    enable_file: bool = False,
) -> logging.Logger:
    """
    Set up logging for ntool.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Log file path (defaults to ~/.ntool/logs/ntool.log)
        max_bytes: Maximum log file size before rotation
        backup_count: Number of backup log files to keep
        enable_console: Enable console logging on stderr
        enable_file: Enable file logging

    Returns:
        Configured package logger
    """
    logger = logging.getLogger("ntool")
    logger.setLevel(getattr(logging, level.upper()))

    logger.handlers.clear()

    if enable_console:
        console_handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        console_handler.setFormatter(logging.Formatter(fmt="%(name)s: %(message)s", datefmt="[%X]"))
        logger.addHandler(console_handler)

    if enable_file:
        if log_file:
            log_path = Path(log_file)
        else:
            log_path = Path.home() / ".ntool" / "logs" / "ntool.log"

        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(StructuredFormatter(
            fmt='%(asctime)s | %(levelname)-8s | %(name)-24s | %(module_name)-10s | '
                '%(function_name)-16s | %(lineno)-4d | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(file_handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


def configure_logging(debug: bool = False, log_file: str | None = None) -> None:
    """
    Quick logging configuration.

    Args:
        debug: Enable debug logging
        log_file: Also log to this file
    """
    level = "DEBUG" if debug else get_config().log_level
    setup_logging(
        level=level,
        log_file=log_file,
        enable_console=True,
        enable_file=log_file is not None,
    )
