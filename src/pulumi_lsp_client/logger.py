#!/usr/bin/env python3
"""
Shared logging configuration for the Pulumi LSP client.
"""

from pathlib import Path
from typing import Optional

from aiologger import Logger
from aiologger.levels import LogLevel
from aiologger.handlers.files import AsyncTimedRotatingFileHandler
from aiologger.formatters.base import Formatter


LOGGER_NAME = "pulumi-lsp-client"

# Global logger instance
_global_logger: Optional[Logger] = None


def setup_logging(log_level: str = "INFO", log_dir: Optional[Path] = None) -> Logger:
    """Setup the diagnostic trace logger.

    User-facing text goes to the output channel; this file log is the
    developer trace behind it.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for the log file, defaults to ~/.pulumi-lsp/logs

    Returns:
        Configured logger instance
    """
    global _global_logger

    if _global_logger is not None:
        return _global_logger

    log_dir = log_dir or Path.home() / ".pulumi-lsp" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{LOGGER_NAME}.log"

    level = {
        "DEBUG": LogLevel.DEBUG,
        "INFO": LogLevel.INFO,
        "WARNING": LogLevel.WARNING,
        "ERROR": LogLevel.ERROR,
    }.get(log_level.upper(), LogLevel.CRITICAL)

    logger = Logger(name=LOGGER_NAME, level=level)

    file_handler = AsyncTimedRotatingFileHandler(
        filename=str(log_file),
        when="D",
        interval=1,
        backup_count=7,
        encoding="utf-8"
    )
    file_handler.formatter = Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    logger.add_handler(file_handler)

    _global_logger = logger
    return _global_logger


def get_logger() -> Logger:
    """Get the singleton logger instance, creating it on first use."""
    global _global_logger

    if _global_logger is None:
        _global_logger = setup_logging()

    return _global_logger
