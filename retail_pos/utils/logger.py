"""Logging setup for the retail backend.

Loggers are named by concern (orders, inventory, api, error, apscheduler).
Which of them also write a rotating file, and at which level, comes from
the ``logging.files`` and ``logging.levels`` sections of config.yml.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .config import LoggingConfig, get_config


def _rotating_file_handler(
    log_file: str,
    settings: LoggingConfig,
    formatter: logging.Formatter
) -> RotatingFileHandler:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        log_file,
        maxBytes=settings.max_bytes,
        backupCount=settings.backup_count
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def setup_logger(
    name: str,
    log_file: Optional[str] = None,
    level: Optional[str] = None
) -> logging.Logger:
    """
    Attach a stdout handler, and a rotating file handler when a path is given.

    Args:
        name: Logger name
        log_file: Optional log file path; ignored in production
        level: Optional log level (overrides config)

    Returns:
        Configured logger instance
    """
    config = get_config()
    settings = config.logging

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, (level or settings.level).upper()))

    # Already configured by an earlier call
    if logger.handlers:
        return logger

    formatter = logging.Formatter(settings.format)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Production containers ship stdout to the platform log collector.
    if log_file and not config.is_production:
        logger.addHandler(_rotating_file_handler(log_file, settings, formatter))

    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger whose file and level come from the logging config entries for ``name``."""
    settings = get_config().logging
    return setup_logger(name, settings.files.get(name), settings.levels.get(name))


def get_order_logger() -> logging.Logger:
    """Get logger for order reconciliation."""
    return get_logger("orders")


def get_inventory_logger() -> logging.Logger:
    """Get logger for stock ledger, product and purchase order changes."""
    return get_logger("inventory")


def get_error_logger() -> logging.Logger:
    return get_logger("error")


def get_api_logger() -> logging.Logger:
    return get_logger("api")


def get_scheduler_logger() -> logging.Logger:
    """Get logger for APScheduler internals.

    Without this, exceptions raised inside background jobs never reach
    the console.
    """
    return get_logger("apscheduler")
