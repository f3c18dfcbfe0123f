"""
Logging Configuration Module

All PriceLens modules log under the "pricelens" logger namespace. The
console handler is always installed; a file handler is added when
PRICELENS_LOG_FILE (or the log_file argument) is set.

Usage:
    from pricelens.logging_config import setup_logging, get_logger

    setup_logging()  # Call once at application startup
    logger = get_logger(__name__)
    logger.info("Calibration loaded")
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from pricelens.config import get_config

PACKAGE_LOGGER = "pricelens"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are chatty at INFO (image plugins, dev server, CORS)
_QUIET_LOGGERS = ("PIL", "urllib3", "werkzeug", "flask_cors")

_logging_configured = False


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    force: bool = False,
) -> logging.Logger:
    """Configure the package logger.

    Args:
        level: Log level name. Defaults to PRICELENS_LOG_LEVEL or INFO.
        log_file: Extra file destination. Defaults to PRICELENS_LOG_FILE.
        force: Reconfigure even if logging was already set up.

    Returns:
        The package logger.
    """
    global _logging_configured

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if _logging_configured and not force:
        return package_logger

    config = get_config()
    level = (level or config.logging.level).upper()
    numeric_level = getattr(logging, level, logging.INFO)
    if log_file is None:
        log_file = config.logging.log_file

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(numeric_level)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    package_logger.propagate = False

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _logging_configured = True
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given module name, under the package namespace."""
    if not _logging_configured:
        setup_logging()

    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"

    return logging.getLogger(name)


def reset_logging() -> None:
    """Close the package handlers and mark logging as unconfigured."""
    global _logging_configured
    _logging_configured = False

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
