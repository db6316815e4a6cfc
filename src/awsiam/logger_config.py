"""
Logging configuration.

Loggers are children of the ``awsiam`` package logger, which gets a single
stderr handler the first time any logger is requested.
"""
import logging
import sys
from typing import Optional

from .utils import getenv_str

PACKAGE_LOGGER = "awsiam"


def _configure_package_logger() -> logging.Logger:
    logger = logging.getLogger(PACKAGE_LOGGER)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    log_level = (getenv_str("LOG_LEVEL") or "WARNING").upper()
    logger.setLevel(getattr(logging, log_level, logging.WARNING))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger under the package logger.

    Args:
        name: Module name, usually ``__name__``. Defaults to the package logger.

    Returns:
        Configured logger instance
    """
    root = _configure_package_logger()
    if not name or name == PACKAGE_LOGGER:
        return root
    if not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
