"""Centralized logging configuration for the smt-storage project."""

import logging
import sys
from typing import Optional

ROOT_LOGGER_NAME = "smt_storage"


def setup_logging(
    level: int = logging.INFO,
    format_string: Optional[str] = None,
    handler_type: str = "stream"
) -> logging.Logger:
    """
    Set up centralized logging configuration for the project.

    Args:
        level: Logging level (default: INFO)
        format_string: Custom format string (optional)
        handler_type: Type of handler - "stream" or "none"

    Returns:
        Configured logger instance
    """
    if format_string is None:
        format_string = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'

    logger = logging.getLogger(ROOT_LOGGER_NAME)

    # Avoid duplicate configuration
    if logger.hasHandlers():
        return logger

    formatter = logging.Formatter(format_string)

    if handler_type == "stream":
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)
    else:
        logger.addHandler(logging.NullHandler())

    logger.setLevel(level)
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.

    Args:
        name: Module name (usually __name__)

    Returns:
        Logger instance
    """
    if not logging.getLogger(ROOT_LOGGER_NAME).hasHandlers():
        setup_logging()

    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def get_test_logger(name: str) -> logging.Logger:
    """
    Get a logger for tests with appropriate configuration.

    Args:
        name: Test module name

    Returns:
        Logger instance for tests
    """
    logger = logging.getLogger(f"Tests.{name}")

    if not logger.hasHandlers():
        handler = logging.StreamHandler()
        formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
        logger.propagate = False

    return logger
