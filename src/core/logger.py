"""
Centralized logging configuration for the application
"""

import logging
import sys


LOG_FORMAT = '%(asctime)s | %(levelname)s | %(name)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(level: str = "INFO") -> None:
    """
    Setup global logging configuration

    Args:
        level: Default log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Don't add the console handler twice on reload
    for handler in root_logger.handlers:
        if getattr(handler, "_video_upload_console", False):
            return

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    console_handler._video_upload_console = True
    root_logger.addHandler(console_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger that propagates to the root configuration
    """
    return logging.getLogger(name)
