"""
Logging setup shared by the API process and scripts.

Usage:
    from tapago.core.logging import setup_logging
    setup_logging("INFO")
"""

import logging
import sys


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Driver loggers that flood the console at INFO
NOISY_LOGGERS = [
    "pymongo",
    "motor",
    "httpcore",
    "httpx",
    "asyncio",
    "passlib",
]


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the root logger with a single console handler.

    Calling it twice replaces the handler instead of stacking a second one.

    Args:
        level: level name for the root logger ("DEBUG", "INFO", ...)

    Returns:
        The configured root logger
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
    root_logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger
