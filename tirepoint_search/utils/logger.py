"""Logging for TirePoint Search.

Everything ends up in loguru: the service logs through it directly, and
the standard ``logging`` records of the storage layer, SQLAlchemy and
uvicorn are forwarded to it by :class:`InterceptHandler`.
"""

import inspect
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

from loguru import logger

from .config import get_config

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

# stdlib loggers whose own handlers are dropped so they reach the root intercept
FORWARDED_LOGGERS = ("tirepoint_search", "sqlalchemy", "uvicorn", "uvicorn.error", "uvicorn.access")


class InterceptHandler(logging.Handler):
    """Hand standard library log records over to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module so loguru reports the real caller
        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def intercept_stdlib_logging(level="INFO", loggers: Iterable[str] = FORWARDED_LOGGERS) -> InterceptHandler:
    """Route the root ``logging`` logger, and the named loggers, into loguru.

    Args:
        level: Minimum level passed on from the standard library
        loggers: Loggers to strip of their own handlers

    Returns:
        The installed handler
    """
    handler = InterceptHandler()
    logging.basicConfig(handlers=[handler], level=level, force=True)

    for name in loggers:
        stdlib_logger = logging.getLogger(name)
        stdlib_logger.handlers = []
        stdlib_logger.propagate = True

    return handler


def setup_logging(log_level: Optional[str] = None, log_file: Optional[str] = None):
    """Configure the console and file sinks.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file, empty string disables the file sink
    """
    config = get_config()
    log_level = (log_level or config.logging.level).upper()

    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=log_level, colorize=True)

    if log_file is None:
        log_file = config.logging.file

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=FILE_FORMAT,
            level=log_level,
            rotation="10 MB",
            retention="30 days",
            compression="zip",
            serialize=config.logging.format == "json",
        )

    intercept_stdlib_logging(log_level)
    logger.info(f"Logging initialized at {log_level} level")
