"""
Logging configuration

loguru is the single sink. Service modules log through the standard
`logging` module; those records are forwarded into loguru so everything
ends up in the same console and file outputs.
"""
from loguru import logger
import logging
import os
import sys
from teashop.config import get_settings

settings = get_settings()


class _ForwardToLoguru(logging.Handler):
    """Re-emit stdlib log records through loguru"""

    def emit(self, record: logging.LogRecord):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def setup_logger():
    """Configure logger with appropriate settings"""
    logger.remove()  # Remove default handler

    # Console logging
    logger.add(
        sys.stdout,
        colorize=True,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=settings.log_level
    )

    # Daily application log
    logger.add(
        os.path.join(settings.log_dir, "teashop_{time:YYYY-MM-DD}.log"),
        rotation="00:00",
        retention="30 days",
        compression="zip",
        level="INFO"
    )

    # Errors only
    logger.add(
        os.path.join(settings.log_dir, "errors_{time:YYYY-MM-DD}.log"),
        rotation="00:00",
        retention="90 days",
        level="ERROR"
    )

    # teashop.* service loggers
    stdlib_logger = logging.getLogger("teashop")
    stdlib_logger.handlers = [_ForwardToLoguru()]
    stdlib_logger.setLevel(settings.log_level)
    stdlib_logger.propagate = False

    return logger


# Initialize logger
log = setup_logger()
