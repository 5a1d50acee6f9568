"""Logging configuration for the application."""
import logging
import sys

from postboard.config import settings


def configure_logging() -> logging.Logger:
    """
    Attach a stdout handler to the ``postboard`` logger.

    Safe to call more than once: the handler is only added the first time.
    Module loggers (``logging.getLogger(__name__)``) inherit from it.
    """
    logger = logging.getLogger("postboard")
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(handler)

    logger.propagate = False
    return logger
