"""Logging configuration for relay events."""
import logging
from logging.handlers import RotatingFileHandler

from .config import LOG_FILE

LOGGER_NAME = "lantern_chat_server"


def configure_logging() -> logging.Logger:
    """Configure the relay logger with a rotating file and a console handler.

    Safe to call from every module: handlers are attached only once.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)
    if not logger.handlers:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(LOG_FILE, maxBytes=5 * 1024 * 1024, backupCount=3)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        console = logging.StreamHandler()
        console.setFormatter(formatter)
        logger.addHandler(console)
    return logger
