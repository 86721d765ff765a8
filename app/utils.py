"""
Shared helpers.
"""
import logging

from app.core import config


_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_configured = False


def configure_logging(level: str | None = None) -> None:
    """
    Configure the root logger once for the whole process.

    Safe to call repeatedly; later calls only adjust the level.
    """
    global _configured
    level = (level or config.LOG_LEVEL).upper()
    if not _configured:
        logging.basicConfig(level=level, format=_FORMAT)
        _configured = True
    logging.getLogger().setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger, configuring logging on first use."""
    configure_logging()
    return logging.getLogger(name)
