import logging
from logging import Logger

from .config import get_settings

LOGGER_NAME = "docstamp"

# library default: records go to the application's handlers, or nowhere
logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())


def configure_logging() -> Logger:
    """Attach a stream handler to the docstamp logger once and return it."""
    settings = get_settings()

    logger = logging.getLogger(LOGGER_NAME)
    if any(not isinstance(handler, logging.NullHandler) for handler in logger.handlers):
        return logger

    logger.setLevel(settings.log_level.upper())

    handler = logging.StreamHandler()
    formatter = logging.Formatter("[%(levelname)s] %(asctime)s | %(name)s | %(message)s")
    handler.setFormatter(formatter)

    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str) -> Logger:
    """Child of the docstamp logger, e.g. ``docstamp.draw``. Does not configure output."""
    return logging.getLogger(LOGGER_NAME).getChild(name)
