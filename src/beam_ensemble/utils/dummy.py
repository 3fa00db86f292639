import logging
from logging import Logger

DUMMY_LOGGER_NAME = "beam_ensemble.dummy"


def logger_or_dummy(logger: Logger | None) -> Logger:
    """Return `logger`, or a logger that discards every record when `logger` is `None`."""
    if logger is None:
        logger = logging.getLogger(DUMMY_LOGGER_NAME)
        if not logger.handlers:
            logger.addHandler(logging.NullHandler())
        logger.propagate = False
    return logger
