import logging
import sys

LOGGER_NAME = "gridfs_web"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(logfile: str = "", debug: bool = False) -> logging.Logger:
    """
    Sends the gridfs_web loggers to stdout, or appends to logfile when one is
    configured. Raises OSError if the file cannot be opened.
    """
    if logfile:
        handler = logging.FileHandler(logfile, mode="a", encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False
    return logger
