import logging
from typing import Union

LOGGER_NAME = "chatbridge"


def setup_logging(level: Union[str, int] = logging.WARNING) -> logging.Logger:
    """Configure and return the package logger (one stream handler, installed once)."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger
