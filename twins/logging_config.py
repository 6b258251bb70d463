"""
Logger setup shared by the monitor entry points
"""
import logging
from typing import Optional

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def setup_logger(name: Optional[str] = None, level: int = logging.INFO,
                 log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure a logger with a console handler and an optional file handler.

    Calling it again for the same logger only updates the level.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT)

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
