"""
Logging setup.
"""
import logging
from typing import Optional

from bed_allocation.config import settings


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configures and returns the root logger of the service.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured logger
    """
    if level is None:
        level = settings.LOG_LEVEL

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        settings.LOG_FORMAT,
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    logger = logging.getLogger('bed_allocation')
    logger.setLevel(numeric_level)

    # Avoid duplicated handlers on reload
    if not logger.handlers:
        logger.addHandler(console_handler)

    return logger
