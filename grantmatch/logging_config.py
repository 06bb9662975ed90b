"""
Logging setup for GrantMatch.

Library modules only create `logging.getLogger(__name__)`; applications call
setup_logging() once at start-up.
"""

import logging
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configure the `grantmatch` logger with a stdout handler.

    Args:
        level: Log level name (DEBUG, INFO, ...). Defaults to GRANTMATCH_LOG_LEVEL.

    Returns:
        The configured package logger
    """
    if level is None:
        from .config import get_settings
        level = get_settings().log_level

    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    logger = logging.getLogger("grantmatch")
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)

    # Quiet chatty client libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    return logger
