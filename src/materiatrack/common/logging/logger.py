"""Logging setup for MateriaTrack entry points.

Library modules only call ``logging.getLogger(__name__)``; handlers are
attached here, once, by whoever runs the process.
"""

import logging
from typing import Optional, Union

from materiatrack.common.config.settings import LogLevel, get_config


def get_logger(name: str, level: Optional[Union[str, LogLevel]] = None) -> logging.Logger:
    """Get a logger with a single stream handler.

    Args:
        name: Logger name, usually ``__name__``
        level: Level name; defaults to ``MATERIATRACK_LOG_LEVEL`` via Config
    """
    if level is None:
        level = get_config().log_level
    if isinstance(level, LogLevel):
        level = level.value

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
