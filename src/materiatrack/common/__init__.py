"""Common utilities - logging, config, exceptions."""

from materiatrack.common.logging.logger import get_logger
from materiatrack.common.config import Config, get_config, reset_config
from materiatrack.common.exceptions import (
    MateriaTrackException,
    ConfigurationError,
    EncryptionError,
    NotFoundError,
    AuditError,
    AuditLogCorruptedError,
)

__all__ = [
    # Logging
    "get_logger",
    # Config
    "Config",
    "get_config",
    "reset_config",
    # Exceptions
    "MateriaTrackException",
    "ConfigurationError",
    "EncryptionError",
    "NotFoundError",
    "AuditError",
    "AuditLogCorruptedError",
]
