"""Configuration module - environment settings and security policy."""

from materiatrack.common.config.settings import (
    Config,
    Environment,
    LogLevel,
    get_config,
    reset_config,
)
from materiatrack.common.config.security import (
    AuditFailurePolicy,
    EncryptionMode,
    SecurityConfig,
    load_security_config,
)

__all__ = [
    "Config",
    "Environment",
    "LogLevel",
    "get_config",
    "reset_config",
    "AuditFailurePolicy",
    "EncryptionMode",
    "SecurityConfig",
    "load_security_config",
]
