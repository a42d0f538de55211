"""Configuration management - Centralized configuration for MateriaTrack.

Provides environment-aware configuration with sensible defaults.
All configuration is loaded from environment variables with fallbacks.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _default_config_dir() -> Path:
    """Get the per-user configuration directory."""
    base = os.getenv("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "materiatrack"


@dataclass
class Config:
    """Central configuration object for MateriaTrack.
    
    All settings can be overridden via environment variables prefixed
    with MATERIATRACK_.
    
    Example:
        MATERIATRACK_ENVIRONMENT=production
        MATERIATRACK_LOG_LEVEL=DEBUG
        MATERIATRACK_CONFIG_DIR=/home/alice/.config/materiatrack
    """
    
    environment: Environment = field(
        default_factory=lambda: Environment(
            os.getenv("MATERIATRACK_ENVIRONMENT", "development")
        )
    )
    log_level: LogLevel = field(
        default_factory=lambda: LogLevel(os.getenv("MATERIATRACK_LOG_LEVEL", "INFO"))
    )
    config_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv("MATERIATRACK_CONFIG_DIR", str(_default_config_dir()))
        )
    )
    security_config_file: Optional[Path] = field(
        default_factory=lambda: (
            Path(os.environ["MATERIATRACK_SECURITY_CONFIG"])
            if os.getenv("MATERIATRACK_SECURITY_CONFIG")
            else None
        )
    )
    
    @property
    def security_file(self) -> Path:
        """Get the security settings file path."""
        if self.security_config_file is not None:
            return self.security_config_file
        return self.config_dir / "security.yaml"
    
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION


# Singleton instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance.
    
    Returns:
        Config: The global configuration singleton.
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
