"""Security settings - encryption backend and audit ledger policy.

Loaded from a YAML file with an optional top-level ``security:`` section::

    security:
      enable_encryption: true
      encryption_mode: recipient
      encryption_key: alice@example.com
      enable_audit_log: true
      audit_failure_policy: best_effort
"""

from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from materiatrack.common.constants import AuditConstants, EncryptionConstants
from materiatrack.common.exceptions import ConfigurationError


class EncryptionMode(str, Enum):
    """How the encryption backend derives its key."""
    RECIPIENT = "recipient"
    PASSPHRASE = "passphrase"


class AuditFailurePolicy(str, Enum):
    """What to do when writing an audit entry fails.
    
    STRICT propagates every failure. BEST_EFFORT logs and suppresses
    failures for routine actions; critical actions always propagate.
    """
    STRICT = "strict"
    BEST_EFFORT = "best_effort"


class SecurityConfig(BaseModel):
    """Immutable security configuration."""
    
    model_config = ConfigDict(frozen=True, extra="forbid")
    
    enable_encryption: bool = Field(
        default=False,
        description="Encrypt data handed to the security manager"
    )
    encryption_mode: EncryptionMode = Field(
        default=EncryptionMode.RECIPIENT,
        description="Recipient (public key) or passphrase (symmetric) encryption"
    )
    encryption_key: str = Field(
        default="",
        description="Recipient key ID, fingerprint or e-mail"
    )
    cipher: str = Field(
        default=EncryptionConstants.DEFAULT_CIPHER,
        description="Symmetric cipher for passphrase mode"
    )
    armor: bool = Field(
        default=True,
        description="Produce ASCII-armored ciphertext"
    )
    gpg_binaries: List[str] = Field(
        default_factory=lambda: list(EncryptionConstants.GPG_BINARIES),
        description="Candidate executable names, tried in order"
    )
    enable_audit_log: bool = Field(
        default=False,
        description="Record audit actions in the hash-chained ledger"
    )
    audit_log_path: Optional[Path] = Field(
        default=None,
        description="Ledger file; defaults to <config_dir>/audit.log"
    )
    audit_max_size: int = Field(
        default=AuditConstants.MAX_LOG_SIZE,
        gt=0,
        description="Rotate the ledger once it reaches this many bytes"
    )
    audit_failure_policy: AuditFailurePolicy = Field(
        default=AuditFailurePolicy.STRICT,
        description="Whether audit write failures may be suppressed"
    )


def load_security_config(path: Union[str, Path]) -> SecurityConfig:
    """Load and validate security settings from a YAML file.
    
    Args:
        path: YAML file. A missing file yields the defaults.
        
    Returns:
        Validated SecurityConfig
        
    Raises:
        ConfigurationError: If the file is malformed or has invalid values
    """
    path = Path(path)
    if not path.exists():
        return SecurityConfig()
    
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse config {path}: {e}", details={"path": str(path)}
        ) from e
    
    if not isinstance(raw_config, dict):
        raise ConfigurationError(
            f"Config {path} must contain a mapping", details={"path": str(path)}
        )
    
    section = raw_config.get("security", raw_config)
    try:
        return SecurityConfig.model_validate(section or {})
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid security settings in {path}: {e}", details={"path": str(path)}
        ) from e
