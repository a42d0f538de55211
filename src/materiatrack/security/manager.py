"""Security Manager - one facade over encryption and audit.

Collaborators never talk to a backend or ledger directly:

    manager = SecurityManager.from_config(load_security_config(path))
    manager.validate_config()
    manager.log_action(EntryCreated(entry_id=1, project="alpha", task="t1"))
    blob = manager.encrypt_data(payload)

When encryption or audit is disabled the corresponding calls are exact
pass-throughs / no-ops; nothing else is ever silent.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from materiatrack.common.config.security import (
    AuditFailurePolicy,
    EncryptionMode,
    SecurityConfig,
)
from materiatrack.common.config.settings import get_config
from materiatrack.common.constants import AuditConstants, SecurityConstants
from materiatrack.common.exceptions import AuditError, ConfigurationError
from materiatrack.security.audit.log import AuditLedger, AuditLog
from materiatrack.security.encryption.base import SecureStorage
from materiatrack.security.encryption.gpg import (
    GpgEncryption,
    PasswordEncryption,
    is_gpg_available,
)
from materiatrack.security.permissions import validate_local_storage
from materiatrack.security.schemas import AuditEntry, BaseAuditAction


logger = logging.getLogger(__name__)


def validate_security_config(config: SecurityConfig) -> None:
    """Reject unusable security settings before any data is at risk.

    Raises:
        ConfigurationError: If encryption is requested without a recipient
            or without gpg, or the audit path is not a local path
    """
    if config.enable_encryption:
        if config.encryption_mode == EncryptionMode.RECIPIENT and not config.encryption_key.strip():
            raise ConfigurationError(
                "encryption_key required when encryption is enabled",
                details={"field": "encryption_key"},
            )

        if not is_gpg_available(config.gpg_binaries):
            raise ConfigurationError(
                f"GPG ({' or '.join(config.gpg_binaries)}) not found in PATH",
                details={"candidates": list(config.gpg_binaries)},
            )

    if config.enable_audit_log and config.audit_log_path is not None:
        validate_local_storage(config.audit_log_path)


def build_encryption_backend(config: SecurityConfig) -> SecureStorage:
    """Create the backend selected by ``encryption_mode``."""
    if config.encryption_mode == EncryptionMode.PASSPHRASE:
        return PasswordEncryption(cipher=config.cipher, binaries=config.gpg_binaries)
    return GpgEncryption(
        config.encryption_key,
        armor=config.armor,
        binaries=config.gpg_binaries,
    )


def secure_delete_file(path: Union[str, Path]) -> None:
    """Overwrite a file with zeros, flush it to disk, then remove it.

    Best effort only: copy-on-write and log-structured filesystems, SSD
    wear levelling and snapshots may keep the original blocks. A missing
    file is not an error.
    """
    path = Path(path)
    if not path.exists():
        return

    size = path.stat().st_size
    chunk_size = SecurityConstants.SECURE_DELETE_CHUNK_SIZE
    zeros = bytes(chunk_size)

    with open(path, "r+b") as f:
        written = 0
        while written < size:
            to_write = min(chunk_size, size - written)
            f.write(zeros[:to_write])
            written += to_write
        f.flush()
        os.fsync(f.fileno())

    path.unlink()
    logger.debug(f"Securely deleted {path} ({size} bytes overwritten)")


class SecurityManager:
    """Composes an optional encryption backend and an optional audit ledger."""

    def __init__(
        self,
        config: Optional[SecurityConfig] = None,
        encryption: Optional[SecureStorage] = None,
        audit: Optional[AuditLedger] = None,
    ):
        """Initialize from already-built components.

        Args:
            config: Security settings (defaults: everything disabled)
            encryption: Backend used by encrypt_data/decrypt_data
            audit: Ledger used by log_action
        """
        self.config = config or SecurityConfig()
        self.encryption = encryption
        self.audit = audit

    @classmethod
    def from_config(
        cls,
        config: SecurityConfig,
        config_dir: Optional[Path] = None,
    ) -> "SecurityManager":
        """Validate ``config`` and build the components it enables.

        Raises:
            ConfigurationError: If the settings are unusable
            AuditLogCorruptedError: If the existing ledger tail is malformed
        """
        validate_security_config(config)

        encryption = build_encryption_backend(config) if config.enable_encryption else None

        audit = None
        if config.enable_audit_log:
            path = config.audit_log_path or cls.audit_log_path(config_dir)
            audit = AuditLog.open(path, max_size=config.audit_max_size)

        logger.info(
            f"Security manager ready (encryption={'on' if encryption else 'off'}, "
            f"audit={'on' if audit else 'off'})"
        )
        return cls(config=config, encryption=encryption, audit=audit)

    @staticmethod
    def audit_log_path(config_dir: Optional[Path] = None) -> Path:
        """Default ledger location inside the configuration directory."""
        base = Path(config_dir) if config_dir is not None else get_config().config_dir
        return base / AuditConstants.LOG_FILENAME

    @property
    def is_encryption_enabled(self) -> bool:
        return self.encryption is not None

    @property
    def is_audit_enabled(self) -> bool:
        return self.audit is not None

    def encrypt_data(self, data: bytes) -> bytes:
        """Encrypt with the configured backend; identity when disabled."""
        if self.encryption is None:
            return data
        return self.encryption.encrypt(data)

    def decrypt_data(self, data: bytes) -> bytes:
        """Decrypt with the configured backend; identity when disabled."""
        if self.encryption is None:
            return data
        return self.encryption.decrypt(data)

    def log_action(self, action: BaseAuditAction) -> Optional[AuditEntry]:
        """Record ``action`` in the ledger.

        Returns:
            The appended entry, or None when audit is disabled or a
            best-effort failure was suppressed

        Raises:
            OSError, AuditError: Ledger failures, unless the best-effort
                policy applies to this (non-critical) action
        """
        if self.audit is None:
            return None

        try:
            return self.audit.log_action(action)
        except (OSError, AuditError) as e:
            if (
                self.config.audit_failure_policy == AuditFailurePolicy.BEST_EFFORT
                and not action.is_critical
            ):
                logger.warning(
                    f"Audit write failed for {action.action_type.value}; continuing: {e}"
                )
                return None
            logger.error(f"Audit write failed for {action.action_type.value}: {e}")
            raise

    def verify_audit_integrity(self) -> bool:
        """Health signal for the ledger; True when audit is disabled."""
        if self.audit is None:
            return True
        return self.audit.verify_integrity()

    def validate_config(self) -> None:
        """Fail fast on settings that would break the first write."""
        validate_security_config(self.config)

    @staticmethod
    def secure_delete_file(path: Union[str, Path]) -> None:
        secure_delete_file(path)
