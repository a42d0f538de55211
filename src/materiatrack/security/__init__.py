"""Security layer - encryption, tamper-evident audit and secure export."""

from materiatrack.security.schemas import (
    AuditAction,
    AuditActionType,
    AuditEntry,
    AuditFilter,
    BaseAuditAction,
    ConfigChanged,
    DataExported,
    DataImported,
    EncryptionDisabled,
    EncryptionEnabled,
    EntryCreated,
    EntryDeleted,
    EntryUpdated,
    ProjectCreated,
    ProjectDeleted,
    TaskCreated,
    TaskDeleted,
    TrackingFinished,
    TrackingStarted,
    parse_action,
)
from materiatrack.security.audit import (
    GENESIS,
    AuditLedger,
    AuditLog,
    format_audit_report,
    verify_chain,
)
from materiatrack.security.encryption import (
    GpgEncryption,
    KeyInfo,
    PasswordEncryption,
    SecureStorage,
    is_gpg_available,
    list_secret_keys,
    verify_gpg_recipient,
)
from materiatrack.security.permissions import (
    check_file_permissions,
    ensure_secure_directory,
    set_secure_permissions,
    validate_local_storage,
)
from materiatrack.security.manager import SecurityManager, secure_delete_file
from materiatrack.security.export import (
    ExportFormat,
    ExportOptions,
    ExportProtection,
    ExportResult,
    SecureExporter,
    decrypt_import,
    format_duration,
)

__all__ = [
    "AuditAction",
    "AuditActionType",
    "AuditEntry",
    "AuditFilter",
    "BaseAuditAction",
    "ConfigChanged",
    "DataExported",
    "DataImported",
    "EncryptionDisabled",
    "EncryptionEnabled",
    "EntryCreated",
    "EntryDeleted",
    "EntryUpdated",
    "ProjectCreated",
    "ProjectDeleted",
    "TaskCreated",
    "TaskDeleted",
    "TrackingFinished",
    "TrackingStarted",
    "parse_action",
    "GENESIS",
    "AuditLedger",
    "AuditLog",
    "format_audit_report",
    "verify_chain",
    "GpgEncryption",
    "KeyInfo",
    "PasswordEncryption",
    "SecureStorage",
    "is_gpg_available",
    "list_secret_keys",
    "verify_gpg_recipient",
    "check_file_permissions",
    "ensure_secure_directory",
    "set_secure_permissions",
    "validate_local_storage",
    "SecurityManager",
    "secure_delete_file",
    "ExportFormat",
    "ExportOptions",
    "ExportProtection",
    "ExportResult",
    "SecureExporter",
    "decrypt_import",
    "format_duration",
]
