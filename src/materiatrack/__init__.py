"""MateriaTrack - tamper-evident audit trail, encryption and secure export."""

__version__ = "0.1.0"
__author__ = "MateriaTrack Team"

from materiatrack.security import (
    AuditAction,
    AuditEntry,
    AuditLog,
    SecureExporter,
    SecurityManager,
)

__all__ = [
    "AuditAction",
    "AuditEntry",
    "AuditLog",
    "SecureExporter",
    "SecurityManager",
]
