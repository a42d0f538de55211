"""Audit module - tamper-evident ledger of domain actions.

Components:
- AuditLedger: Abstract base class for ledgers
- AuditLog: File-backed JSONL ledger with hash chain and rotation
- verify_chain: Integrity check for active or rotated ledger files
- format_audit_report: Human-readable report over entries
"""

from materiatrack.security.audit.log import (
    GENESIS,
    AuditLedger,
    AuditLog,
    verify_chain,
)
from materiatrack.security.audit.report import format_audit_report

__all__ = [
    "GENESIS",
    "AuditLedger",
    "AuditLog",
    "verify_chain",
    "format_audit_report",
]
