"""Custom exceptions for MateriaTrack.

Provides a hierarchy of exceptions for different error types.
All MateriaTrack exceptions inherit from MateriaTrackException.
Filesystem failures are not wrapped: they surface as the builtin
OSError family.
"""

from typing import Any, Dict, Optional


class MateriaTrackException(Exception):
    """Base exception for all MateriaTrack errors.
    
    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context about the error
    """
    
    def __init__(
        self,
        message: str,
        code: str = "MATERIATRACK_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for display or logging."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(MateriaTrackException):
    """Raised when configuration is invalid or missing."""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONFIG_ERROR", details=details)


class EncryptionError(MateriaTrackException):
    """Raised when the external encryption tool fails.
    
    The tool's diagnostic output is kept verbatim in ``stderr``.
    """
    
    def __init__(
        self,
        message: str,
        stderr: str = "",
        details: Optional[Dict[str, Any]] = None
    ):
        details = details or {}
        details["stderr"] = stderr
        self.stderr = stderr
        super().__init__(message, code="ENCRYPTION_ERROR", details=details)


class NotFoundError(MateriaTrackException):
    """Raised when a referenced record, key or file does not exist."""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="NOT_FOUND", details=details)


class AuditError(MateriaTrackException):
    """Raised when audit logging fails."""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="AUDIT_ERROR", details=details)


class AuditLogCorruptedError(AuditError):
    """Raised when a persisted audit line cannot be parsed."""
    
    def __init__(self, path: str, line_number: int, reason: str):
        super().__init__(
            f"Malformed audit entry in {path} at line {line_number}: {reason}",
            details={"path": path, "line_number": line_number},
        )
        self.path = path
        self.line_number = line_number
