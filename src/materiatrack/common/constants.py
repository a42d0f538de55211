"""Centralized constants for MateriaTrack security configuration."""


# ===== AUDIT LEDGER =====
class AuditConstants:
    GENESIS = "genesis"
    HASH_ALGORITHM = "sha256"
    MAX_LOG_SIZE = 100 * 1024 * 1024  # 100 MiB
    LOG_FILENAME = "audit.log"
    ROTATION_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


# ===== FILESYSTEM =====
class SecurityConstants:
    SECURE_FILE_MODE = 0o600
    SECURE_DIR_MODE = 0o700
    SECURE_DELETE_CHUNK_SIZE = 4096
    REMOTE_SCHEMES = ("http", "https", "ftp", "s3")


# ===== ENCRYPTION =====
class EncryptionConstants:
    GPG_BINARIES = ("gpg2", "gpg")
    DEFAULT_CIPHER = "AES256"
    ENCRYPTED_EXTENSION = ".gpg"


# ===== EXPORT =====
class ExportConstants:
    ARCHIVE_EXTENSION = ".zip"
    ARCHIVE_MEMBER_STEM = "export"
    CSV_SEPARATOR = ","
