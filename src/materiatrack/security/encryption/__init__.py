"""Encryption backends behind the SecureStorage capability.

Components:
- SecureStorage: Abstract base class {encrypt, decrypt, is_available}
- GpgEncryption: Recipient (public key) backend
- PasswordEncryption: Passphrase (symmetric) backend
- list_secret_keys / verify_gpg_recipient: Identity discovery
"""

from materiatrack.security.encryption.base import SecureStorage
from materiatrack.security.encryption.gpg import (
    GpgEncryption,
    KeyInfo,
    PasswordEncryption,
    find_gpg_binary,
    is_gpg_available,
    list_secret_keys,
    run_gpg,
    verify_gpg_recipient,
)

__all__ = [
    "SecureStorage",
    "GpgEncryption",
    "KeyInfo",
    "PasswordEncryption",
    "find_gpg_binary",
    "is_gpg_available",
    "list_secret_keys",
    "run_gpg",
    "verify_gpg_recipient",
]
