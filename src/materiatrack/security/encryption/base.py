"""Secure storage capability - the seam between data and cryptography."""

from abc import ABC, abstractmethod


class SecureStorage(ABC):
    """Abstract base class for encryption backends.
    
    Backends are stateless beyond their configuration: no key material
    or session is cached between calls.
    """
    
    # Appended to the names of artifacts this backend encrypts
    file_extension: str = ".enc"
    
    @abstractmethod
    def encrypt(self, data: bytes) -> bytes:
        """Encrypt ``data``.
        
        Raises:
            EncryptionError: If the backend fails
        """
        pass
    
    @abstractmethod
    def decrypt(self, data: bytes) -> bytes:
        """Decrypt ``data``.
        
        Raises:
            EncryptionError: If the backend fails
        """
        pass
    
    @abstractmethod
    def is_available(self) -> bool:
        """Probe whether the backend can currently be used. Never raises."""
        pass
