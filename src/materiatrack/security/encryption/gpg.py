"""GPG backends - recipient and passphrase encryption via the gpg executable.

Plaintext is piped to the tool's stdin and the result read from stdout.
The file variants pass paths instead so bulk payloads are never held in
memory. Calls block until the process exits; no timeout is applied.
"""

import copy
import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Union

from pydantic import BaseModel, Field

from materiatrack.common.constants import EncryptionConstants
from materiatrack.common.exceptions import (
    ConfigurationError,
    EncryptionError,
    MateriaTrackException,
    NotFoundError,
)
from materiatrack.security.encryption.base import SecureStorage


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class KeyInfo(BaseModel):
    """A key as reported by ``gpg --with-colons``."""
    key_id: str
    user_id: str = ""
    creation_date: str = ""
    expiration_date: Optional[str] = None
    can_encrypt: bool = False

    def display(self) -> str:
        expiry = f" (expires: {self.expiration_date})" if self.expiration_date else ""
        return (
            f"Key: {self.key_id}\n"
            f"User: {self.user_id}\n"
            f"Created: {self.creation_date}{expiry}\n"
            f"Can encrypt: {self.can_encrypt}"
        )


def find_gpg_binary(candidates: Optional[Sequence[str]] = None) -> Optional[str]:
    """Resolve the first candidate executable found on PATH."""
    for name in candidates or EncryptionConstants.GPG_BINARIES:
        path = shutil.which(name)
        if path:
            return path
    return None


def is_gpg_available(candidates: Optional[Sequence[str]] = None) -> bool:
    return find_gpg_binary(candidates) is not None


def run_gpg(binary: str, args: Sequence[str], input_data: Optional[bytes] = None) -> bytes:
    """Run gpg and return its stdout.

    Raises:
        EncryptionError: If the process cannot start or exits non-zero.
            The tool's stderr is carried verbatim.
    """
    try:
        result = subprocess.run(
            [binary, *args],
            input=input_data,
            capture_output=True,
        )
    except OSError as e:
        raise EncryptionError(f"Failed to run {binary}: {e}") from e

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace")
        raise EncryptionError(f"GPG operation failed: {stderr}", stderr=stderr)

    return result.stdout


def _parse_colon_listing(output: str, primary: str) -> List[KeyInfo]:
    """Parse ``--with-colons`` output into one KeyInfo per primary record."""
    keys: List[KeyInfo] = []
    current: Optional[KeyInfo] = None

    for line in output.splitlines():
        parts = line.split(":")
        record = parts[0]

        if record == primary:
            if current is not None:
                keys.append(current)
            caps = parts[11] if len(parts) > 11 else ""
            expires = parts[6] if len(parts) > 6 else ""
            current = KeyInfo(
                key_id=parts[4] if len(parts) > 4 else "",
                creation_date=parts[5] if len(parts) > 5 else "",
                expiration_date=expires or None,
                can_encrypt="e" in caps or "E" in caps,
            )
        elif record == "uid" and current is not None and not current.user_id:
            current.user_id = parts[9] if len(parts) > 9 else ""

    if current is not None:
        keys.append(current)
    return keys


def list_secret_keys(candidates: Optional[Sequence[str]] = None) -> List[KeyInfo]:
    """List secret keys for selection UIs.

    Returns an empty list when gpg is absent or the listing fails.
    """
    binary = find_gpg_binary(candidates)
    if binary is None:
        logger.info("GPG not found; no secret keys to list")
        return []

    try:
        output = run_gpg(binary, ["--list-secret-keys", "--with-colons"])
    except EncryptionError as e:
        logger.warning(f"Could not list secret keys: {e.stderr.strip()}")
        return []

    return _parse_colon_listing(output.decode("utf-8", errors="replace"), primary="sec")


def verify_gpg_recipient(recipient: str, candidates: Optional[Sequence[str]] = None) -> bool:
    """Check that ``recipient`` resolves to a public key.

    Raises:
        ConfigurationError: If gpg is not installed
    """
    binary = find_gpg_binary(candidates)
    if binary is None:
        raise ConfigurationError("GPG not found")

    try:
        run_gpg(binary, ["--list-keys", recipient])
    except EncryptionError:
        return False
    return True


class GpgEncryption(SecureStorage):
    """Public-key encryption to a single recipient identity."""

    file_extension = EncryptionConstants.ENCRYPTED_EXTENSION

    def __init__(
        self,
        key_id: str,
        armor: bool = True,
        binaries: Optional[Sequence[str]] = None,
    ):
        """Initialize the recipient backend.

        Args:
            key_id: Recipient key ID, fingerprint or e-mail
            armor: Produce ASCII-armored output
            binaries: Candidate executable names, tried in order

        Raises:
            ConfigurationError: If key_id is empty or gpg is not installed
        """
        if not key_id:
            raise ConfigurationError("GPG key ID required for encryption")

        self.binaries = tuple(binaries or EncryptionConstants.GPG_BINARIES)
        gpg_binary = find_gpg_binary(self.binaries)
        if gpg_binary is None:
            raise ConfigurationError(
                f"GPG binary not found (tried {', '.join(self.binaries)})",
                details={"candidates": list(self.binaries)},
            )

        self.key_id = key_id
        self.armor = armor
        self.gpg_binary = gpg_binary

    def with_armor(self, armor: bool) -> "GpgEncryption":
        clone = copy.copy(self)
        clone.armor = armor
        return clone

    def _armor_args(self) -> List[str]:
        return ["--armor"] if self.armor else []

    def verify_key(self) -> KeyInfo:
        """Look up the recipient key.

        Raises:
            NotFoundError: If the key is not in the keyring
        """
        try:
            output = run_gpg(
                self.gpg_binary, ["--list-keys", "--with-colons", self.key_id]
            )
        except EncryptionError as e:
            raise NotFoundError(
                f"GPG key not found: {self.key_id}",
                details={"stderr": e.stderr},
            ) from e

        keys = _parse_colon_listing(output.decode("utf-8", errors="replace"), primary="pub")
        if not keys:
            return KeyInfo(key_id=self.key_id)
        return keys[0]

    def encrypt(self, data: bytes) -> bytes:
        args = ["--encrypt", "--recipient", self.key_id, *self._armor_args()]
        return run_gpg(self.gpg_binary, args, data)

    def decrypt(self, data: bytes) -> bytes:
        return run_gpg(self.gpg_binary, ["--decrypt"], data)

    def encrypt_file(self, input_path: PathLike, output_path: PathLike) -> None:
        """Encrypt one file into another without buffering it here."""
        args = [
            "--yes",
            "--encrypt",
            "--recipient", self.key_id,
            "--output", str(output_path),
            *self._armor_args(),
            str(input_path),
        ]
        run_gpg(self.gpg_binary, args)

    def decrypt_file(self, input_path: PathLike, output_path: PathLike) -> None:
        """Decrypt one file into another without buffering it here."""
        args = ["--yes", "--decrypt", "--output", str(output_path), str(input_path)]
        run_gpg(self.gpg_binary, args)

    def is_available(self) -> bool:
        try:
            self.verify_key()
        except (MateriaTrackException, OSError) as e:
            logger.info(f"GPG recipient {self.key_id} unavailable: {e}")
            return False
        return True


class PasswordEncryption(SecureStorage):
    """Symmetric encryption; gpg prompts for the passphrase itself."""

    file_extension = EncryptionConstants.ENCRYPTED_EXTENSION

    def __init__(
        self,
        cipher: str = EncryptionConstants.DEFAULT_CIPHER,
        binaries: Optional[Sequence[str]] = None,
    ):
        self.cipher = cipher
        self.binaries = tuple(binaries or EncryptionConstants.GPG_BINARIES)

    def with_cipher(self, cipher: str) -> "PasswordEncryption":
        return PasswordEncryption(cipher=cipher, binaries=self.binaries)

    def _binary(self) -> str:
        binary = find_gpg_binary(self.binaries)
        if binary is None:
            raise ConfigurationError("GPG not found")
        return binary

    def encrypt(self, data: bytes) -> bytes:
        args = ["--symmetric", "--cipher-algo", self.cipher, "--armor"]
        return run_gpg(self._binary(), args, data)

    def decrypt(self, data: bytes) -> bytes:
        return run_gpg(self._binary(), ["--decrypt"], data)

    def is_available(self) -> bool:
        return is_gpg_available(self.binaries)
