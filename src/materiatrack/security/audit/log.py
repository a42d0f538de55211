"""Audit Log - append-only, hash-chained JSONL ledger.

Each line holds one AuditEntry. An entry's checksum covers its own fields
and the checksum of the previous line, so editing, reordering or deleting
a persisted entry breaks the chain from that point on.

Design notes:
- Ordering is defined by file position, not by timestamp
- Single writer per file; no cross-process locking
- The only cached state is the tail checksum, read once on open
- A malformed line is corruption, never skipped
"""

import logging
import os
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from materiatrack.common.constants import AuditConstants, SecurityConstants
from materiatrack.common.exceptions import AuditLogCorruptedError
from materiatrack.security.permissions import ensure_secure_directory, set_secure_permissions
from materiatrack.security.schemas import AuditEntry, AuditFilter, BaseAuditAction


logger = logging.getLogger(__name__)

GENESIS = AuditConstants.GENESIS


class AuditLedger(ABC):
    """Abstract base class for audit ledgers.

    Implementations must be append-only and chain every entry to the
    one before it.
    """

    @abstractmethod
    def log_action(self, action: BaseAuditAction) -> AuditEntry:
        """Append an entry describing ``action``.

        Returns:
            The persisted entry

        Raises:
            OSError: If the write fails
        """
        pass

    @abstractmethod
    def verify_integrity(self) -> bool:
        """Replay the ledger and check every checksum and link.

        Returns:
            True if the chain is intact, False at the first violation
        """
        pass


def _iter_lines(path: Path) -> Iterator[Tuple[int, bytes]]:
    """Yield (line_number, stripped_raw_line) for non-empty lines.

    Lines stay undecoded so invalid UTF-8 surfaces per line, not mid-iteration.
    """
    with open(path, "rb") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if line:
                yield line_number, line


def _decode_entry(line: bytes) -> AuditEntry:
    return AuditEntry.from_json(line.decode("utf-8"))


def _parse_line(path: Path, line_number: int, line: bytes) -> AuditEntry:
    try:
        return _decode_entry(line)
    except ValueError as e:
        # UnicodeDecodeError, JSONDecodeError and ValidationError are all ValueErrors
        raise AuditLogCorruptedError(str(path), line_number, str(e)) from e


def verify_chain(path: Union[str, Path]) -> bool:
    """Verify a ledger file (active or rotated) from its genesis entry.

    A missing or empty file is a valid, empty chain.
    """
    path = Path(path)
    if not path.exists():
        return True

    expected_prev = GENESIS
    for line_number, line in _iter_lines(path):
        try:
            entry = _decode_entry(line)
        except ValueError as e:
            logger.warning(f"Audit chain unreadable at {path}:{line_number}: {e}")
            return False

        if entry.prev_checksum != expected_prev:
            logger.warning(
                f"Audit chain broken at {path}:{line_number}: "
                f"expected prev_checksum={expected_prev}, got {entry.prev_checksum}"
            )
            return False

        if not entry.verify():
            logger.warning(
                f"Audit entry checksum mismatch at {path}:{line_number}; "
                f"entry may have been tampered with"
            )
            return False

        expected_prev = entry.checksum

    return True


class AuditLog(AuditLedger):
    """File-backed audit ledger with size-based rotation.

    Features:
    - Append-only JSONL with one entry per line
    - SHA-256 hash chain starting at the genesis sentinel
    - fsync after every append
    - Owner-only (0600) file permissions
    - Rotation to ``<stem>.<UTC timestamp>.log`` past a size threshold
    """

    def __init__(
        self,
        path: Union[str, Path],
        max_size: Optional[int] = None,
    ):
        """Open the ledger at ``path``.

        Args:
            path: Ledger file. Created lazily on the first append.
            max_size: Rotation threshold in bytes. Defaults to 100 MiB.

        Raises:
            AuditLogCorruptedError: If the last persisted line is malformed
            OSError: If the file or its directory cannot be accessed
        """
        self.path = Path(path)
        self.max_size = max_size if max_size is not None else AuditConstants.MAX_LOG_SIZE

        ensure_secure_directory(self.path.parent)

        if self.path.exists():
            self._last_checksum = self._read_last_checksum()
            set_secure_permissions(self.path)
        else:
            self._last_checksum = GENESIS

    @classmethod
    def open(cls, path: Union[str, Path], max_size: Optional[int] = None) -> "AuditLog":
        """Open (or prepare to create) the ledger at ``path``."""
        return cls(path, max_size=max_size)

    @property
    def last_checksum(self) -> str:
        """Checksum the next entry will chain onto."""
        return self._last_checksum

    def _read_last_checksum(self) -> str:
        """Parse the last non-empty line and return its checksum."""
        last: Optional[Tuple[int, bytes]] = None
        for numbered_line in _iter_lines(self.path):
            last = numbered_line

        if last is None:
            return GENESIS

        line_number, line = last
        return _parse_line(self.path, line_number, line).checksum

    def _should_rotate(self) -> bool:
        if not self.path.exists():
            return False
        return self.path.stat().st_size >= self.max_size

    def _rotation_target(self) -> Path:
        """Pick an unused archive name, adding a counter within one second."""
        stamp = datetime.now(timezone.utc).strftime(AuditConstants.ROTATION_TIMESTAMP_FORMAT)
        suffix = self.path.suffix or ".log"
        base = f"{self.path.stem}.{stamp}"

        candidate = self.path.with_name(f"{base}{suffix}")
        counter = 1
        while candidate.exists():
            candidate = self.path.with_name(f"{base}_{counter}{suffix}")
            counter += 1
        return candidate

    def rotate(self) -> Optional[Path]:
        """Archive the active file and restart the chain at genesis.

        Returns:
            Path of the archived file, or None if there was nothing to rotate
        """
        if not self.path.exists():
            return None

        rotated_path = self._rotation_target()
        self.path.rename(rotated_path)
        set_secure_permissions(rotated_path)
        self._last_checksum = GENESIS

        logger.info(f"Rotated audit log {self.path} to {rotated_path.name}")
        return rotated_path

    def rotated_files(self) -> List[Path]:
        """List archived ledgers next to the active file, oldest first.

        Only names produced by rotate() are considered; ordering is by
        timestamp, then by numeric collision counter.
        """
        suffix = self.path.suffix or ".log"
        pattern = re.compile(
            rf"^{re.escape(self.path.stem)}\.(\d{{8}}_\d{{6}})(?:_(\d+))?{re.escape(suffix)}$"
        )

        archived = []
        for candidate in self.path.parent.glob(f"{self.path.stem}.*{suffix}"):
            match = pattern.match(candidate.name)
            if match and candidate != self.path:
                stamp, counter = match.groups()
                archived.append(((stamp, int(counter or 0)), candidate))

        return [path for _, path in sorted(archived)]

    def log_action(self, action: BaseAuditAction) -> AuditEntry:
        """Append an entry for ``action``, rotating first if needed."""
        if self._should_rotate():
            self.rotate()

        entry = AuditEntry.new(action, self._last_checksum)
        line = entry.to_json() + "\n"

        fd = os.open(
            str(self.path),
            os.O_WRONLY | os.O_CREAT | os.O_APPEND,
            SecurityConstants.SECURE_FILE_MODE,
        )
        with os.fdopen(fd, "a", encoding="utf-8") as f:
            f.write(line)
            f.flush()
            os.fsync(f.fileno())

        set_secure_permissions(self.path)
        self._last_checksum = entry.checksum

        logger.debug(f"Audit entry appended: {entry.action}")
        return entry

    def verify_integrity(self) -> bool:
        """Verify the hash chain of the active ledger file."""
        return verify_chain(self.path)

    def entry_count(self) -> int:
        """Count entries in the active ledger file."""
        if not self.path.exists():
            return 0
        return sum(1 for _ in _iter_lines(self.path))

    def iter_entries(self) -> Iterator[AuditEntry]:
        """Iterate entries in file order.

        Raises:
            AuditLogCorruptedError: On the first malformed line
        """
        if not self.path.exists():
            return
        for line_number, line in _iter_lines(self.path):
            yield _parse_line(self.path, line_number, line)

    def read_entries(self, limit: Optional[int] = None) -> List[AuditEntry]:
        """Read entries from the start of the file, at most ``limit``."""
        entries: List[AuditEntry] = []
        for entry in self.iter_entries():
            if limit is not None and len(entries) >= limit:
                break
            entries.append(entry)
        return entries

    def read_last_entries(self, count: int) -> List[AuditEntry]:
        """Read the ``count`` most recent entries (oldest first)."""
        if count <= 0:
            return []
        return self.read_entries()[-count:]

    def search(self, audit_filter: AuditFilter) -> List[AuditEntry]:
        """Return entries matching every predicate set on the filter."""
        return [entry for entry in self.iter_entries() if audit_filter.matches(entry)]
