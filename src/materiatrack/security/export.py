"""Secure export - filter, sanitize, format and protect time entries.

The pipeline is deterministic apart from the generation timestamp in
Markdown output. Protection is all-or-nothing: when encryption is
requested and cannot be performed, no artifact is written.
"""

import csv
import io
import json
import logging
import zipfile
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict

from materiatrack.common.constants import ExportConstants
from materiatrack.common.exceptions import ConfigurationError, NotFoundError
from materiatrack.models import EntryWithDetails
from materiatrack.security.encryption.base import SecureStorage
from materiatrack.security.encryption.gpg import GpgEncryption, find_gpg_binary, run_gpg


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

CSV_FULL_HEADER = ["id", "project", "task", "start", "end", "duration_seconds", "notes", "git_commits"]
CSV_SANITIZED_HEADER = ["id", "project", "task", "start", "end", "duration_seconds"]


class ExportFormat(str, Enum):
    """Output formats."""
    JSON = "json"
    CSV = "csv"
    MARKDOWN = "markdown"

    @property
    def extension(self) -> str:
        return {"json": "json", "csv": "csv", "markdown": "md"}[self.value]

    @classmethod
    def parse(cls, value: str) -> "ExportFormat":
        """Lenient parse; anything unrecognised is JSON."""
        value = value.strip().lower()
        if value == "csv":
            return cls.CSV
        if value in ("md", "markdown"):
            return cls.MARKDOWN
        return cls.JSON


class ExportProtection(str, Enum):
    """How the formatted bytes are protected on disk."""
    NONE = "none"
    ENCRYPT = "encrypt"
    ARCHIVE = "archive"


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ExportOptions(BaseModel):
    """Immutable filter + format + protection descriptor.

    Built with chained setters::

        ExportOptions().with_sanitization().with_format(ExportFormat.CSV)
    """

    model_config = ConfigDict(frozen=True)

    protection: ExportProtection = ExportProtection.NONE
    recipient: Optional[str] = None
    sanitize: bool = False
    format: ExportFormat = ExportFormat.JSON
    since: Optional[datetime] = None
    projects: Optional[Tuple[str, ...]] = None

    @property
    def encrypt(self) -> bool:
        return self.protection == ExportProtection.ENCRYPT

    @property
    def archive(self) -> bool:
        return self.protection == ExportProtection.ARCHIVE

    def with_encryption(self, recipient: Optional[str] = None) -> "ExportOptions":
        return self.model_copy(
            update={"protection": ExportProtection.ENCRYPT, "recipient": recipient}
        )

    def with_archive(self) -> "ExportOptions":
        return self.model_copy(update={"protection": ExportProtection.ARCHIVE})

    def with_sanitization(self) -> "ExportOptions":
        return self.model_copy(update={"sanitize": True})

    def with_format(self, export_format: ExportFormat) -> "ExportOptions":
        return self.model_copy(update={"format": export_format})

    def with_since(self, since: datetime) -> "ExportOptions":
        return self.model_copy(update={"since": _ensure_utc(since)})

    def with_projects(self, projects: Sequence[str]) -> "ExportOptions":
        return self.model_copy(update={"projects": tuple(projects)})


class SanitizedEntry(BaseModel):
    """Structural and timing fields only; no notes, no commit references."""
    id: int
    project_name: str
    task_name: str
    start: datetime
    end: Optional[datetime] = None
    duration_seconds: int

    @classmethod
    def from_entry(cls, entry: EntryWithDetails) -> "SanitizedEntry":
        return cls(
            id=entry.entry.id,
            project_name=entry.project_name,
            task_name=entry.task_name,
            start=entry.entry.start,
            end=entry.entry.end,
            duration_seconds=entry.entry.duration_seconds(),
        )


class ExportResult(BaseModel):
    """What an export call actually produced."""
    path: Path
    entry_count: int
    encrypted: bool
    archived: bool = False
    sanitized: bool
    format: ExportFormat

    def summary(self) -> str:
        parts = [f"Exported {self.entry_count} entries"]
        if self.encrypted:
            parts.append("encrypted with GPG")
        if self.archived:
            parts.append("archived")
        if self.sanitized:
            parts.append("sanitized")
        return f"{', '.join(parts)} to {self.path}"


def format_duration(seconds: int) -> str:
    """Render seconds as ``1h 30m`` or ``45m``."""
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def _md_cell(value: str) -> str:
    return value.replace("|", "\\|").replace("\n", " ")


class SecureExporter:
    """Runs the export pipeline for one set of options."""

    def __init__(
        self,
        options: Optional[ExportOptions] = None,
        backend: Optional[SecureStorage] = None,
    ):
        """Initialize exporter.

        Args:
            options: Export options (defaults: unfiltered plain JSON)
            backend: Encryption backend for protected exports. When omitted
                a GpgEncryption for ``options.recipient`` is created on demand.
        """
        self.options = options or ExportOptions()
        self.backend = backend

    def export_entries(
        self,
        entries: Sequence[EntryWithDetails],
        output_path: PathLike,
    ) -> ExportResult:
        """Filter, sanitize, format and protect ``entries``.

        Raises:
            ConfigurationError: Encryption requested but no usable backend
            EncryptionError: The backend failed while encrypting
            OSError: The artifact could not be written
        """
        output_path = Path(output_path)

        # Resolve protection first so a broken backend never leaves a file behind
        backend = self._resolve_backend() if self.options.encrypt else None

        filtered = self.filter_entries(entries)
        data = self.format_entries(filtered).encode("utf-8")

        if backend is not None:
            final_path = self._encrypt_and_write(data, output_path, backend)
        elif self.options.archive:
            final_path = self._create_archive(data, output_path)
        else:
            output_path.write_bytes(data)
            final_path = output_path

        result = ExportResult(
            path=final_path,
            entry_count=len(filtered),
            encrypted=backend is not None,
            archived=self.options.archive,
            sanitized=self.options.sanitize,
            format=self.options.format,
        )
        logger.info(result.summary())
        return result

    def _resolve_backend(self) -> SecureStorage:
        backend = self.backend
        if backend is None:
            if not self.options.recipient:
                raise ConfigurationError("GPG recipient required for encryption")
            backend = GpgEncryption(self.options.recipient)

        if not backend.is_available():
            raise ConfigurationError(
                "Encryption backend unavailable; refusing to write an unprotected export",
                details={"recipient": self.options.recipient},
            )
        return backend

    def filter_entries(self, entries: Sequence[EntryWithDetails]) -> List[EntryWithDetails]:
        """Keep entries started at/after ``since`` and in the allowed projects."""
        since = _ensure_utc(self.options.since) if self.options.since else None
        projects = self.options.projects

        filtered = []
        for entry in entries:
            if since is not None and _ensure_utc(entry.entry.start) < since:
                continue
            if projects is not None and entry.project_name not in projects:
                continue
            filtered.append(entry)
        return filtered

    def format_entries(self, entries: Sequence[EntryWithDetails]) -> str:
        """Render entries in the configured format."""
        if self.options.format == ExportFormat.CSV:
            return self._format_csv(entries)
        if self.options.format == ExportFormat.MARKDOWN:
            return self._format_markdown(entries)
        return self._format_json(entries)

    def _format_json(self, entries: Sequence[EntryWithDetails]) -> str:
        records: List[Dict[str, Any]]
        if self.options.sanitize:
            records = [SanitizedEntry.from_entry(e).model_dump(mode="json") for e in entries]
        else:
            records = [e.model_dump(mode="json") for e in entries]
        return json.dumps(records, indent=2, ensure_ascii=False)

    def _format_csv(self, entries: Sequence[EntryWithDetails]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(
            buffer,
            delimiter=ExportConstants.CSV_SEPARATOR,
            lineterminator="\n",
            quoting=csv.QUOTE_MINIMAL,
        )
        sanitize = self.options.sanitize
        writer.writerow(CSV_SANITIZED_HEADER if sanitize else CSV_FULL_HEADER)

        for e in entries:
            row = [
                e.entry.id,
                e.project_name,
                e.task_name,
                e.entry.start.isoformat(),
                e.entry.end.isoformat() if e.entry.end else "",
                e.entry.duration_seconds(),
            ]
            if not sanitize:
                row.append(e.entry.notes or "")
                row.append("; ".join(e.entry.git_commits))
            writer.writerow(row)

        return buffer.getvalue()

    def _format_markdown(self, entries: Sequence[EntryWithDetails]) -> str:
        sanitize = self.options.sanitize
        generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
        lines = ["# MateriaTrack Export", "", f"Generated: {generated}", ""]

        if sanitize:
            lines.extend([
                "*Note: This export has been sanitized (notes and commits removed)*",
                "",
            ])

        lines.extend([
            "## Entries",
            "",
            "| Date | Project | Task | Duration |",
            "|------|---------|------|----------|",
        ])
        for e in entries:
            lines.append(
                f"| {e.entry.start.strftime('%Y-%m-%d')} "
                f"| {_md_cell(e.project_name)} "
                f"| {_md_cell(e.task_name)} "
                f"| {format_duration(e.entry.duration_seconds())} |"
            )

        if not sanitize:
            lines.extend(["", "## Details", ""])
            for e in entries:
                lines.append(f"### Entry #{e.entry.id}")
                lines.append("")
                lines.append(f"- **Project**: {e.project_name}")
                lines.append(f"- **Task**: {e.task_name}")
                lines.append(f"- **Start**: {e.entry.start.isoformat()}")
                if e.entry.end is not None:
                    lines.append(f"- **End**: {e.entry.end.isoformat()}")
                if e.entry.notes:
                    lines.append(f"- **Notes**: {e.entry.notes}")
                if e.entry.git_commits:
                    lines.append("- **Git Commits**:")
                    lines.extend(f"  - {commit}" for commit in e.entry.git_commits)
                lines.append("")

        return "\n".join(lines) + "\n"

    def _encrypt_and_write(
        self,
        data: bytes,
        output_path: Path,
        backend: SecureStorage,
    ) -> Path:
        encrypted = backend.encrypt(data)
        encrypted_path = output_path.with_name(output_path.name + backend.file_extension)
        encrypted_path.write_bytes(encrypted)
        return encrypted_path

    def _create_archive(self, data: bytes, output_path: Path) -> Path:
        archive_path = output_path.with_suffix(ExportConstants.ARCHIVE_EXTENSION)
        member = f"{ExportConstants.ARCHIVE_MEMBER_STEM}.{self.options.format.extension}"
        with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            archive.writestr(member, data)
        return archive_path


def decrypt_import(
    encrypted_path: PathLike,
    backend: Optional[SecureStorage] = None,
) -> bytes:
    """Decrypt an encrypted export for re-import.

    Without a backend the default gpg keyring decides which key applies.

    Raises:
        NotFoundError: If the file does not exist
        ConfigurationError: If gpg is not installed
        EncryptionError: If decryption fails
    """
    encrypted_path = Path(encrypted_path)
    if not encrypted_path.exists():
        raise NotFoundError(
            f"Encrypted file not found: {encrypted_path}",
            details={"path": str(encrypted_path)},
        )

    data = encrypted_path.read_bytes()
    if backend is not None:
        return backend.decrypt(data)

    binary = find_gpg_binary()
    if binary is None:
        raise ConfigurationError("GPG not found")
    return run_gpg(binary, ["--decrypt"], data)
