"""Plain-text audit report for display or attachment to an export."""

from typing import Sequence

from materiatrack.security.schemas import AuditEntry, canonical_details

_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def _abbreviate(checksum: str) -> str:
    if len(checksum) <= 16:
        return checksum
    return f"{checksum[:8]}...{checksum[-8:]}"


def format_audit_report(entries: Sequence[AuditEntry]) -> str:
    """Render entries as a human-readable report."""
    lines = [
        "=== MateriaTrack Audit Report ===",
        "",
        f"Total entries: {len(entries)}",
    ]

    if entries:
        first, last = entries[0], entries[-1]
        lines.append(
            f"Period: {first.timestamp.strftime(_TIME_FORMAT)} "
            f"to {last.timestamp.strftime(_TIME_FORMAT)}"
        )

    lines.extend(["", "--- Entries ---", ""])

    for entry in entries:
        lines.append(
            f"[{entry.timestamp.strftime(_TIME_FORMAT)}] {entry.action} by {entry.user}"
        )
        lines.append(f"  Details: {canonical_details(entry.details)}")
        lines.append(f"  Checksum: {_abbreviate(entry.checksum)}")
        lines.append("")

    return "\n".join(lines) + "\n"
