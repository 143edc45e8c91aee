"""Sync report formatting functions.

Provides human-readable and machine-readable output for reconciliation:

- ``format_sync_report`` -- post-sync summary for MCP text content.
- ``report_to_json`` -- structured dict for MCP ``structuredContent``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import SyncReport


def format_sync_report(report: SyncReport) -> str:
    """Format a reconciliation report as human-readable text.

    The unresolved section is only included when it has entries. Resolved
    items are listed by name and Framer item id.

    Args:
        report: The completed sync report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    header = f"Upsert report for collection '{report.collection_id}' ({report.mode.value})"
    if report.cancelled:
        header += " (CANCELLED during resolution)"
    lines.append(header)
    lines.append(
        f"Requested {report.requested_count} items: "
        f"{report.written_count} written, {report.skipped_count} unchanged, "
        f"{len(report.resolved)} resolved, {len(report.unresolved)} unresolved"
    )
    if report.resolution_attempts:
        lines.append(f"Resolution attempts: {report.resolution_attempts}")
    lines.append("")

    if report.resolved:
        lines.append("Resolved:")
        for record in report.resolved:
            lines.append(
                f"  {record.name or '(unnamed)'} -> {record.framer_item_id}"
            )
        lines.append("")

    if report.unresolved:
        lines.append("Unresolved:")
        for record in report.unresolved:
            fallback = record.framer_item_id or "no id"
            lines.append(f"  {record.name or '(unnamed)'} ({fallback})")
        lines.append("")

    return "\n".join(lines).rstrip()


def report_to_json(report: SyncReport) -> dict[str, Any]:
    """Convert a report to a JSON-serialisable dict.

    Returns:
        Dict with collection/mode info, counts, and ``items`` holding one
        SyncRecord per requested item using wire (camelCase) names.
    """
    return {
        "collectionId": report.collection_id,
        "mode": report.mode.value,
        "requestedCount": report.requested_count,
        "writtenCount": report.written_count,
        "skippedCount": report.skipped_count,
        "resolvedCount": len(report.resolved),
        "unresolvedCount": len(report.unresolved),
        "resolutionAttempts": report.resolution_attempts,
        "cancelled": report.cancelled,
        "items": [r.model_dump(by_alias=True) for r in report.records],
    }
