"""Report formatting functions.

Provides human-readable and machine-readable output for the CLI:

- ``format_profiles`` -- discovered profiles, current one marked.
- ``format_manifest`` -- per-category entry counts of a manifest.
- ``format_pending_cleanup`` -- what a cleanup journal will delete.
- ``format_item_results`` -- validation or import results per item.
- ``format_duplicates`` -- database id collisions.
- ``format_push_results`` -- outcome of a multi-target push.
- ``*_to_json`` -- structured dicts for ``--json`` output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from fabsync.profiles.models import (
        ManifestDocument,
        PendingCleanup,
        ProfileDescriptor,
        PushResult,
    )
    from fabsync.transfer.models import DuplicateInfo, ItemImportResult

# ------------------------------------------------------------------
# Profiles and manifests
# ------------------------------------------------------------------


def format_profiles(profiles: list[ProfileDescriptor]) -> str:
    """One line per profile; the current profile is marked with ``*``."""
    if not profiles:
        return "No profiles found."
    lines: list[str] = []
    for p in profiles:
        marker = "*" if p.is_current else " "
        status = "" if p.is_valid() else "  (missing data folder)"
        lines.append(f"{marker} {p.name:<24} {p.data_path}{status}")
    return "\n".join(lines)


def format_manifest(manifest: ManifestDocument, verbose: bool = False) -> str:
    """Summarise *manifest*.

    Args:
        manifest: The manifest to show.
        verbose: Also list every entry name under its category.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []
    lines.append(f"Manifest for '{manifest.profile_name}'")
    lines.append(f"Data path: {manifest.data_path}")
    lines.append(f"Generated: {manifest.generated_at.isoformat()}")
    lines.append("")

    if not manifest.categories:
        lines.append("No categories captured.")
        return "\n".join(lines)

    for key, entries in manifest.categories.items():
        lines.append(f"{key}: {len(entries)}")
        if verbose:
            for e in entries:
                suffix = f"  [{e.group}]" if e.group else ""
                lines.append(f"  {e.name}{suffix}")
    return "\n".join(lines).rstrip()


def format_pending_cleanup(cleanup: PendingCleanup) -> str:
    lines: list[str] = []
    lines.append(
        f"Pending cleanup from '{cleanup.profile_name}' "
        f"({cleanup.total_items()} items)"
    )
    lines.append(f"Created: {cleanup.created_at.isoformat()}")
    lines.append("")
    for key, names in cleanup.items_to_delete.items():
        lines.append(f"{key}:")
        for name in names:
            lines.append(f"  - {name}")
    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Transfer results
# ------------------------------------------------------------------


def format_item_results(
    results: list[ItemImportResult], title: str = "Import results"
) -> str:
    """Format validation or import results.

    Items with neither warnings nor errors get a single ``OK`` line.
    """
    lines: list[str] = []
    succeeded = sum(1 for r in results if r.success)
    warnings = sum(len(r.warnings) for r in results)
    lines.append(
        f"{title}: {succeeded}/{len(results)} succeeded, "
        f"{warnings} warning(s)"
    )
    lines.append("")

    for r in results:
        status = "OK" if r.success else "FAILED"
        lines.append(f"[{status}] {r.file_name}")
        for w in r.warnings:
            lines.append(f"  warning: {w}")
        for e in r.errors:
            lines.append(f"  error: {e}")
    return "\n".join(lines).rstrip()


def format_duplicates(duplicates: list[DuplicateInfo]) -> str:
    if not duplicates:
        return "No duplicate database ids."
    lines = [f"{len(duplicates)} duplicate database id(s):"]
    for d in duplicates:
        lines.append(
            f"  {d.database_id}: {d.import_file_name} "
            f"<-> {d.existing_file_path}"
        )
    return "\n".join(lines)


def format_push_results(results: list[PushResult]) -> str:
    if not results:
        return "No targets processed."
    lines: list[str] = []
    for r in results:
        status = "OK" if r.success else "FAILED"
        line = f"[{status}] {r.target}"
        if r.copy_result.message:
            line += f": {r.copy_result.message}"
        lines.append(line)
        if r.cleanup_path:
            lines.append(
                f"  {r.cleanup_items} item(s) queued for cleanup "
                f"in {r.cleanup_path}"
            )
    return "\n".join(lines)


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def document_to_json(document: BaseModel) -> dict:
    """Dump a document with its on-disk (camelCase) keys."""
    return document.model_dump(mode="json", by_alias=True)


def profiles_to_json(profiles: list[ProfileDescriptor]) -> list[dict]:
    return [
        {
            "name": p.name,
            "root_path": str(p.root_path),
            "data_path": str(p.data_path),
            "is_current": p.is_current,
            "is_valid": p.is_valid(),
        }
        for p in profiles
    ]


def results_to_json(results: list[ItemImportResult]) -> dict:
    """Structured summary of item results.

    Returns:
        Dict with counts and per-item details.
    """
    return {
        "total": len(results),
        "succeeded": sum(1 for r in results if r.success),
        "warnings": sum(len(r.warnings) for r in results),
        "items": [document_to_json(r) for r in results],
    }
