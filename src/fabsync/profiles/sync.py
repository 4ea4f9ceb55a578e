"""Push catalog data from one profile to one or more targets.

The byte-level copy (with its timestamped backup and restore-on-failure)
is an external collaborator reached through ``RawCopier``.  This module
decides what to copy where and, for categories the user filtered, leaves a
cleanup journal in each target's data folder to be executed when that
target is next loaded.

Error handling is per-target: a copy that raises is reported as a failed
``PushResult`` and the remaining targets are still processed.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from fabsync.core.progress import (
    CancelCheck,
    ProgressCallback,
    ProgressReporter,
    is_cancelled,
)
from fabsync.profiles.cleanup import CleanupJournal, build_pending_cleanup
from fabsync.profiles.manifest import load_manifest
from fabsync.profiles.models import (
    CopyResult,
    ManifestDocument,
    ProfileDescriptor,
    PushResult,
)

logger = logging.getLogger(__name__)


class RawCopier(Protocol):
    """Copies catalog files between profiles, backing up the target first."""

    def copy_with_backup(
        self,
        source_profile: ProfileDescriptor,
        target_data_path: Path,
        selected_categories: list[str],
    ) -> CopyResult: ...  # pragma: no cover


class ProfileSync:
    """Orchestrate a push from one source profile to several targets.

    Args:
        copier: Performs the file-level copy for each target.
        journal: Where per-target cleanup journals are written.
        on_progress: Optional progress callback.
    """

    def __init__(
        self,
        copier: RawCopier,
        journal: CleanupJournal,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self.copier = copier
        self.journal = journal
        self.progress = ProgressReporter(on_progress)

    def push(
        self,
        source: ProfileDescriptor,
        targets: list[ProfileDescriptor],
        categories: list[str],
        kept_by_category: dict[str, list[str] | None] | None = None,
        should_cancel: CancelCheck | None = None,
    ) -> list[PushResult]:
        """Copy *categories* from *source* into every target.

        Args:
            source: Profile to copy from.
            targets: Profiles to copy into; the source itself is skipped.
            categories: Category keys to copy.
            kept_by_category: Optional keep-lists for selective copies,
                resolved against the source's manifest.
            should_cancel: Checked before each target.

        Returns:
            One ``PushResult`` per processed target, in order.
        """
        manifest = None
        if kept_by_category and any(
            v is not None for v in kept_by_category.values()
        ):
            manifest = load_manifest(source.data_path)
            if manifest is None:
                logger.warning(
                    "No manifest for %s; selective cleanup skipped",
                    source.name,
                )

        real_targets = [
            t
            for t in targets
            if t.name.lower() != source.name.lower()
            and t.data_path != source.data_path
        ]
        results: list[PushResult] = []
        total = len(real_targets)

        for i, target in enumerate(real_targets):
            if is_cancelled(should_cancel):
                logger.info("Push cancelled after %d of %d targets", i, total)
                break
            self.progress.report(
                i, total, f"Copying {source.name} -> {target.name}..."
            )
            results.append(
                self._push_one(
                    source, target, categories, kept_by_category, manifest
                )
            )

        self.progress.report(total, total, "Push complete.")
        return results

    def _push_one(
        self,
        source: ProfileDescriptor,
        target: ProfileDescriptor,
        categories: list[str],
        kept_by_category: dict[str, list[str] | None] | None,
        manifest: ManifestDocument | None,
    ) -> PushResult:
        try:
            copy_result = self.copier.copy_with_backup(
                source, target.data_path, categories
            )
        except Exception as exc:
            logger.error(
                "Copy %s -> %s failed: %s", source.name, target.name, exc
            )
            copy_result = CopyResult(success=False, message=str(exc))

        if not copy_result.success or manifest is None:
            return PushResult(target=target.name, copy_result=copy_result)

        cleanup = build_pending_cleanup(
            manifest,
            {
                k: v
                for k, v in (kept_by_category or {}).items()
                if k in categories
            },
            profile_name=source.name,
            data_path=target.data_path,
        )
        if cleanup is None:
            return PushResult(target=target.name, copy_result=copy_result)

        path = self.journal.save(cleanup, target.data_path)
        return PushResult(
            target=target.name,
            copy_result=copy_result,
            cleanup_path=str(path),
            cleanup_items=cleanup.total_items(),
        )
