"""Durable deferred-cleanup journal.

When a selective copy keeps only some entries of a category, the unwanted
entries cannot be removed right away: the catalog store may still hold
them in memory and would write them back.  Instead the names are queued in
``_pending_cleanup.json`` and deleted the next time the *target* profile is
loaded.

The journal is a two-state machine with the file's existence as the only
state signal:

* **Pending** -- the file exists.
* **Consumed** -- the file is gone.

``execute()`` is at-most-once: after attempting every category it deletes
the file whether or not each category succeeded, so a category that can
never be deleted does not block the journal forever.  The cost is that a
failed deletion is not retried.

Two addressing modes exist side by side:

* the legacy single-target mode keeps one journal in a shared backup
  directory (``data_path=None``);
* the multi-target push mode keeps one journal in each target profile's
  own data folder, so several can be outstanding at once.

There is no locking.  Saving a second journal for the same target before
the first is consumed silently replaces it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from fabsync.catalog.categories import get_category
from fabsync.catalog.store import CatalogStore
from fabsync.core.jsonio import write_document
from fabsync.profiles.models import ManifestDocument, PendingCleanup

logger = logging.getLogger(__name__)

CLEANUP_FILE_NAME = "_pending_cleanup.json"


class CleanupJournal:
    """Save, load and execute pending cleanups.

    Args:
        catalog: Live catalog of the loaded profile (needed by
            ``execute()`` only).
        backup_dir: Shared directory for the legacy single-target journal.
    """

    def __init__(
        self, catalog: CatalogStore | None, backup_dir: Path
    ) -> None:
        self.catalog = catalog
        self.backup_dir = Path(backup_dir)

    # ------------------------------------------------------------------
    # Addressing
    # ------------------------------------------------------------------

    def journal_path(self, data_path: Path | None = None) -> Path:
        """Journal location for *data_path*, or the shared one for ``None``."""
        base = Path(data_path) if data_path is not None else self.backup_dir
        return base / CLEANUP_FILE_NAME

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(
        self, cleanup: PendingCleanup, data_path: Path | None = None
    ) -> Path:
        """Persist *cleanup*, replacing any journal already pending there.

        The shared backup directory is created on demand; a target data
        folder must already exist.

        Returns:
            Path of the written journal.
        """
        if data_path is None:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
        path = self.journal_path(data_path)
        if path.exists():
            logger.info("Replacing pending cleanup at %s", path)
        write_document(path, cleanup)
        logger.info(
            "Saved pending cleanup (%d items) to %s",
            cleanup.total_items(),
            path,
        )
        return path

    def has_pending(self, data_path: Path | None = None) -> bool:
        return self.journal_path(data_path).is_file()

    def load(self, data_path: Path | None = None) -> PendingCleanup | None:
        """Read the pending journal, or ``None`` if absent or unreadable."""
        path = self.journal_path(data_path)
        if not path.is_file():
            return None
        try:
            return PendingCleanup.model_validate_json(path.read_bytes())
        except (OSError, ValidationError) as exc:
            logger.warning("Unreadable cleanup journal %s: %s", path, exc)
            return None

    def discard(self, data_path: Path | None = None) -> bool:
        """Delete the journal file.  Returns ``True`` if one was removed."""
        path = self.journal_path(data_path)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute(self, data_path: Path | None = None) -> str | None:
        """Consume the pending journal.

        Categories are processed in journal order.  A failure in one
        category is recorded in the summary and the next category is still
        attempted.  The journal file is then deleted unconditionally.

        Returns:
            A human-readable summary, or ``None`` if nothing was pending.

        Raises:
            RuntimeError: If the journal has actions but no catalog was
                provided.
        """
        cleanup = self.load(data_path)
        path = self.journal_path(data_path)
        if cleanup is None:
            if path.is_file():
                # Unparseable: consume it so it cannot block future loads.
                self._remove(path)
            return None
        catalog = self.catalog
        if catalog is None:
            raise RuntimeError("Cannot execute a cleanup without a catalog")

        lines: list[str] = []
        total_deleted = 0

        for category_key, names in cleanup.items_to_delete.items():
            if not names:
                continue
            try:
                deleted = self._delete_items(catalog, category_key, names)
            except Exception as exc:
                logger.error(
                    "Cleanup of %s failed: %s", category_key, exc
                )
                lines.append(f"{category_key}: ERROR - {exc}")
                continue
            total_deleted += deleted
            lines.append(
                f"{category_key}: deleted {deleted}/{len(names)}"
            )

        self._remove(path)

        summary = (
            f"Selective cleanup complete: {total_deleted} item(s) deleted."
        )
        if lines:
            summary += "\n\n" + "\n".join(lines)
        logger.info(
            "Executed cleanup journal %s: %d deleted", path, total_deleted
        )
        return summary

    def _delete_items(
        self, catalog: CatalogStore, category_key: str, names: list[str]
    ) -> int:
        """Delete live entries of *category_key* named in *names*.

        Matching is case-insensitive.  The category is saved once, and only
        if something was deleted.
        """
        wanted = {n.casefold() for n in names if n}
        category = catalog.category(category_key)
        doomed = [
            e
            for e in category.list_entries()
            if e.name and e.name.casefold() in wanted
        ]
        for entry in doomed:
            category.delete(entry)
        if doomed:
            category.save()
        return len(doomed)

    def _remove(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            # The next load will try again; deletions are idempotent.
            logger.error("Could not remove cleanup journal %s: %s", path, exc)


def build_pending_cleanup(
    manifest: ManifestDocument,
    kept_by_category: dict[str, list[str] | None],
    profile_name: str,
    data_path: Path,
) -> PendingCleanup | None:
    """Turn per-category keep-lists into a journal of names to delete.

    Args:
        manifest: Manifest of the *source* profile (what gets copied).
        kept_by_category: Category key to the names the user kept.
            ``None`` means "keep everything".
        profile_name: Source profile name recorded in the journal.
        data_path: Target data folder recorded in the journal.

    Returns:
        The journal, or ``None`` if nothing needs deleting.  Categories that
        do not support selective cleanup, or that the manifest did not
        capture, are ignored.
    """
    cleanup = PendingCleanup(
        profile_name=profile_name, data_path=str(data_path)
    )
    for key, kept in kept_by_category.items():
        if kept is None:
            continue
        try:
            descriptor = get_category(key)
        except KeyError:
            logger.warning("Ignoring unknown category %s", key)
            continue
        if not descriptor.supports_selective_cleanup:
            logger.warning(
                "%s does not support selective cleanup; copying all",
                descriptor.key,
            )
            continue
        if descriptor.key not in manifest.categories:
            logger.warning(
                "%s not captured in manifest of %s; copying all",
                descriptor.key,
                manifest.profile_name,
            )
            continue
        keep = set(kept)
        to_delete = [
            n for n in manifest.names(descriptor.key) if n not in keep
        ]
        if to_delete:
            cleanup.items_to_delete[descriptor.key] = to_delete

    if not cleanup.items_to_delete:
        return None
    return cleanup


def run_pending_cleanups(
    journal: CleanupJournal, data_path: Path
) -> list[str]:
    """Execute the shared journal, then the one in *data_path*.

    Called when a profile has just been loaded.  If executing one journal
    raises, the error is logged, that journal is discarded, and the other
    is still attempted.

    Returns:
        Summaries of the journals that were executed.
    """
    summaries: list[str] = []
    for location in (None, data_path):
        if not journal.has_pending(location):
            continue
        try:
            summary = journal.execute(location)
        except Exception as exc:
            logger.error(
                "Error during selective cleanup at %s: %s; "
                "the cleanup file will be removed",
                journal.journal_path(location),
                exc,
            )
            journal.discard(location)
            continue
        if summary:
            summaries.append(summary)
    return summaries
