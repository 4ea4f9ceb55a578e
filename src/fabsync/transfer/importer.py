"""Import a content package into the loaded configuration.

Import reconciles by name: every reference captured at export is looked up
in the *target* catalog and, when found, the item's index is re-pointed at
the target's entry.  A name that does not resolve is a warning; the item
keeps whatever the copied file says.  Service references can only be
reported, never reassigned.

Each item is processed independently.  Whatever happens to one item (a
missing source file, a failed save) is recorded in that item's result and
the next item is still imported.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from pydantic import ValidationError

from fabsync.catalog.store import CatalogStore
from fabsync.content.items import (
    THUMBNAIL_SUFFIX,
    ContentItem,
    ContentLibrary,
    ReferenceKind,
    iter_item_files,
    resolve_reference,
)
from fabsync.core.progress import (
    CancelCheck,
    ProgressCallback,
    ProgressReporter,
    is_cancelled,
)
from fabsync.errors import (
    FabSyncError,
    ItemLoadError,
    ItemSaveError,
    PackageError,
)
from fabsync.transfer.exporter import PACKAGE_MANIFEST_NAME
from fabsync.transfer.models import (
    ContentPackage,
    DuplicateInfo,
    ExportedItem,
    ItemImportResult,
    ReferenceOverrides,
)

logger = logging.getLogger(__name__)

OverridesArg = dict[int, ReferenceOverrides | dict[str, str | None]]


def load_package(folder: Path) -> ContentPackage | None:
    """Read the package manifest in *folder*.

    Returns:
        The package, or ``None`` if the folder has no manifest.

    Raises:
        PackageError: If the manifest exists but cannot be read.
    """
    path = Path(folder) / PACKAGE_MANIFEST_NAME
    if not path.is_file():
        return None
    try:
        return ContentPackage.model_validate_json(path.read_bytes())
    except (OSError, ValidationError) as exc:
        raise PackageError(f"Cannot read package manifest {path}: {exc}") from exc


def _service_warning(name: str) -> str:
    return (
        f"Service '{name}' not found in target config "
        "(report-only, cannot re-assign)."
    )


class PackageImporter:
    """Validate and import content packages against *catalog*.

    Args:
        catalog: Live catalog of the target configuration.
        library: Loads and saves items in the target configuration.
        on_progress: Optional progress callback.
    """

    def __init__(
        self,
        catalog: CatalogStore,
        library: ContentLibrary,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self.catalog = catalog
        self.library = library
        self.progress = ProgressReporter(on_progress)

    @staticmethod
    def load_package(folder: Path) -> ContentPackage | None:
        return load_package(folder)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_package(
        self, package: ContentPackage
    ) -> list[ItemImportResult]:
        """Check every captured reference name against the target catalog.

        Returns:
            One result per package item, in package order.  Unresolved
            names are warnings; validation itself never fails an item.
        """
        results: list[ItemImportResult] = []
        total = len(package.items)
        for i, exported in enumerate(package.items):
            self.progress.report(i, total, f"Validating {exported.file_name}...")
            result = ItemImportResult(file_name=exported.file_name, success=True)
            for kind in ReferenceKind:
                name = exported.references.name_for(kind)
                if not name or self._resolve(kind, name) is not None:
                    continue
                if kind is ReferenceKind.SERVICE:
                    result.warnings.append(
                        f"Service '{name}' not found (report-only)."
                    )
                else:
                    result.warnings.append(f"{kind.label} '{name}' not found.")
            results.append(result)
        self.progress.report(total, total, "Validation complete.")
        return results

    def check_duplicate_ids(
        self, package: ContentPackage, target_folder: Path
    ) -> list[DuplicateInfo]:
        """Find items in *target_folder* sharing a database id with *package*.

        Identifiers are compared case-insensitively.  Files that cannot be
        read are skipped.  The result is advisory.
        """
        incoming: dict[str, str] = {}
        for exported in package.items:
            if exported.database_id:
                incoming.setdefault(
                    exported.database_id.casefold(), exported.file_name
                )
        if not incoming:
            return []

        duplicates: list[DuplicateInfo] = []
        for path in iter_item_files(Path(target_folder)):
            try:
                existing = self.library.load_item(path)
            except ItemLoadError as exc:
                logger.debug("Skipping unreadable item %s: %s", path, exc)
                continue
            if not existing.database_id:
                continue
            match = incoming.get(existing.database_id.casefold())
            if match is not None:
                duplicates.append(
                    DuplicateInfo(
                        import_file_name=match,
                        database_id=existing.database_id,
                        existing_file_path=str(path),
                    )
                )
        return duplicates

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def import_items(
        self,
        package: ContentPackage,
        package_folder: Path,
        target_folder: Path,
        selected_indices: list[int] | None = None,
        overrides_per_item: OverridesArg | None = None,
        should_cancel: CancelCheck | None = None,
    ) -> list[ItemImportResult]:
        """Copy, reconcile and save the selected package items.

        Args:
            package: Loaded package.
            package_folder: Folder holding the package's item files.
            target_folder: Item folder of the target configuration.
            selected_indices: Package item indices to import, in order;
                ``None`` imports everything.
            overrides_per_item: Replacement reference names keyed by item
                index.
            should_cancel: Checked before each item.

        Returns:
            One result per processed item.  Items imported before a
            cancellation stay imported.
        """
        package_folder = Path(package_folder)
        target_folder = Path(target_folder)
        if selected_indices is None:
            selected_indices = list(range(len(package.items)))
        overrides_per_item = overrides_per_item or {}

        results: list[ItemImportResult] = []
        total = len(selected_indices)
        for n, index in enumerate(selected_indices):
            if is_cancelled(should_cancel):
                logger.info("Import cancelled after %d of %d items", n, total)
                break
            if not 0 <= index < len(package.items):
                results.append(
                    ItemImportResult(
                        file_name=f"#{index}",
                        errors=[f"No item at index {index}."],
                    )
                )
                continue
            exported = package.items[index]
            self.progress.report(n, total, f"Importing {exported.file_name}...")
            overrides = overrides_per_item.get(index)
            if isinstance(overrides, dict):
                overrides = ReferenceOverrides(overrides)
            try:
                result = self._import_one(
                    exported, package_folder, target_folder, overrides
                )
            except Exception as exc:
                logger.error("Import of %s failed: %s", exported.file_name, exc)
                result = ItemImportResult(
                    file_name=exported.file_name,
                    errors=[f"Import failed: {exc}"],
                )
            results.append(result)

        imported = sum(1 for r in results if r.success)
        logger.info("Imported %d of %d items into %s", imported, total, target_folder)
        self.progress.report(total, total, f"Imported {imported} item(s).")
        return results

    def _import_one(
        self,
        exported: ExportedItem,
        package_folder: Path,
        target_folder: Path,
        overrides: ReferenceOverrides | None,
    ) -> ItemImportResult:
        result = ItemImportResult(file_name=exported.file_name)

        # Names come from the package and must stay inside both folders.
        if exported.file_name in ("", ".", "..") or (
            Path(exported.file_name).name != exported.file_name
        ):
            result.errors.append(f"Invalid item file name: {exported.file_name}")
            return result

        source = package_folder / exported.file_name
        if not source.is_file():
            result.errors.append(f"Source file not found: {exported.file_name}")
            return result

        target_folder.mkdir(parents=True, exist_ok=True)
        target = target_folder / exported.file_name
        shutil.copy2(source, target)
        thumbnail = source.with_suffix(THUMBNAIL_SUFFIX)
        if thumbnail.is_file():
            shutil.copy2(thumbnail, target_folder / thumbnail.name)

        try:
            item = self.library.load_item(target)
        except ItemLoadError as exc:
            result.errors.append(str(exc))
            return result

        self._reconcile(item, exported, overrides, result)

        try:
            self.library.save_item(item)
        except ItemSaveError as exc:
            result.warnings.append(f"Direct save failed ({exc}); used save-as.")
            try:
                self.library.save_item_as(
                    item, target_folder, target.stem, overwrite=True
                )
            except ItemSaveError as exc2:
                result.errors.append(f"Save failed: {exc2}")
                return result

        result.success = True
        return result

    def _reconcile(
        self,
        item: ContentItem,
        exported: ExportedItem,
        overrides: ReferenceOverrides | None,
        result: ItemImportResult,
    ) -> None:
        refs = exported.references
        service = refs.service_name
        if service and self._resolve(ReferenceKind.SERVICE, service) is None:
            result.warnings.append(_service_warning(service))

        for kind in ReferenceKind:
            if not kind.reassignable:
                continue
            if overrides is not None and overrides.has(kind):
                name = overrides.get(kind)
                if not name:
                    # Explicitly left unresolved.
                    continue
            else:
                name = refs.name_for(kind)
            if not name:
                continue

            entry = self._resolve(kind, name)
            if entry is None:
                result.warnings.append(
                    f"{kind.label} '{name}' not found in target config; "
                    "left unchanged."
                )
                continue
            try:
                item.assign(kind, entry)
            except (FabSyncError, ValueError) as exc:
                result.warnings.append(
                    f"Could not assign {kind.label} '{name}': {exc}"
                )

    def _resolve(self, kind: ReferenceKind, name: str):
        return resolve_reference(self.catalog, kind, name)
