"""Export content items into a portable package folder.

The package folder receives a copy of every item file (plus its ``.png``
thumbnail, when there is one) and a ``manifest.json`` describing each item's
catalog references *by name*.

Export never mutates the source catalog and never aborts because of a
single item: an item that cannot be loaded or copied is logged and left out
of the package.  Only an output folder that cannot be created is fatal.
"""

from __future__ import annotations

import getpass
import logging
import shutil
from pathlib import Path
from typing import Callable, TypeVar

from fabsync.catalog.store import CatalogEntry, CatalogStore
from fabsync.content.items import (
    THUMBNAIL_SUFFIX,
    ContentItem,
    ContentLibrary,
    ReferenceKind,
)
from fabsync.core.jsonio import write_document
from fabsync.core.progress import (
    CancelCheck,
    ProgressCallback,
    ProgressReporter,
    is_cancelled,
)
from fabsync.profiles.locator import PROFILES_FOLDER_NAME
from fabsync.profiles.models import GLOBAL_PROFILE_NAME
from fabsync.transfer.models import (
    ContentPackage,
    ExportedItem,
    ExportedProductList,
    ExportedProductRow,
    ItemReferences,
)

logger = logging.getLogger(__name__)

PACKAGE_MANIFEST_NAME = "manifest.json"

T = TypeVar("T")


def configuration_name(data_path: Path | None) -> str:
    """Name of the profile that owns *data_path*.

    ``.../profiles/<name>/DATABASE`` yields ``<name>``; anything else is
    the Global profile.
    """
    if data_path is None:
        return GLOBAL_PROFILE_NAME
    parts = Path(data_path).parts
    for i, part in enumerate(parts[:-1]):
        if part.lower() == PROFILES_FOLDER_NAME:
            return parts[i + 1]
    return GLOBAL_PROFILE_NAME


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (OSError, KeyError):
        return "unknown"


def _capture(label: str, getter: Callable[[], T]) -> tuple[T | None, bool]:
    """Run one optional capture step.

    Returns:
        ``(value, True)`` on success, ``(None, False)`` if *getter* raised.
    """
    try:
        return getter(), True
    except Exception as exc:
        logger.debug("Could not capture %s: %s", label, exc)
        return None, False


def _name_of(entry: CatalogEntry | None) -> str | None:
    return entry.name if entry is not None else None


class PackageExporter:
    """Bundle items of the loaded configuration into a content package.

    Args:
        catalog: Catalog the items' reference indices belong to.
        library: Loads the items.
        data_path: Data folder of the loaded profile; names the package's
            source configuration.
        items_root: Root of the item library; ``source_folder`` is recorded
            relative to it when possible.
        on_progress: Optional progress callback.
    """

    def __init__(
        self,
        catalog: CatalogStore,
        library: ContentLibrary,
        data_path: Path | None = None,
        items_root: Path | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self.catalog = catalog
        self.library = library
        self.data_path = data_path
        self.items_root = items_root
        self.progress = ProgressReporter(on_progress)

    def export_items(
        self,
        item_paths: list[Path],
        output_folder: Path,
        should_cancel: CancelCheck | None = None,
    ) -> ContentPackage:
        """Export *item_paths* into *output_folder*.

        Returns:
            The package as written to ``manifest.json``.  Items that failed
            are absent from it.

        Raises:
            OSError: If the output folder or the manifest cannot be written.
        """
        output_folder = Path(output_folder)
        output_folder.mkdir(parents=True, exist_ok=True)

        package = ContentPackage(
            configuration_name=configuration_name(self.data_path),
            exported_by=_current_user(),
        )
        total = len(item_paths)

        for i, raw_path in enumerate(item_paths):
            if is_cancelled(should_cancel):
                logger.info("Export cancelled after %d of %d items", i, total)
                break
            path = Path(raw_path)
            self.progress.report(i, total, f"Exporting {path.name}...")
            try:
                exported = self._export_one(path, output_folder)
            except Exception as exc:
                logger.warning("Skipping %s: %s", path.name, exc)
                continue
            package.items.append(exported)

        write_document(output_folder / PACKAGE_MANIFEST_NAME, package)
        logger.info(
            "Exported %d of %d items to %s",
            len(package.items),
            total,
            output_folder,
        )
        self.progress.report(
            total, total, f"Exported {len(package.items)} item(s)."
        )
        return package

    def _export_one(self, path: Path, output_folder: Path) -> ExportedItem:
        item = self.library.load_item(path)
        exported = ExportedItem(
            file_name=path.name,
            source_folder=self._source_folder(path),
            cid=item.cid,
            database_id=item.database_id,
            is_product_list=item.is_product_list,
            references=self.capture_references(item),
            product_list=self._capture_product_list(item),
        )

        shutil.copy2(path, output_folder / path.name)
        thumbnail = path.with_suffix(THUMBNAIL_SUFFIX)
        if thumbnail.is_file():
            shutil.copy2(thumbnail, output_folder / thumbnail.name)
        return exported

    def capture_references(self, item: ContentItem) -> ItemReferences:
        """Capture every catalog reference of *item* by name.

        Each reference is captured independently; one that cannot be
        resolved is left as ``None``.
        """
        refs = ItemReferences()
        for kind in ReferenceKind:
            entry, ok = _capture(kind.label, lambda k=kind: item.reference(k))
            if ok:
                refs.set_name(kind, _name_of(entry))
            if kind is ReferenceKind.PRICE_LIST and entry is not None:
                group, _ = _capture(
                    "supplier group", lambda e=entry: self._supplier_group(e)
                )
                refs.supplier_group_name = group
        return refs

    def _supplier_group(self, price_list: CatalogEntry) -> str | None:
        """Find the supplier group that owns *price_list*."""
        for supplier in self.catalog.category("Suppliers").list_entries():
            if supplier.name == price_list.group:
                return supplier.name
        return None

    def _capture_product_list(
        self, item: ContentItem
    ) -> ExportedProductList | None:
        if not item.is_product_list or item.product_list is None:
            return None
        source = item.product_list
        return ExportedProductList(
            revision=source.revision,
            rows=[
                ExportedProductRow(
                    name=row.name,
                    alias=row.alias,
                    database_id=row.database_id,
                    order_number=row.order_number,
                    bought_out=bool(row.bought_out),
                    weight=row.weight,
                )
                for row in source.rows
            ],
        )

    def _source_folder(self, path: Path) -> str:
        folder = path.parent
        if self.items_root is not None:
            try:
                return folder.relative_to(self.items_root).as_posix()
            except ValueError:
                pass
        return str(folder)
