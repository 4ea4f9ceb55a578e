"""Content items and the library that loads and saves them.

An item file stores its catalog references as integer indices into the
configuration's category lists::

    {
      "cid": 2041,
      "databaseId": "ID-001",
      "isProductList": false,
      "references": {"Material": 3, "Specification": 0, ...},
      "productList": null
    }

Index ``-1`` (or a missing key) means "not assigned".  Because the indices
only make sense against the catalog that wrote them, a ``ContentItem`` is
always bound to the catalog it was loaded with and resolves references
through it.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from fabsync.catalog.store import CatalogEntry, CatalogStore
from fabsync.core.jsonio import write_document
from fabsync.core.models import Document
from fabsync.errors import (
    ItemLoadError,
    ItemSaveError,
    ReadOnlyReferenceError,
    UnsupportedCategoryError,
)

logger = logging.getLogger(__name__)

ITEM_SUFFIX = ".itm"
THUMBNAIL_SUFFIX = ".png"


class ReferenceKind(str, Enum):
    """Catalog references carried by a content item.

    The value doubles as the key used in item files and in
    ``ReferenceOverrides``.
    """

    SERVICE = "Service"
    MATERIAL = "Material"
    SPECIFICATION = "Specification"
    SECTION = "Section"
    PRICE_LIST = "PriceList"
    INSTALLATION_TIMES = "InstallationTimesTable"
    FABRICATION_TIMES = "FabricationTimesTable"

    @property
    def category_key(self) -> str:
        return _CATEGORY_KEYS[self]

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def reassignable(self) -> bool:
        """Services are fixed once an item exists."""
        return self is not ReferenceKind.SERVICE


_CATEGORY_KEYS = {
    ReferenceKind.SERVICE: "Services",
    ReferenceKind.MATERIAL: "Materials",
    ReferenceKind.SPECIFICATION: "Specifications",
    ReferenceKind.SECTION: "Sections",
    ReferenceKind.PRICE_LIST: "Costs",
    ReferenceKind.INSTALLATION_TIMES: "InstallationTimes",
    ReferenceKind.FABRICATION_TIMES: "FabricationTimes",
}

_LABELS = {
    ReferenceKind.SERVICE: "Service",
    ReferenceKind.MATERIAL: "Material",
    ReferenceKind.SPECIFICATION: "Specification",
    ReferenceKind.SECTION: "Section",
    ReferenceKind.PRICE_LIST: "Price List",
    ReferenceKind.INSTALLATION_TIMES: "Installation Times Table",
    ReferenceKind.FABRICATION_TIMES: "Fabrication Times Table",
}


# ---------------------------------------------------------------------------
# Item file schema
# ---------------------------------------------------------------------------


class ProductRowRecord(Document):
    name: str | None = None
    alias: str | None = None
    database_id: str | None = None
    order_number: str | None = None
    bought_out: bool | None = None
    weight: float | None = None


class ProductListRecord(Document):
    revision: str | None = None
    rows: list[ProductRowRecord] = []


class ItemRecord(Document):
    """On-disk content of an item file."""

    cid: int = 0
    database_id: str | None = None
    is_product_list: bool = False
    references: dict[str, int] = {}
    product_list: ProductListRecord | None = None


# ---------------------------------------------------------------------------
# Loaded item
# ---------------------------------------------------------------------------


class ContentItem:
    """An item file loaded against a specific catalog.

    Args:
        path: Where the item was loaded from (and will be saved to).
        record: Parsed item file.
        catalog: Catalog the reference indices belong to.
    """

    def __init__(
        self, path: Path, record: ItemRecord, catalog: CatalogStore
    ) -> None:
        self.path = path
        self.record = record
        self.catalog = catalog
        self.loaded_database_id = record.database_id

    @property
    def cid(self) -> int:
        return self.record.cid

    @property
    def database_id(self) -> str | None:
        return self.record.database_id

    @property
    def is_product_list(self) -> bool:
        return self.record.is_product_list

    @property
    def product_list(self) -> ProductListRecord | None:
        return self.record.product_list

    def reference_index(self, kind: ReferenceKind) -> int:
        return self.record.references.get(kind.value, -1)

    def reference(self, kind: ReferenceKind) -> CatalogEntry | None:
        """Resolve the catalog entry *kind* points at, or ``None``.

        An index past the end of the category (stale file, different
        configuration) resolves to ``None``.

        Raises:
            UnsupportedCategoryError: If the catalog has no such category.
        """
        idx = self.reference_index(kind)
        if idx < 0:
            return None
        entries = self.catalog.category(kind.category_key).list_entries()
        if idx >= len(entries):
            logger.debug(
                "%s index %d out of range (%d entries) in %s",
                kind.label,
                idx,
                len(entries),
                self.path.name,
            )
            return None
        return entries[idx]

    def assign(self, kind: ReferenceKind, entry: CatalogEntry) -> None:
        """Point *kind* at *entry*, which must belong to this item's catalog.

        Raises:
            ReadOnlyReferenceError: For service references.
            ValueError: If *entry* is not in the catalog category.
        """
        if not kind.reassignable:
            raise ReadOnlyReferenceError(
                f"{kind.label} cannot be reassigned on an existing item"
            )
        entries = self.catalog.category(kind.category_key).list_entries()
        for idx, candidate in enumerate(entries):
            if candidate is entry:
                self.record.references[kind.value] = idx
                return
        raise ValueError(
            f"'{entry.name}' is not part of category '{kind.category_key}'"
        )


# ---------------------------------------------------------------------------
# Library
# ---------------------------------------------------------------------------


class ContentLibrary(Protocol):
    """Loads and persists content items for one configuration."""

    def load_item(self, path: Path) -> ContentItem: ...  # pragma: no cover

    def save_item(self, item: ContentItem) -> None: ...  # pragma: no cover

    def save_item_as(
        self, item: ContentItem, folder: Path, name: str, overwrite: bool
    ) -> Path: ...  # pragma: no cover


def _read_record(path: Path) -> ItemRecord:
    try:
        return ItemRecord.model_validate_json(path.read_bytes())
    except FileNotFoundError:
        raise ItemLoadError(f"Item file not found: {path}") from None
    except (OSError, ValidationError) as exc:
        raise ItemLoadError(f"Cannot read item {path.name}: {exc}") from exc


class FileContentLibrary:
    """Item files on disk, resolved against *catalog*."""

    def __init__(self, catalog: CatalogStore) -> None:
        self.catalog = catalog

    def load_item(self, path: Path) -> ContentItem:
        """Load the item at *path*.

        Raises:
            ItemLoadError: If the file is missing or not a valid item.
        """
        return ContentItem(path, _read_record(path), self.catalog)

    def save_item(self, item: ContentItem) -> None:
        """Write *item* back to the file it was loaded from.

        The file must still carry the identity the item was loaded with;
        otherwise the save is refused so the caller can fall back to
        ``save_item_as``.

        Raises:
            ItemSaveError: If the file is gone or its identity changed.
        """
        if not item.path.is_file():
            raise ItemSaveError(f"Item file no longer exists: {item.path}")
        try:
            on_disk = _read_record(item.path)
        except ItemLoadError as exc:
            raise ItemSaveError(str(exc)) from exc
        if on_disk.database_id != item.loaded_database_id:
            raise ItemSaveError(
                f"Identity of {item.path.name} changed on disk "
                f"({item.loaded_database_id!r} -> {on_disk.database_id!r})"
            )
        try:
            write_document(item.path, item.record)
        except OSError as exc:
            raise ItemSaveError(
                f"Cannot write {item.path.name}: {exc}"
            ) from exc

    def save_item_as(
        self,
        item: ContentItem,
        folder: Path,
        name: str,
        overwrite: bool = False,
    ) -> Path:
        """Write *item* as ``folder/name.itm`` and rebind it to that path.

        Raises:
            ItemSaveError: If the target exists and *overwrite* is false,
                or the write fails.
        """
        target = folder / f"{name}{ITEM_SUFFIX}"
        if target.exists() and not overwrite:
            raise ItemSaveError(f"Item already exists: {target}")
        try:
            folder.mkdir(parents=True, exist_ok=True)
            write_document(target, item.record)
        except OSError as exc:
            raise ItemSaveError(f"Cannot write {target}: {exc}") from exc
        item.path = target
        item.loaded_database_id = item.record.database_id
        return target


def iter_item_files(folder: Path) -> list[Path]:
    """Item files directly inside *folder* (not recursive), sorted by name."""
    if not folder.is_dir():
        return []
    return sorted(
        p
        for p in folder.iterdir()
        if p.is_file() and p.suffix.lower() == ITEM_SUFFIX
    )


def resolve_reference(
    catalog: CatalogStore, kind: ReferenceKind, name: str
) -> CatalogEntry | None:
    """Find the entry called *name* for *kind* in *catalog*.

    A category the catalog does not provide resolves to ``None``.
    """
    try:
        category = catalog.category(kind.category_key)
    except UnsupportedCategoryError:
        return None
    return category.find_by_name(name)
