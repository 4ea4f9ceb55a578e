"""File-backed catalog store.

Each enumerable category lives in its catalog file inside a profile's
``DATABASE`` folder as a JSON document::

    {"entries": [{"name": "Copper", "group": "Pipework"}, ...]}

Categories are loaded lazily on first access.  A category whose catalog
file is missing (or that is not enumerable) is reported as unsupported,
which the manifest builder treats as "not captured".
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel

from fabsync.catalog.categories import find_catalog_file, get_category
from fabsync.catalog.store import (
    CatalogEntry,
    InMemoryCatalogStore,
    InMemoryCategory,
)
from fabsync.core.jsonio import write_document
from fabsync.errors import UnsupportedCategoryError

logger = logging.getLogger(__name__)


class CatalogFileEntry(BaseModel):
    name: str
    group: str | None = None


class CatalogFile(BaseModel):
    entries: list[CatalogFileEntry] = []


class FileCategory(InMemoryCategory):
    """Category that writes itself back to its catalog file on ``save()``."""

    def __init__(self, key: str, path: Path) -> None:
        self.path = path
        document = CatalogFile.model_validate_json(
            path.read_text(encoding="utf-8")
        )
        super().__init__(
            key,
            [CatalogEntry(e.name, e.group) for e in document.entries],
        )

    def save(self) -> None:
        super().save()
        document = CatalogFile(
            entries=[
                CatalogFileEntry(name=e.name, group=e.group)
                for e in self._entries
            ]
        )
        write_document(self.path, document)
        logger.debug(
            "Saved %d %s entries to %s",
            len(self._entries),
            self.key,
            self.path,
        )


class FileCatalogStore(InMemoryCatalogStore):
    """Catalog of one profile, read from its data folder.

    Args:
        data_path: The profile's ``DATABASE`` folder.
    """

    def __init__(self, data_path: Path) -> None:
        super().__init__()
        self.data_path = data_path

    def category(self, key: str) -> InMemoryCategory:
        try:
            descriptor = get_category(key)
        except KeyError:
            raise UnsupportedCategoryError(key) from None
        if self.has_category(descriptor.key):
            return super().category(descriptor.key)
        if not descriptor.is_enumerable:
            raise UnsupportedCategoryError(key)

        path = find_catalog_file(self.data_path, descriptor.file_name)
        if path is None:
            raise UnsupportedCategoryError(key)

        category = FileCategory(descriptor.key, path)
        self.add_category(category)
        return category
