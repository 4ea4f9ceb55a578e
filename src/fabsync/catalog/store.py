"""Catalog store interfaces and the in-memory implementation.

The live configuration is modelled as an injected ``CatalogStore`` rather
than global state.  Each catalog category is reached through the same
narrow capability surface: ``list_entries``, ``find_by_name``, ``delete``
and ``save``.  Positions in ``list_entries()`` are the integer indices that
content items use to refer to catalog entries; they are only meaningful
inside one configuration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Protocol

from fabsync.errors import UnsupportedCategoryError

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class CatalogEntry:
    """One named catalog object.

    Identity is object identity: two entries with the same name in
    different categories (or configurations) are different objects.

    Attributes:
        name: Entry name (the description, for sections and ancillaries).
        group: Optional grouping (a supplier group for price lists).
    """

    name: str
    group: str | None = None


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


class CatalogCategory(Protocol):
    """Capability surface of one catalog category."""

    key: str

    def list_entries(self) -> list[CatalogEntry]:
        """Return the live entries in index order."""
        ...  # pragma: no cover

    def find_by_name(self, name: str) -> CatalogEntry | None:
        """Return the first entry whose name matches *name* exactly."""
        ...  # pragma: no cover

    def delete(self, entry: CatalogEntry) -> None:
        """Remove *entry* from the live catalog (not persisted yet)."""
        ...  # pragma: no cover

    def save(self) -> None:
        """Persist the category's current entries."""
        ...  # pragma: no cover


class CatalogStore(Protocol):
    """The currently loaded configuration's catalog."""

    def category(self, key: str) -> CatalogCategory:
        """Return the category for *key*.

        Raises:
            UnsupportedCategoryError: If the configuration has no such
                category.
        """
        ...  # pragma: no cover


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------


class InMemoryCategory:
    """List-backed catalog category.

    ``save()`` only counts calls; subclasses persist.
    """

    def __init__(
        self, key: str, entries: Iterable[CatalogEntry] = ()
    ) -> None:
        self.key = key
        self._entries: list[CatalogEntry] = list(entries)
        self.save_count = 0

    def list_entries(self) -> list[CatalogEntry]:
        return list(self._entries)

    def find_by_name(self, name: str) -> CatalogEntry | None:
        for entry in self._entries:
            if entry.name == name:
                return entry
        return None

    def index_of(self, entry: CatalogEntry) -> int:
        """Return the index of *entry* (identity comparison).

        Raises:
            ValueError: If *entry* is not part of this category.
        """
        for idx, candidate in enumerate(self._entries):
            if candidate is entry:
                return idx
        raise ValueError(
            f"'{entry.name}' is not an entry of category '{self.key}'"
        )

    def add(self, entry: CatalogEntry) -> CatalogEntry:
        self._entries.append(entry)
        return entry

    def delete(self, entry: CatalogEntry) -> None:
        self._entries.pop(self.index_of(entry))

    def save(self) -> None:
        self.save_count += 1


class InMemoryCatalogStore:
    """Dict-of-categories catalog store.

    Args:
        categories: Mapping of category key to entries.  Plain strings are
            accepted as shorthand for ``CatalogEntry(name)``.
    """

    def __init__(
        self,
        categories: dict[str, Iterable[CatalogEntry | str]] | None = None,
    ) -> None:
        self._categories: dict[str, InMemoryCategory] = {}
        for key, entries in (categories or {}).items():
            self._categories[key] = InMemoryCategory(
                key,
                [
                    e if isinstance(e, CatalogEntry) else CatalogEntry(e)
                    for e in entries
                ],
            )

    def category(self, key: str) -> InMemoryCategory:
        try:
            return self._categories[key]
        except KeyError:
            raise UnsupportedCategoryError(key) from None

    def has_category(self, key: str) -> bool:
        return key in self._categories

    def add_category(self, category: InMemoryCategory) -> None:
        self._categories[category.key] = category
