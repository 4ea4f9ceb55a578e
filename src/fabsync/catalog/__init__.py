"""Catalog categories and the injected catalog store.

Modules:

- ``categories`` -- registry of copyable categories and their catalog files.
- ``store``      -- ``CatalogStore`` / ``CatalogCategory`` protocols and the
  in-memory implementation.
- ``files``      -- ``FileCatalogStore``: JSON catalog files in a profile's
  data folder.
"""

from .categories import (
    CategoryDescriptor,
    all_categories,
    available_categories,
    enumerable_categories,
    get_category,
)
from .files import FileCatalogStore
from .store import (
    CatalogCategory,
    CatalogEntry,
    CatalogStore,
    InMemoryCatalogStore,
    InMemoryCategory,
)

__all__ = [
    "CatalogCategory",
    "CatalogEntry",
    "CatalogStore",
    "CategoryDescriptor",
    "FileCatalogStore",
    "InMemoryCatalogStore",
    "InMemoryCategory",
    "all_categories",
    "available_categories",
    "enumerable_categories",
    "get_category",
]
