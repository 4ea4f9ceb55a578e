"""Content items: file schema, catalog-bound loading and saving."""

from .items import (
    ITEM_SUFFIX,
    THUMBNAIL_SUFFIX,
    ContentItem,
    ContentLibrary,
    FileContentLibrary,
    ItemRecord,
    ProductListRecord,
    ProductRowRecord,
    ReferenceKind,
    iter_item_files,
    resolve_reference,
)

__all__ = [
    "ITEM_SUFFIX",
    "THUMBNAIL_SUFFIX",
    "ContentItem",
    "ContentLibrary",
    "FileContentLibrary",
    "ItemRecord",
    "ProductListRecord",
    "ProductRowRecord",
    "ReferenceKind",
    "iter_item_files",
    "resolve_reference",
]
