"""Content package export and import.

- ``models``   -- package documents and per-item results.
- ``exporter`` -- ``PackageExporter``: items to package folder.
- ``importer`` -- ``PackageImporter``: validate, duplicate-check, import.
"""

from .exporter import PACKAGE_MANIFEST_NAME, PackageExporter, configuration_name
from .importer import PackageImporter, load_package
from .models import (
    ContentPackage,
    DuplicateInfo,
    ExportedItem,
    ExportedProductList,
    ExportedProductRow,
    ItemImportResult,
    ItemReferences,
    ReferenceOverrides,
)

__all__ = [
    "PACKAGE_MANIFEST_NAME",
    "ContentPackage",
    "DuplicateInfo",
    "ExportedItem",
    "ExportedProductList",
    "ExportedProductRow",
    "ItemImportResult",
    "ItemReferences",
    "PackageExporter",
    "PackageImporter",
    "ReferenceOverrides",
    "configuration_name",
    "load_package",
]
