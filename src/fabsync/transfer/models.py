"""Data contracts for content packages.

A content package carries catalog references *by name*.  Item files refer
to catalog entries by integer index, which only means something inside the
configuration that wrote them; names are the portable identity bridge.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import Field

from fabsync.content.items import ReferenceKind
from fabsync.core.models import Document

_REFERENCE_FIELDS = {
    ReferenceKind.SERVICE: "service_name",
    ReferenceKind.MATERIAL: "material_name",
    ReferenceKind.SPECIFICATION: "specification_name",
    ReferenceKind.SECTION: "section_description",
    ReferenceKind.PRICE_LIST: "price_list_name",
    ReferenceKind.INSTALLATION_TIMES: "installation_times_table_name",
    ReferenceKind.FABRICATION_TIMES: "fabrication_times_table_name",
}


class ItemReferences(Document):
    """Catalog references of one item, captured by name."""

    service_name: str | None = None
    material_name: str | None = None
    specification_name: str | None = None
    section_description: str | None = None
    price_list_name: str | None = None
    supplier_group_name: str | None = None
    installation_times_table_name: str | None = None
    fabrication_times_table_name: str | None = None

    def name_for(self, kind: ReferenceKind) -> str | None:
        return getattr(self, _REFERENCE_FIELDS[kind])

    def set_name(self, kind: ReferenceKind, name: str | None) -> None:
        setattr(self, _REFERENCE_FIELDS[kind], name)


class ExportedProductRow(Document):
    name: str | None = None
    alias: str | None = None
    database_id: str | None = None
    order_number: str | None = None
    bought_out: bool = False
    weight: float | None = None


class ExportedProductList(Document):
    revision: str | None = None
    rows: list[ExportedProductRow] = []


class ExportedItem(Document):
    """One item in a package.

    Attributes:
        file_name: Item file name inside the package folder.
        source_folder: Folder the item came from, relative to the item
            library root when known.
        cid: Pattern number.
        database_id: Declared identifier used for duplicate detection.
        is_product_list: Whether the item carries a product list.
        references: By-name catalog references.
        product_list: Captured product-list rows, if any.
    """

    file_name: str
    source_folder: str | None = None
    cid: int = 0
    database_id: str | None = None
    is_product_list: bool = False
    references: ItemReferences = Field(default_factory=ItemReferences)
    product_list: ExportedProductList | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContentPackage(Document):
    configuration_name: str
    exported_by: str
    exported_at: datetime = Field(default_factory=_utcnow)
    items: list[ExportedItem] = []


class ItemImportResult(Document):
    """Outcome of validating or importing one package item.

    Unresolved references are warnings, not failures; ``success`` reflects
    only whether the item was written.
    """

    file_name: str
    success: bool = False
    warnings: list[str] = []
    errors: list[str] = []


class DuplicateInfo(Document):
    """An existing item sharing a database id with an incoming one."""

    import_file_name: str
    database_id: str
    existing_file_path: str

    model_config = {"frozen": True}


class ReferenceOverrides:
    """Replacement names chosen for one item's unresolved references.

    Keys are ``ReferenceKind`` values (``"Material"``, ``"PriceList"``...)
    and are matched case-insensitively.  A key mapped to an empty string
    means "leave this reference alone"; a missing key means "use the name
    captured at export".
    """

    def __init__(self, overrides: dict[str, str | None] | None = None) -> None:
        self._overrides: dict[str, str | None] = {
            k.lower(): v for k, v in (overrides or {}).items()
        }

    def get(self, key: str | ReferenceKind) -> str | None:
        if isinstance(key, ReferenceKind):
            key = key.value
        return self._overrides.get(key.lower())

    def has(self, key: str | ReferenceKind) -> bool:
        if isinstance(key, ReferenceKind):
            key = key.value
        return key.lower() in self._overrides

    def set(self, key: str | ReferenceKind, name: str | None) -> None:
        if isinstance(key, ReferenceKind):
            key = key.value
        self._overrides[key.lower()] = name

    def __len__(self) -> int:
        return len(self._overrides)

    def __repr__(self) -> str:
        return f"ReferenceOverrides({self._overrides!r})"
