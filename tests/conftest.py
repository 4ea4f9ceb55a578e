"""Shared pytest fixtures for fabsync tests."""

import json
from pathlib import Path

import pytest

from fabsync.catalog.store import CatalogEntry, InMemoryCatalogStore


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep host configuration from leaking into tests."""
    for var in (
        "FABSYNC_CONFIG",
        "FABSYNC_DATA_PATH",
        "FABSYNC_PROFILE",
        "FABSYNC_BACKUP_DIR",
        "FABSYNC_ITEMS_ROOT",
        "FABSYNC_DEBUG",
        "LOG_LEVEL",
        "LOG_FILE",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def write_catalog():
    """Factory writing a JSON catalog file into a data folder.

    Names are plain strings or ``(name, group)`` tuples.
    """

    def _write(data_path: Path, file_name: str, names: list) -> Path:
        data_path.mkdir(parents=True, exist_ok=True)
        entries = [
            {"name": n} if isinstance(n, str) else {"name": n[0], "group": n[1]}
            for n in names
        ]
        path = data_path / file_name
        path.write_text(json.dumps({"entries": entries}), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_item():
    """Factory writing an item file (and optionally its thumbnail)."""

    def _write(
        folder: Path,
        name: str,
        database_id: str | None = "ID-001",
        references: dict | None = None,
        cid: int = 2041,
        product_list: dict | None = None,
        thumbnail: bool = False,
    ) -> Path:
        folder.mkdir(parents=True, exist_ok=True)
        record = {
            "cid": cid,
            "databaseId": database_id,
            "isProductList": product_list is not None,
            "references": references or {},
            "productList": product_list,
        }
        path = folder / f"{name}.itm"
        path.write_text(json.dumps(record), encoding="utf-8")
        if thumbnail:
            (folder / f"{name}.png").write_bytes(b"\x89PNG\r\n\x1a\n")
        return path

    return _write


@pytest.fixture
def database_root(tmp_path, write_catalog):
    """A database root with Global, profiles Alpha and Zeta, and a folder
    ``Empty`` whose data folder has no catalog files."""
    root = tmp_path / "Imperial Content"
    root.mkdir()
    (root / "MAP.INI").write_text("", encoding="utf-8")
    write_catalog(root / "DATABASE", "Material.MAP", ["Steel"])
    for name in ("Zeta", "Alpha"):
        write_catalog(
            root / "profiles" / name / "DATABASE", "Material.MAP", ["Steel"]
        )
    (root / "profiles" / "Empty" / "DATABASE").mkdir(parents=True)
    return root


@pytest.fixture
def source_catalog():
    """Catalog of the exporting configuration (C1)."""
    return InMemoryCatalogStore(
        {
            "Services": ["Duct Service", "Pipe Service"],
            "Materials": ["Galvanised", "Copper"],
            "Specifications": ["Standard", "Spec-X"],
            "Sections": ["Main Plant"],
            "Suppliers": ["Acme"],
            "Costs": [CatalogEntry("List 2024", "Acme")],
            "InstallationTimes": ["Install A"],
            "FabricationTimes": ["Fab A"],
        }
    )


@pytest.fixture
def target_catalog():
    """Catalog of the importing configuration (C2).

    Shares every name C1 uses except ``Copper`` and ``Spec-X``, at
    different positions.
    """
    return InMemoryCatalogStore(
        {
            "Services": ["Pipe Service", "Duct Service"],
            "Materials": ["Steel", "Galvanised"],
            "Specifications": ["Other", "Standard"],
            "Sections": ["Main Plant"],
            "Suppliers": ["Acme"],
            "Costs": [CatalogEntry("Old List", "Acme"), CatalogEntry("List 2024", "Acme")],
            "InstallationTimes": ["Install A"],
            "FabricationTimes": ["Fab A"],
        }
    )


# Item A in C1: every reference resolvable in C2.
ITEM_A_REFS = {
    "Service": 0,
    "Material": 0,
    "Specification": 0,
    "Section": 0,
    "PriceList": 0,
    "InstallationTimesTable": 0,
    "FabricationTimesTable": 0,
}

# Item B in C1: specification "Spec-X", absent from C2.
ITEM_B_REFS = {**ITEM_A_REFS, "Specification": 1}


@pytest.fixture
def item_refs():
    return {"A": dict(ITEM_A_REFS), "B": dict(ITEM_B_REFS)}
