"""Registry of copyable catalog categories.

Each category maps to one catalog file in a profile's ``DATABASE`` folder.
Only *enumerable* categories can be listed by name (and therefore appear
in manifests); only categories with delete + save support can take part in
selective cleanup.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

CATALOG_FILE_SUFFIX = ".map"


class CategoryDescriptor(BaseModel):
    """Static description of one catalog category.

    Attributes:
        key: Stable key used in manifests and cleanup journals.
        display_name: Human-readable label.
        file_name: Catalog file inside the profile's data folder.
        group: UI grouping ("Price & Labor", "Primary", ...).
        is_enumerable: Entries can be listed by name.
        supports_selective_cleanup: Entries can be deleted by name.
    """

    key: str
    display_name: str
    file_name: str
    group: str
    is_enumerable: bool = False
    supports_selective_cleanup: bool = False

    model_config = {"frozen": True}

    def is_available(self, data_path: Path) -> bool:
        """Return ``True`` if this category's catalog file exists."""
        return find_catalog_file(data_path, self.file_name) is not None


def _cat(
    key: str,
    display_name: str,
    file_name: str,
    group: str,
    enumerable: bool = False,
    selective: bool = False,
) -> CategoryDescriptor:
    return CategoryDescriptor(
        key=key,
        display_name=display_name,
        file_name=file_name,
        group=group,
        is_enumerable=enumerable,
        supports_selective_cleanup=selective,
    )


_CATEGORIES: tuple[CategoryDescriptor, ...] = (
    # Price & Labor: these files change together
    _cat("Suppliers", "Suppliers", "SUPPLIER.MAP", "Price & Labor", True, True),
    _cat("Setup", "Setup", "SETUP.MAP", "Price & Labor"),
    _cat("Costs", "Costs / Price Lists", "Cost.MAP", "Price & Labor", True, True),
    _cat("InstallationTimes", "Installation Times", "ETimes.MAP", "Price & Labor", True, True),
    # Primary
    _cat("Services", "Services", "service.map", "Primary", True, True),
    _cat("FabricationTimes", "Fabrication Times", "FTimes.MAP", "Primary", True, True),
    _cat("Materials", "Materials", "Material.MAP", "Primary", True, True),
    _cat("Specifications", "Specifications", "Specs.MAP", "Primary", True, True),
    _cat("Sections", "Sections", "sections.map", "Primary", True, True),
    _cat("Ancillaries", "Ancillaries", "ANCILLRY.MAP", "Primary", True, True),
    # Secondary
    _cat("Connectors", "Connectors", "Connectr.map", "Secondary", True, True),
    _cat("Seams", "Seams", "seam.map", "Secondary", True),
    _cat("Layers", "Layers", "layers.MAP", "Secondary"),
    _cat("Dampers", "Dampers", "DAMPER.MAP", "Secondary", True, True),
    _cat("Diameters", "Diameters", "Diameter.MAP", "Secondary"),
    # Other
    _cat("Airturn", "Airturn", "Airturn.MAP", "Other"),
    _cat("Cutouts", "Cutouts", "Cutouts.MAP", "Other"),
    _cat("Notches", "Notches", "Notches.MAP", "Other"),
    _cat("Stiffeners", "Stiffeners", "STIFFNER.MAP", "Other", True, True),
    _cat("Leads", "Leads", "LEADS.MAP", "Other"),
    _cat("Splitters", "Splitters", "splitter.MAP", "Other", True),
    _cat("Silencers", "Silencers", "Silencer.MAP", "Other"),
    _cat("Support", "Support", "SUPPORT.MAP", "Other"),
    _cat("Takeoff", "Takeoff", "TAKEOFF.MAP", "Other"),
    _cat("Facings", "Facings", "FACINGS.MAP", "Other"),
    _cat("Notes", "Notes", "Notes.MAP", "Other"),
    _cat("Resistance", "Resistance", "RESISTANCE.MAP", "Other"),
    _cat("ResistLink", "Resistance Links", "RESISTLINK.MAP", "Other"),
    _cat("StressLoad", "Stress Load", "StressLd.map", "Other"),
    _cat("PartNames", "Part Names", "PARTNAME.MAP", "Other"),
    _cat("TextAttributes", "Text Attributes", "TEXTATTS.MAP", "Other"),
    _cat("HardwareSpecs", "Hardware Specs", "HSpecs.MAP", "Other"),
    _cat("InsulationSpecs", "Insulation Specs", "ISpecs.MAP", "Other"),
    _cat("DrawingDb", "Drawing Database", "dwgdb.map", "Other"),
    _cat("Nesting", "Nesting", "NESTING.MAP", "Other"),
    _cat("ToolDefaults", "Tool Defaults", "TOOLDFLT.MAP", "Other"),
)

_BY_KEY = {c.key.lower(): c for c in _CATEGORIES}

# Manifest enumeration order.
MANIFEST_CATEGORY_KEYS: tuple[str, ...] = (
    "Services",
    "Materials",
    "Specifications",
    "Sections",
    "Connectors",
    "Seams",
    "Dampers",
    "Splitters",
    "Stiffeners",
    "Ancillaries",
    "Suppliers",
    "Costs",
    "InstallationTimes",
    "FabricationTimes",
)


def all_categories() -> list[CategoryDescriptor]:
    """Return every copyable category in display order."""
    return list(_CATEGORIES)


def get_category(key: str) -> CategoryDescriptor:
    """Look up a category by key (case-insensitive).

    Raises:
        KeyError: If *key* is not a known category.
    """
    try:
        return _BY_KEY[key.lower()]
    except KeyError:
        raise KeyError(f"Unknown catalog category: {key}") from None


def enumerable_categories() -> list[CategoryDescriptor]:
    """Categories that can be listed by name, in manifest order."""
    return [get_category(k) for k in MANIFEST_CATEGORY_KEYS]


def available_categories(data_path: Path) -> list[CategoryDescriptor]:
    """Return the categories whose catalog file exists in *data_path*."""
    return [c for c in _CATEGORIES if c.is_available(data_path)]


def find_catalog_file(data_path: Path, file_name: str) -> Path | None:
    """Locate *file_name* in *data_path*, ignoring case.

    Catalog file names are historically mixed-case and profiles copied
    between file systems do not always preserve it.
    """
    exact = data_path / file_name
    if exact.is_file():
        return exact
    if not data_path.is_dir():
        return None
    wanted = file_name.lower()
    for child in data_path.iterdir():
        if child.name.lower() == wanted and child.is_file():
            return child
    return None
