"""Profile manifest generation and loading.

A manifest is a name-indexed snapshot of every enumerable catalog category
of the *currently loaded* configuration, written as ``.fabmanifest.json``
inside that profile's data folder.  It is what makes previews and selective
copies possible for profiles that are not loaded: the catalog store can
only enumerate the active configuration.

Each category is captured independently.  A category that fails to
enumerate (unsupported in this configuration, unreadable catalog file) is
logged and left out; it never aborts the manifest.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from fabsync.catalog.categories import enumerable_categories
from fabsync.catalog.store import CatalogStore
from fabsync.core.jsonio import write_document
from fabsync.errors import UnsupportedCategoryError
from fabsync.profiles.models import (
    GLOBAL_PROFILE_NAME,
    ManifestDocument,
    ManifestEntry,
)

logger = logging.getLogger(__name__)

MANIFEST_FILE_NAME = ".fabmanifest.json"


def manifest_path(data_path: Path) -> Path:
    return Path(data_path) / MANIFEST_FILE_NAME


def has_manifest(data_path: Path) -> bool:
    return manifest_path(data_path).is_file()


def load_manifest(data_path: Path) -> ManifestDocument | None:
    """Load the manifest stored in *data_path*.

    Returns:
        The manifest, or ``None`` if there is none or it cannot be parsed.
        Callers treat ``None`` as "no preview available; regenerate".
    """
    path = manifest_path(data_path)
    if not path.is_file():
        return None
    try:
        return ManifestDocument.model_validate_json(path.read_bytes())
    except (OSError, ValidationError) as exc:
        logger.warning("Ignoring unreadable manifest %s: %s", path, exc)
        return None


class ManifestBuilder:
    """Snapshot the loaded configuration's catalog into a manifest.

    Args:
        catalog: The live catalog of the profile being snapshotted.
    """

    def __init__(self, catalog: CatalogStore) -> None:
        self.catalog = catalog

    def capture(self) -> dict[str, list[ManifestEntry]]:
        """Enumerate every enumerable category; omit empty or failing ones."""
        categories: dict[str, list[ManifestEntry]] = {}
        for descriptor in enumerable_categories():
            try:
                entries = [
                    ManifestEntry(name=e.name, group=e.group)
                    for e in self.catalog.category(
                        descriptor.key
                    ).list_entries()
                ]
            except UnsupportedCategoryError:
                logger.debug("Category %s not available", descriptor.key)
                continue
            except Exception as exc:
                logger.warning(
                    "Could not enumerate %s: %s", descriptor.key, exc
                )
                continue
            if entries:
                categories[descriptor.key] = entries
        return categories

    def generate(
        self, data_path: Path, profile_name: str | None = None
    ) -> ManifestDocument:
        """Generate the manifest and write it into *data_path*.

        Any previous manifest is replaced wholesale, never merged.

        Args:
            data_path: The snapshotted profile's data folder.
            profile_name: Profile name; ``None`` means Global.

        Returns:
            The generated manifest.

        Raises:
            OSError: If the manifest cannot be written.
        """
        manifest = ManifestDocument(
            profile_name=profile_name or GLOBAL_PROFILE_NAME,
            data_path=str(data_path),
            categories=self.capture(),
        )
        write_document(manifest_path(data_path), manifest)
        logger.info(
            "Wrote manifest for %s (%d categories) to %s",
            manifest.profile_name,
            len(manifest.categories),
            manifest_path(data_path),
        )
        return manifest

    @staticmethod
    def load(data_path: Path) -> ManifestDocument | None:
        return load_manifest(data_path)
