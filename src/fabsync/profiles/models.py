"""Data contracts for profiles, manifests and cleanup journals.

- ``ProfileDescriptor``: one discovered profile on disk.
- ``ManifestEntry`` / ``ManifestDocument``: name-indexed catalog snapshot.
- ``PendingCleanup``: deferred delete-by-name actions for one target.
- ``CopyResult`` / ``PushResult``: outcome of copying catalog files to a
  target profile.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field

from fabsync.core.models import Document

GLOBAL_PROFILE_NAME = "Global"


def is_global_name(name: str | None) -> bool:
    """Return ``True`` if *name* denotes the Global profile.

    The host reports the literal string ``"Global"`` (not an empty value)
    when the default profile is active, so both forms must be accepted.
    """
    return not name or name.strip().lower() == GLOBAL_PROFILE_NAME.lower()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProfileDescriptor(BaseModel):
    """A discovered profile.

    Attributes:
        name: ``"Global"`` or the named profile's folder name.
        root_path: Database root for Global, the profile folder otherwise.
        data_path: The profile's ``DATABASE`` folder.
        is_current: Whether this is the active profile (by name).
    """

    name: str
    root_path: Path
    data_path: Path
    is_current: bool = False

    model_config = {"frozen": True}

    @property
    def is_global(self) -> bool:
        return is_global_name(self.name)

    def is_valid(self) -> bool:
        """Return ``True`` if the profile's data folder exists."""
        return self.data_path.is_dir()

    def __str__(self) -> str:
        suffix = " (Current)" if self.is_current else ""
        return f"{self.name}{suffix}"


class ManifestEntry(Document):
    name: str
    group: str | None = None

    model_config = {"frozen": True}


class ManifestDocument(Document):
    """Name-indexed snapshot of a profile's enumerable categories.

    A category key is present only if at least one entry was captured;
    a missing key means "not captured", never "empty".
    """

    profile_name: str
    data_path: str
    generated_at: datetime = Field(default_factory=_utcnow)
    categories: dict[str, list[ManifestEntry]] = {}

    def names(self, category: str) -> list[str]:
        """Entry names of *category*, or an empty list if not captured."""
        return [e.name for e in self.categories.get(category, [])]


class PendingCleanup(Document):
    """Deferred delete-by-name actions for one target profile.

    The journal has no status field: the file existing *is* the pending
    state, and deleting the file consumes it.
    """

    profile_name: str
    data_path: str
    created_at: datetime = Field(default_factory=_utcnow)
    items_to_delete: dict[str, list[str]] = {}

    def total_items(self) -> int:
        return sum(len(names) for names in self.items_to_delete.values())


class CopyResult(BaseModel):
    """Outcome reported by a ``RawCopier``.

    Attributes:
        success: Whether the copy completed.
        message: Summary or error message.
        backup_path: Backup taken before copying, if any.
        copied_files: Catalog files written to the target.
        skipped_files: Selected files missing from the source.
    """

    success: bool
    message: str = ""
    backup_path: str | None = None
    copied_files: list[str] = []
    skipped_files: list[str] = []

    model_config = {"frozen": True}


class PushResult(BaseModel):
    """Outcome of pushing one source profile to one target."""

    target: str
    copy_result: CopyResult
    cleanup_path: str | None = None
    cleanup_items: int = 0

    model_config = {"frozen": True}

    @property
    def success(self) -> bool:
        return self.copy_result.success
