"""Exception types raised by fabsync.

Only whole-operation failures and per-item save/load failures are raised.
Soft problems (an unresolved reference, a category that cannot be
enumerated) are reported as warnings or omissions instead.
"""


class FabSyncError(Exception):
    """Base class for all fabsync errors."""


class ProfileNotFoundError(FabSyncError):
    """No profile root could be derived from a data path."""


class PackageError(FabSyncError):
    """A content package manifest exists but cannot be read."""


class UnsupportedCategoryError(FabSyncError, KeyError):
    """The loaded configuration does not provide a catalog category."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Catalog category '{self.key}' is not available"


class ItemLoadError(FabSyncError):
    """A content item file could not be loaded."""


class ItemSaveError(FabSyncError):
    """A content item could not be written back to disk."""


class ReadOnlyReferenceError(FabSyncError):
    """The reference cannot be reassigned once an item exists."""
